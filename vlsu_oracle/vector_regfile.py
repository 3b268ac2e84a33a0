import numpy as np

from .memory import elem_dtype


class VectorRegFile:
    """nregs x VLEN-bit register file, stored as raw bytes and viewed per element width."""
    def __init__(self, vlen: int, nregs: int = 32):
        self.vlenb = vlen // 8
        self.nregs = nregs
        self.regs = [bytearray(self.vlenb) for _ in range(nregs)]

    def _check(self, idx: int):
        if not 0 <= idx < self.nregs:
            raise IndexError(f"no vector register v{idx}")

    def read(self, idx: int, eew: int) -> np.ndarray:
        self._check(idx)
        return np.frombuffer(bytes(self.regs[idx]), dtype=elem_dtype(eew)).copy()

    def write(self, idx: int, data: np.ndarray, eew: int):
        """Write leading elements of `data`; bytes past them keep their value."""
        self._check(idx)
        raw = np.asarray(data).astype(elem_dtype(eew)).tobytes()
        if len(raw) > self.vlenb:
            raise ValueError("vector length mismatch")
        self.regs[idx][:len(raw)] = raw

    def read_elem_bytes(self, idx: int, i: int, eew: int) -> bytes:
        self._check(idx)
        return bytes(self.regs[idx][i*eew:(i+1)*eew])

    def write_elem_bytes(self, idx: int, i: int, data: bytes):
        self._check(idx)
        self.regs[idx][i*len(data):(i+1)*len(data)] = data
