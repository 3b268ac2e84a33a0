
from dataclasses import dataclass, field
import numpy as np

# Stored where nothing may be written; even, so it never collides with a source value.
POISON = 0xDEADBEEFDEADBEEE
_MIX = np.uint64(0x9E3779B97F4A7C15)


def elem_dtype(eew: int) -> np.dtype:
    return np.dtype(f"<u{eew}")


@dataclass
class Memory:
    """Simple byte-addressable memory model using a Python bytearray.
    The default size is 64 KiB, but you can pass a different size at construction.
    """
    size: int = 1 << 16
    mem: bytearray = field(init=False)

    def __post_init__(self):
        self.mem = bytearray(self.size)

    def check_range(self, addr: int, nbytes: int):
        if addr < 0 or addr + nbytes > self.size:
            raise IndexError(f"Memory access out of range: addr=0x{addr:x}, size={nbytes}")

    def read_bytes(self, addr: int, nbytes: int) -> bytes:
        self.check_range(addr, nbytes)
        return bytes(self.mem[addr:addr+nbytes])

    def write_bytes(self, addr: int, data: bytes):
        self.check_range(addr, len(data))
        self.mem[addr:addr+len(data)] = data

    def read_elems(self, addr: int, count: int, eew: int) -> np.ndarray:
        raw = self.read_bytes(addr, count * eew)
        return np.frombuffer(raw, dtype=elem_dtype(eew)).copy()

    def write_elems(self, addr: int, values: np.ndarray, eew: int):
        self.write_bytes(addr, np.asarray(values).astype(elem_dtype(eew)).tobytes())


@dataclass
class MemorySnapshot:
    """Per-iteration reference arrays of `elmmax` elements.
    - poison: what the destination holds before the operation
    - source: what the operation moves; odd and distinct per index so a misplaced
      element is detected
    """
    elmmax: int
    eew: int
    poison: np.ndarray = field(init=False)
    source: np.ndarray = field(init=False)

    def __post_init__(self):
        self.reinit()

    def reinit(self):
        dtype = elem_dtype(self.eew)
        idx = np.arange(self.elmmax, dtype=np.uint64)
        self.source = ((idx * np.uint64(2) + np.uint64(1)) * _MIX).astype(dtype)
        self.poison = np.full(self.elmmax, POISON & ((1 << (8 * self.eew)) - 1), dtype=dtype)
