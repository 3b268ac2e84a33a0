
from dataclasses import dataclass, field
import numpy as np

from .config import PlatformConfig
from .memory import Memory
from .vector_regfile import VectorRegFile
from .fault import FaultInjectionStub
from .vldu import LoadUnit
from .vstu import StoreUnit
from .types import (PeReq, PeResp, OpKind, ExceptionRecord, fault_cause,
                    LOAD_ACCESS_FAULT, STORE_ACCESS_FAULT)


@dataclass
class VLSU:
    """Behavioral model of the platform side of a vector memory access: vl/vstart
    CSRs, the exception record, memory, the VRF and the load/store units behind
    the fault-injection stub. One request at a time, not cycle-accurate.
    """
    cfg: PlatformConfig = field(default_factory=PlatformConfig)
    trace: bool = False

    def __post_init__(self):
        self.mem = Memory(self.cfg.mem_size)
        self.vrf = VectorRegFile(self.cfg.VLEN, self.cfg.nregs)
        self.stub = FaultInjectionStub()
        self.load_unit = LoadUnit(self.mem, self.vrf, self.stub, self.bus_width)
        self.store_unit = StoreUnit(self.mem, self.vrf, self.stub, self.bus_width)
        self.vl = 0
        self.eew = 1
        self.vstart = 0
        self.exc = ExceptionRecord()
        self.tag = ""    # trace prefix, e.g. "[cfg=12] "

    @property
    def bus_width(self) -> int:
        return self.cfg.bus_width

    def vlmax(self, eew: int) -> int:
        return self.cfg.vlmax(eew)

    # ---------- CSR surface ----------
    def setvl(self, avl: int, eew: int) -> int:
        self.eew = eew
        self.vl = min(avl, self.vlmax(eew))
        self.vstart = 0
        return self.vl

    def read_vstart(self) -> int:
        return self.vstart

    def write_vstart(self, value: int):
        self.vstart = value

    def read_exception(self) -> ExceptionRecord:
        return ExceptionRecord(self.exc.occurred, self.exc.cause, self.exc.address)

    def clear_exception(self):
        self.exc = ExceptionRecord()

    # ---------- register file ----------
    def write_v(self, reg: int, data: np.ndarray, eew: int):
        self.vrf.write(reg, data, eew)

    def read_v(self, reg: int, eew: int) -> np.ndarray:
        return self.vrf.read(reg, eew)

    # ---------- execution ----------
    def issue(self, kind: OpKind, base: int, vreg: int) -> PeResp:
        """Execute a unit-stride load (into vreg) or store (from vreg) with the current vl/vstart."""
        req = PeReq(op=kind, base=base, vl=self.vl, vstart=self.vstart, eew=self.eew,
                    vd=vreg if kind == "load" else None,
                    vs=vreg if kind == "store" else None)
        self.stub.begin()
        if req.vstart >= req.vl:
            self.vstart = 0
            return PeResp(ok=True, info="vstart >= vl: nothing to do")
        if kind == "load":
            resp = self.load_unit.execute(req)
        elif kind == "store":
            resp = self.store_unit.execute(req)
        else:
            return PeResp(ok=False, info=f"unknown op {kind}")

        if resp.exception is None:
            self.vstart = 0
        elif resp.exception.kind.endswith("PageFault"):
            self.vstart = resp.exception.vstart
            self.exc = ExceptionRecord(True, fault_cause(kind), resp.exception.addr)
        else:
            self.vstart = req.vstart + resp.committed
            self.exc = ExceptionRecord(True, LOAD_ACCESS_FAULT if kind == "load" else STORE_ACCESS_FAULT,
                                       resp.exception.addr)
        if self.trace:
            print(f"{self.tag}VLSU: {kind} base=0x{base:x} vl={req.vl} vstart={req.vstart} -> "
                  f"{resp.info} (vstart={self.vstart})")
        return resp
