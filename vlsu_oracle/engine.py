
from typing import Optional
import numpy as np

from .memory import MemorySnapshot
from .vlsu import VLSU
from .types import (VectorOperation, ExpectedState, ExitStatus, VerificationMismatch, OracleInvariantError,
                    PeResp)


class VerificationEngine:
    """Compares what the platform left behind against the oracle's prediction.
    Any disagreement raises VerificationMismatch; nothing is retried here.
    `origin` is the vstart the instruction was first issued with; elements
    below it must never change.
    """
    def __init__(self, vlsu: VLSU, snapshot: MemorySnapshot, base: int, vreg: int,
                 trace: bool = False):
        self.vlsu = vlsu
        self.snapshot = snapshot
        self.base = base
        self.vreg = vreg
        self.trace_enabled = trace
        self.tag = ""
        self.checks = 0

    def observe(self, op: VectorOperation) -> np.ndarray:
        """Destination elements [0, vl): memory for stores, the register for loads."""
        if op.kind == "store":
            return self.vlsu.mem.read_elems(self.base, op.vl, op.eew)
        return self.vlsu.read_v(self.vreg, op.eew)[:op.vl]

    def _fail(self, op: VectorOperation, status: ExitStatus, detail: str, index: Optional[int] = None):
        raise VerificationMismatch(detail=detail, status=status, avl=op.avl, vl=op.vl,
                                   vstart=op.vstart, index=index)

    def _expect_range(self, op: VectorOperation, got: np.ndarray, want: np.ndarray,
                      lo: int, hi: int, status: ExitStatus, what: str):
        if hi <= lo:
            return
        bad = np.flatnonzero(got[lo:hi] != want[lo:hi])
        if bad.size:
            i = lo + int(bad[0])
            self._fail(op, status, f"{what}: element {i} is 0x{int(got[i]):x}, expected 0x{int(want[i]):x}", i)
        self.checks += 1

    def check_prefix(self, op: VectorOperation, origin: Optional[int] = None,
                     status: ExitStatus = ExitStatus.PREFIX_MISMATCH):
        origin = op.vstart if origin is None else origin
        got = self.observe(op)
        self._expect_range(op, got, self.snapshot.poison, 0, origin, status, "prefix modified")

    def check_attempt(self, op: VectorOperation, expected: ExpectedState, origin: Optional[int] = None):
        origin = op.vstart if origin is None else origin
        self.check_prefix(op, origin)
        exc = self.vlsu.read_exception()
        if exc.occurred != expected.fault_expected:
            self._fail(op, ExitStatus.EXCEPTION_MISMATCH,
                       f"exception occurred={exc.occurred}, expected {expected.fault_expected}")
        if not expected.fault_expected:
            return
        marker = expected.predicted_resumption_marker
        if not origin <= marker < op.vl:
            raise OracleInvariantError(detail=f"resumption marker {marker} outside [{origin}, {op.vl}) "
                                              f"with a fault expected (avl={op.avl})")
        got = self.observe(op)
        self._expect_range(op, got, self.snapshot.source, origin, marker, ExitStatus.BODY_MISMATCH,
                           "body before fault")
        self._expect_range(op, got, self.snapshot.poison, marker, op.vl, ExitStatus.TAIL_MISMATCH,
                           "touched past the fault")
        hw_vstart = self.vlsu.read_vstart()
        if hw_vstart != marker:
            self._fail(op, ExitStatus.VSTART_MISMATCH, f"vstart reads {hw_vstart}, expected {marker}")
        if (exc.cause, exc.address) != (op.cause, expected.faulting_address):
            addr = "None" if exc.address is None else f"0x{exc.address:x}"
            self._fail(op, ExitStatus.EXCEPTION_MISMATCH,
                       f"exception cause={exc.cause} addr={addr}, expected cause={op.cause} "
                       f"addr=0x{expected.faulting_address:x}")
        self.checks += 2
        if self.trace_enabled:
            print(f"{self.tag}CHECK: fault at 0x{expected.faulting_address:x}, vstart={marker} ok")

    def recover(self, op: VectorOperation, origin: Optional[int] = None) -> PeResp:
        """Re-issue the instruction from the hardware vstart; faults must already be disabled."""
        self.vlsu.clear_exception()
        resp = self.vlsu.issue(op.kind, self.base, self.vreg)
        self.check_prefix(op, origin)
        return resp

    def check_complete(self, op: VectorOperation, origin: Optional[int] = None, recovered: bool = False):
        origin = op.vstart if origin is None else origin
        got = self.observe(op)
        body = ExitStatus.RECOVERY_MISMATCH if recovered else ExitStatus.BODY_MISMATCH
        self._expect_range(op, got, self.snapshot.source, origin, op.vl, body, "body after completion")
        hw_vstart = self.vlsu.read_vstart()
        if hw_vstart != 0:
            self._fail(op, ExitStatus.RECOVERY_MISMATCH if recovered else ExitStatus.VSTART_MISMATCH,
                       f"vstart reads {hw_vstart} after completion")
        if self.vlsu.read_exception().occurred:
            self._fail(op, ExitStatus.RECOVERY_MISMATCH if recovered else ExitStatus.EXCEPTION_MISMATCH,
                       "exception recorded after completion")
        self.checks += 2
