
from dataclasses import dataclass, field
from typing import List, Optional, Literal, Iterator, Union
import enum
import numbers

OpKind = Literal["load", "store"]

# mcause values reported by the platform
LOAD_ACCESS_FAULT = 5
STORE_ACCESS_FAULT = 7
LOAD_PAGE_FAULT = 13
STORE_PAGE_FAULT = 15


def fault_cause(kind: OpKind) -> int:
    return LOAD_PAGE_FAULT if kind == "load" else STORE_PAGE_FAULT


class ExitStatus(enum.IntEnum):
    PASS = 0
    INTERNAL = 1
    POLICY_ERROR = 2
    ORACLE_INVARIANT = 3
    PREFIX_MISMATCH = 10
    BODY_MISMATCH = 11
    TAIL_MISMATCH = 12
    VSTART_MISMATCH = 13
    EXCEPTION_MISMATCH = 14
    RECOVERY_MISMATCH = 15


@dataclass
class OracleError(Exception):
    """Fatal condition of a sweep. `status` is what the sweep reports to the harness."""
    kind: str
    detail: str = ""
    status: ExitStatus = ExitStatus.INTERNAL

    def __str__(self) -> str:
        return f"{self.kind}: {self.detail} [exit {int(self.status)}]"


@dataclass
class PolicySelectionError(OracleError):
    kind: str = "PolicySelection"
    status: ExitStatus = ExitStatus.POLICY_ERROR


@dataclass
class OracleInvariantError(OracleError):
    kind: str = "OracleInvariant"
    status: ExitStatus = ExitStatus.ORACLE_INVARIANT


@dataclass
class VerificationMismatch(OracleError):
    kind: str = "VerificationMismatch"
    status: ExitStatus = ExitStatus.BODY_MISMATCH
    avl: Optional[int] = None
    vl: Optional[int] = None
    vstart: Optional[int] = None
    index: Optional[int] = None

    def __str__(self) -> str:
        s = f"{self.kind}: {self.detail}"
        if self.vl is not None:
            s += f" (avl={self.avl} vl={self.vl} vstart={self.vstart}"
            if self.index is not None:
                s += f" element={self.index}"
            s += ")"
        return s + f" [exit {int(self.status)}]"


class FaultMode(enum.Enum):
    NONE = "none"
    ALWAYS = "always"    # fixed latency, every operation faults if it is long enough
    RANDOM = "random"

    @classmethod
    def parse(cls, value: Union["FaultMode", str, int]) -> "FaultMode":
        """Accepts a FaultMode, its name/value, 'fixed' as an alias of 'always',
        or the numeric control code 0/1/2 (any integral type, bool excluded).
        Anything else is a configuration error."""
        if isinstance(value, FaultMode):
            return value
        if isinstance(value, bool):
            raise PolicySelectionError(detail=f"unknown fault policy {value!r}")
        if isinstance(value, numbers.Integral):
            codes = {0: cls.NONE, 1: cls.ALWAYS, 2: cls.RANDOM}
            if int(value) in codes:
                return codes[int(value)]
        elif isinstance(value, str):
            key = value.strip().lower()
            if key == "fixed":
                return cls.ALWAYS
            for mode in cls:
                if key == mode.value:
                    return mode
        raise PolicySelectionError(detail=f"unknown fault policy {value!r}")


@dataclass
class FaultPolicy:
    mode: FaultMode = FaultMode.NONE
    latency: Optional[int] = None   # beats that complete before the fault; None when not injecting


@dataclass
class VectorOperation:
    """One unit-stride, single-register vector memory instruction.
    - kind: 'load' or 'store'
    - eew: element width in bytes
    - avl: requested length; vl: length granted by the platform
    - vstart: resumption offset the operation begins at
    """
    kind: OpKind
    eew: int
    avl: int
    vl: int
    vstart: int = 0

    @property
    def cause(self) -> int:
        return fault_cause(self.kind)


@dataclass(frozen=True)
class Transaction:
    addr: int
    nbytes: int

    @property
    def end(self) -> int:
        return self.addr + self.nbytes


@dataclass
class BurstLog:
    """Ordered bus transactions covering bytes [base + vstart*eew, base + vl*eew)."""
    vl: int
    eew: int
    bus_width: int
    vstart: int
    base: int = 0
    transactions: List[Transaction] = field(default_factory=list)

    @property
    def start(self) -> int:
        return self.base + self.vstart * self.eew

    @property
    def end(self) -> int:
        return self.base + self.vl * self.eew

    def __len__(self) -> int:
        return len(self.transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self.transactions)

    def __getitem__(self, i: int) -> Transaction:
        return self.transactions[i]


@dataclass
class ExpectedState:
    elements_completed_pre_fault: int
    predicted_resumption_marker: int
    fault_expected: bool
    faulting_address: Optional[int] = None


@dataclass
class ExceptionRecord:
    occurred: bool = False
    cause: Optional[int] = None
    address: Optional[int] = None


@dataclass
class PeReq:
    """Request issued to the load/store units.
    - op: 'load' or 'store'
    - base: byte address of element 0
    - vl, vstart: taken from the platform CSRs at issue time
    - eew: element width in bytes
    - vd: destination register for loads; vs: source register for stores
    """
    op: OpKind
    base: int
    vl: int
    vstart: int
    eew: int
    vd: Optional[int] = None
    vs: Optional[int] = None


@dataclass
class LSUException(Exception):
    kind: str
    detail: str = ""
    vstart: Optional[int] = None
    addr: Optional[int] = None

    def __str__(self) -> str:
        s = f"{self.kind}: {self.detail}"
        if self.vstart is not None:
            s += f" (at element {self.vstart})"
        return s


@dataclass
class PeResp:
    ok: bool
    info: str = ""
    committed: int = 0          # elements written before the unit stopped
    exception: Optional[LSUException] = None
