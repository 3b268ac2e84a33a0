
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union, Literal

from .types import FaultMode, OpKind

SweepMode = Literal["bounded", "exhaustive"]

SUPPORTED_EEW = (1, 2, 4, 8)


@dataclass
class PlatformConfig:
    VLEN: int = 1024          # bits per vector register
    NrLanes: int = 4
    nregs: int = 32
    mem_size: int = 1 << 16

    @property
    def bus_width(self) -> int:
        # AXI data width is 32 bits per lane
        return 4 * self.NrLanes

    def vlmax(self, eew: int) -> int:
        return self.VLEN // 8 // eew


@dataclass
class SweepConfig:
    """Sweep over (avl, vstart) for one element width and one operation kind.
    - elmmax: largest granted vl exercised; defaults to VLMAX for eew
    - mode: 'exhaustive' walks every value, 'bounded' walks `band` values at each end
    - boundary_points: extra avl values always exercised in bounded mode
    - fault_mode: 'none' | 'always' | 'random' (see FaultMode.parse)
    - fixed_latency / max_latency: starting latency and wrap bound of the fixed policy
    """
    kind: OpKind = "store"
    eew: int = 4
    elmmax: Optional[int] = None
    mode: SweepMode = "bounded"
    band: int = 4
    boundary_points: Tuple[int, ...] = ()
    fault_mode: Union[FaultMode, str, int] = FaultMode.RANDOM
    fixed_latency: int = 1
    max_latency: int = 4
    seed: int = 0
    src_base: int = 0x1000
    dst_base: int = 0x4000
    vs: int = 8
    vd: int = 16
    trace: bool = False
    platform: PlatformConfig = field(default_factory=PlatformConfig)

    @property
    def operand_base(self) -> int:
        """Base address of the memory operand of the swept instruction."""
        return self.dst_base if self.kind == "store" else self.src_base

    def resolve_elmmax(self) -> int:
        return self.elmmax if self.elmmax is not None else self.platform.vlmax(self.eew)

    def span(self) -> int:
        """Elements held by the reference arrays: every vl the platform can grant."""
        return self.platform.vlmax(self.eew)

    def validate(self):
        if self.kind not in ("load", "store"):
            raise ValueError(f"unknown operation kind {self.kind!r}")
        if self.eew not in SUPPORTED_EEW:
            raise ValueError(f"eew must be one of {SUPPORTED_EEW}, got {self.eew}")
        if self.platform.bus_width % self.eew:
            raise ValueError(f"bus width {self.platform.bus_width} is not a multiple of eew {self.eew}")
        if self.mode not in ("bounded", "exhaustive"):
            raise ValueError(f"unknown sweep mode {self.mode!r}")
        if self.band < 1:
            raise ValueError("band must be >= 1")
        if self.max_latency < 1:
            raise ValueError("max_latency must be >= 1")
        elmmax = self.resolve_elmmax()
        if not 1 <= elmmax <= self.platform.vlmax(self.eew):
            raise ValueError(f"elmmax {elmmax} outside [1, VLMAX={self.platform.vlmax(self.eew)}]")
        for name in ("src_base", "dst_base"):
            base = getattr(self, name)
            if base % self.eew:
                raise ValueError(f"{name}=0x{base:x} is not aligned to eew {self.eew}")
            if base < 0 or base + self.span() * self.eew > self.platform.mem_size:
                raise ValueError(f"{name}=0x{base:x} region does not fit in memory")
        for reg in (self.vs, self.vd):
            if not 0 <= reg < self.platform.nregs:
                raise ValueError(f"vector register v{reg} does not exist")
