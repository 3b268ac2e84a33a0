
from typing import Optional, Union
import numpy as np

from .types import FaultMode, FaultPolicy


class FaultInjectionStub:
    """Memory-side fault injector.
    While armed, beats of the current operation are counted from 0 and the beat
    with index `latency` is rejected; every earlier beat is served normally.
    """
    def __init__(self):
        self.enabled = False
        self.mode = FaultMode.NONE
        self.latency = 0
        self.beats = 0

    def enable(self):
        self.enabled = True

    def disable(self):
        self.enabled = False

    def arm(self, mode: FaultMode, latency: int):
        self.mode = mode
        self.latency = latency
        self.enabled = mode is not FaultMode.NONE

    def begin(self):
        """Start of a new vector memory operation."""
        self.beats = 0

    def accept(self, addr: int, nbytes: int) -> bool:
        idx = self.beats
        self.beats += 1
        if not self.enabled or self.mode is FaultMode.NONE:
            return True
        return idx < self.latency


class FaultInjectionController:
    """Owns the fault policy of the sweep and arms the stub with it.
    - ALWAYS: fixed latency, advanced once per configuration point and wrapped
      into [1, max_latency]
    - RANDOM: latency drawn from the caller's generator in [0, burst_count];
      burst_count itself means the operation runs fault free
    - NONE: stub disabled
    """
    def __init__(self, stub: FaultInjectionStub, fixed_latency: int = 1, max_latency: int = 4,
                 trace: bool = False):
        self.stub = stub
        self.max_latency = max(1, max_latency)
        self.trace_enabled = trace
        self.tag = ""
        self.reset(fixed_latency)

    def reset(self, fixed_latency: int = 1):
        """Back to the start of a sweep: first fixed latency, stub disarmed."""
        self.fixed_latency = self._clamp(fixed_latency)
        self.quiesce()

    def _clamp(self, latency: int) -> int:
        return min(max(1, latency), self.max_latency)

    def configure(self, mode: Union[FaultMode, str, int], vl: int, burst_count: int,
                  rng: np.random.Generator) -> Optional[int]:
        """Pick the latency for the next operation, arm the stub and return it
        (None when no fault is injected)."""
        mode = FaultMode.parse(mode)
        if mode is FaultMode.NONE:
            self.quiesce()
            return None
        if mode is FaultMode.ALWAYS:
            latency = self.fixed_latency
            self.fixed_latency = (self.fixed_latency % self.max_latency) + 1
        else:
            latency = int(rng.integers(0, burst_count, endpoint=True))
        self.policy = FaultPolicy(mode, latency)
        self.stub.arm(mode, latency)
        if self.trace_enabled:
            print(f"{self.tag}FIC: mode={mode.value} vl={vl} bursts={burst_count} latency={latency}")
        return latency

    def arm(self, mode: Union[FaultMode, str, int], latency: int) -> Optional[int]:
        """Arm a caller-chosen latency without touching the sweep state.
        A fixed latency below 1 is raised to 1."""
        mode = FaultMode.parse(mode)
        if mode is FaultMode.NONE:
            self.quiesce()
            return None
        if mode is FaultMode.ALWAYS:
            latency = max(1, latency)
        self.policy = FaultPolicy(mode, latency)
        self.stub.arm(mode, latency)
        return latency

    def quiesce(self):
        """Fault-free configuration used for the recovery retry."""
        self.policy = FaultPolicy()
        self.stub.arm(FaultMode.NONE, 0)
