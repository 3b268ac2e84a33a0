"""Configuration sweep over (avl, vstart).

Bounded mode exercises `band` values at the low end and at the high end of
each range plus a few explicit boundary points, and nothing strictly inside
the skipped middle. Exhaustive mode walks every value.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple
import numpy as np

from .config import SweepConfig
from .memory import MemorySnapshot
from .vlsu import VLSU
from .burst import segment
from .fault import FaultInjectionController
from .oracle import predict
from .engine import VerificationEngine
from .types import (FaultMode, VectorOperation, ExitStatus, OracleError, OracleInvariantError)


def band_range(lo: int, hi: int, band: Optional[int] = None,
               boundary: Iterable[int] = ()) -> Iterator[int]:
    """Yield values of [lo, hi): the low band, then the high band, then any
    boundary point not already yielded. band=None yields the whole range."""
    if band is None:
        yield from range(lo, hi)
        return
    low_end = min(lo + band, hi)
    high_start = max(hi - band, low_end)
    yield from range(lo, low_end)
    yield from range(high_start, hi)
    for p in sorted(set(boundary)):
        if low_end <= p < high_start:
            yield p


@dataclass
class PointRecord:
    avl: int
    vl: int
    vstart: int
    latency: Optional[int]
    bursts: int
    faulted: bool
    marker: int


@dataclass
class SweepResult:
    status: ExitStatus
    points: int
    records: List[PointRecord] = field(default_factory=list)
    error: Optional[OracleError] = None

    @property
    def ok(self) -> bool:
        return self.status is ExitStatus.PASS

    def summary(self) -> str:
        if self.ok:
            faults = sum(1 for r in self.records if r.faulted)
            return f"PASS: {self.points} configuration points, {faults} with an injected fault"
        return f"FAIL({int(self.status)} {self.status.name}) after {self.points} points: {self.error}"


class SweepDriver:
    """Runs one attempt per (avl, vstart), plus one fault-free retry when the
    attempt faulted, in the order: reset CSRs, configure the fault policy,
    reload the snapshot, issue, predict, verify, recover, verify again."""

    def __init__(self, cfg: SweepConfig, vlsu: Optional[VLSU] = None):
        cfg.validate()
        self.cfg = cfg
        self.vlsu = vlsu if vlsu is not None else VLSU(cfg.platform, trace=cfg.trace)
        self.elmmax = cfg.resolve_elmmax()
        self.base = cfg.operand_base
        self.vreg = cfg.vs if cfg.kind == "store" else cfg.vd
        self.rng = np.random.default_rng(cfg.seed)
        self.controller = FaultInjectionController(self.vlsu.stub, cfg.fixed_latency, cfg.max_latency,
                                                   trace=cfg.trace)
        self.snapshot = MemorySnapshot(cfg.span(), cfg.eew)
        self.engine = VerificationEngine(self.vlsu, self.snapshot, self.base, self.vreg, trace=cfg.trace)
        self.points = 0
        self.trace_enabled = cfg.trace

    # ---------- enumeration ----------
    def _band(self) -> Optional[int]:
        return None if self.cfg.mode == "exhaustive" else self.cfg.band

    def _first_bus_boundary(self) -> int:
        """Index of the first element that starts a bus window."""
        bus = self.vlsu.bus_width
        return ((-self.base) % bus) // self.cfg.eew or bus // self.cfg.eew

    def avl_values(self) -> Iterator[int]:
        k = self._first_bus_boundary()
        points = tuple(self.cfg.boundary_points) + (k, k + 1)
        return band_range(1, self.elmmax + 2, self._band(), points)

    def vstart_values(self, vl: int) -> Iterator[int]:
        k = self._first_bus_boundary()
        return band_range(0, vl, self._band(), (k - 1, k, vl // 2))

    def points_iter(self) -> Iterator[Tuple[int, int]]:
        for avl in self.avl_values():
            vl = min(avl, self.vlsu.vlmax(self.cfg.eew))
            for vstart in self.vstart_values(vl):
                yield avl, vstart

    # ---------- one configuration point ----------
    def _load_snapshot(self):
        cfg, snap = self.cfg, self.snapshot
        snap.reinit()
        if cfg.kind == "store":
            self.vlsu.write_v(cfg.vs, snap.source, cfg.eew)
            self.vlsu.mem.write_elems(cfg.dst_base, snap.poison, cfg.eew)
        else:
            self.vlsu.mem.write_elems(cfg.src_base, snap.source, cfg.eew)
            self.vlsu.write_v(cfg.vd, snap.poison, cfg.eew)

    def run_point(self, avl: int, vstart: int) -> PointRecord:
        cfg = self.cfg
        vl = self.vlsu.setvl(avl, cfg.eew)
        self.vlsu.write_vstart(0)
        self.vlsu.clear_exception()
        op = VectorOperation(cfg.kind, cfg.eew, avl, vl, vstart)
        self._set_tag(f"[cfg={self.points}] ")

        burst_log = segment(vl, cfg.eew, self.vlsu.bus_width, vstart, self.base)
        latency = self.controller.configure(cfg.fault_mode, vl, len(burst_log), self.rng)
        self._load_snapshot()
        if self.trace_enabled:
            print(f"[cfg={self.points}] SWEEP: avl={avl} vl={vl} vstart={vstart} "
                  f"latency={latency} bursts={len(burst_log)}")

        self.vlsu.write_vstart(vstart)
        self.vlsu.issue(cfg.kind, self.base, self.vreg)
        expected = predict(burst_log, latency)
        self.engine.check_attempt(op, expected)
        if expected.fault_expected:
            self.controller.quiesce()
            self.engine.recover(op)
        self.engine.check_complete(op, recovered=expected.fault_expected)

        return PointRecord(avl, vl, vstart, latency, len(burst_log), expected.fault_expected,
                           expected.predicted_resumption_marker)

    def drain(self, avl: int, vstart: int = 0, latency: int = 1) -> List[int]:
        """Keep faulting the same instruction with a fixed latency, resuming from
        the hardware vstart each time, until an attempt completes. Returns the
        resumption marker after every attempt (the last one is 0)."""
        cfg = self.cfg
        vl = self.vlsu.setvl(avl, cfg.eew)
        self.vlsu.clear_exception()
        op = VectorOperation(cfg.kind, cfg.eew, avl, vl, vstart)
        self._load_snapshot()

        markers: List[int] = []
        cur = vstart
        for _ in range(vl - vstart + 1):
            burst_log = segment(vl, cfg.eew, self.vlsu.bus_width, cur, self.base)
            lat = self.controller.arm(FaultMode.ALWAYS, latency)
            self.vlsu.clear_exception()
            self.vlsu.write_vstart(cur)
            self.vlsu.issue(cfg.kind, self.base, self.vreg)
            expected = predict(burst_log, lat)
            self.engine.check_attempt(VectorOperation(cfg.kind, cfg.eew, avl, vl, cur), expected,
                                      origin=vstart)
            markers.append(expected.predicted_resumption_marker)
            if not expected.fault_expected:
                self.controller.quiesce()
                self.engine.check_complete(op)
                return markers
            if expected.predicted_resumption_marker <= cur:
                break
            cur = expected.predicted_resumption_marker
        self.controller.quiesce()
        raise OracleInvariantError(detail=f"no forward progress draining avl={avl} from vstart={vstart}")

    # ---------- whole sweep ----------
    def reset(self):
        """Rewind per-sweep state so that every run of the same config is identical."""
        self.points = 0
        self.rng = np.random.default_rng(self.cfg.seed)
        self.controller.reset(self.cfg.fixed_latency)
        self._set_tag("")

    def _set_tag(self, tag: str):
        self.vlsu.tag = self.controller.tag = self.engine.tag = tag

    def run(self) -> SweepResult:
        self.reset()
        records: List[PointRecord] = []
        try:
            FaultMode.parse(self.cfg.fault_mode)
            for avl, vstart in self.points_iter():
                self.points += 1
                records.append(self.run_point(avl, vstart))
        except OracleError as e:
            if self.trace_enabled:
                print(f"[cfg={self.points}] SWEEP: abort {e}")
            return SweepResult(e.status, self.points, records, e)
        return SweepResult(ExitStatus.PASS, self.points, records)
