import numpy as np
import pytest

import vlsu_oracle.sweep as sweep_mod
from vlsu_oracle import (SweepConfig, SweepDriver, PlatformConfig, ExitStatus, FaultMode,
                         OracleInvariantError, band_range)


def test_band_range_skips_the_middle():
    assert list(band_range(0, 100, 4)) == [0, 1, 2, 3, 96, 97, 98, 99]


def test_band_range_adds_boundary_points_once():
    got = list(band_range(0, 100, 4, boundary=(50, 2, 98, 150, -3, 50)))
    assert got == [0, 1, 2, 3, 96, 97, 98, 99, 50]


@pytest.mark.parametrize("lo,hi,band", [(0, 5, 4), (0, 3, 4), (1, 9, 4), (0, 8, 4), (0, 1, 1)])
def test_overlapping_bands_cover_the_range_once(lo, hi, band):
    got = list(band_range(lo, hi, band))
    assert sorted(got) == list(range(lo, hi))
    assert len(got) == len(set(got))


def test_band_range_never_yields_interior_values():
    lo, hi, band = 0, 129, 4
    boundary = (8, 9, 64)
    got = set(band_range(lo, hi, band, boundary))
    interior = set(range(lo + band, hi - band)) - set(boundary)
    assert not got & interior


def test_band_range_exhaustive_and_pure():
    assert list(band_range(3, 9)) == list(range(3, 9))
    assert list(band_range(0, 50, 3, (7,))) == list(band_range(0, 50, 3, (7,)))


@pytest.mark.parametrize("kind", ["store", "load"])
@pytest.mark.parametrize("fault_mode", ["none", "always", "random"])
@pytest.mark.parametrize("eew", [1, 4, 8])
def test_bounded_sweep_passes(kind, fault_mode, eew):
    result = SweepDriver(SweepConfig(kind=kind, eew=eew, fault_mode=fault_mode, seed=7)).run()
    assert result.ok, result.summary()
    assert result.points == len(result.records) > 0
    if fault_mode == "none":
        assert not any(r.faulted for r in result.records)
        assert all(r.marker == 0 and r.latency is None for r in result.records)
    else:
        assert any(r.faulted for r in result.records)


def test_exhaustive_sweep_visits_every_point():
    cfg = SweepConfig(eew=4, elmmax=12, mode="exhaustive", fault_mode="random", seed=3)
    result = SweepDriver(cfg).run()
    assert result.ok, result.summary()
    assert result.points == sum(range(1, 14))
    assert {(r.avl, r.vstart) for r in result.records} == \
        {(avl, vs) for avl in range(1, 14) for vs in range(avl)}


def test_avl_past_vlmax_is_clamped():
    cfg = SweepConfig(eew=8, mode="exhaustive", fault_mode="always",
                      platform=PlatformConfig(VLEN=256))
    result = SweepDriver(cfg).run()
    assert result.ok, result.summary()
    assert max(r.avl for r in result.records) == 5
    assert max(r.vl for r in result.records) == 4


def test_bounded_sweep_only_touches_bands_and_boundaries():
    cfg = SweepConfig(eew=1, band=3, fault_mode="none")
    driver = SweepDriver(cfg)
    result = driver.run()
    assert result.ok
    avls = {r.avl for r in result.records}
    elmmax = cfg.resolve_elmmax()
    allowed = set(range(1, 4)) | set(range(elmmax - 1, elmmax + 2)) | {16, 17}
    assert avls == allowed


def test_misaligned_operand_base():
    cfg = SweepConfig(kind="store", eew=4, dst_base=0x4004, fault_mode="always", max_latency=3)
    result = SweepDriver(cfg).run()
    assert result.ok, result.summary()
    assert any(r.faulted and r.vstart == 0 for r in result.records)


def test_random_sweep_is_reproducible():
    a = SweepDriver(SweepConfig(fault_mode="random", seed=11)).run()
    b = SweepDriver(SweepConfig(fault_mode="random", seed=11)).run()
    assert a.records == b.records


def test_random_policy_draws_the_no_fault_latency():
    result = SweepDriver(SweepConfig(fault_mode="random", mode="exhaustive", seed=5)).run()
    assert result.ok
    no_fault_draws = [r for r in result.records if r.latency == r.bursts]
    assert no_fault_draws
    assert all(not r.faulted and r.marker == 0 for r in no_fault_draws)


def test_unknown_policy_aborts_before_any_point():
    result = SweepDriver(SweepConfig(fault_mode="sometimes")).run()
    assert result.status == ExitStatus.POLICY_ERROR
    assert result.points == 0
    assert not result.ok


def test_oracle_invariant_aborts_the_sweep(monkeypatch):
    def broken_predict(burst_log, latency):
        raise OracleInvariantError(detail="marker out of range")
    monkeypatch.setattr(sweep_mod, "predict", broken_predict)
    result = SweepDriver(SweepConfig()).run()
    assert result.status == ExitStatus.ORACLE_INVARIANT
    assert result.points == 1
    assert result.records == []


def test_invalid_config_is_rejected():
    with pytest.raises(ValueError):
        SweepDriver(SweepConfig(eew=3))
    with pytest.raises(ValueError):
        SweepDriver(SweepConfig(eew=4, dst_base=0x4002))
    with pytest.raises(ValueError):
        SweepDriver(SweepConfig(elmmax=1000))


def test_drain_advances_by_one_burst_per_attempt():
    driver = SweepDriver(SweepConfig(kind="store", eew=4))
    assert driver.drain(avl=5, vstart=0, latency=0) == [4, 0]
    assert driver.drain(avl=32, vstart=0, latency=1) == [4, 8, 12, 16, 20, 24, 28, 0]


def test_drain_from_misaligned_vstart():
    driver = SweepDriver(SweepConfig(kind="load", eew=4))
    assert driver.drain(avl=8, vstart=2, latency=1) == [4, 0]
    assert driver.drain(avl=24, vstart=1, latency=2) == [8, 16, 0]


def test_drain_short_body_completes_at_once():
    driver = SweepDriver(SweepConfig(kind="store", eew=1))
    assert driver.drain(avl=5, vstart=0, latency=1) == [0]


def test_trace_output(capsys):
    cfg = SweepConfig(band=1, fault_mode="always", trace=True)
    assert SweepDriver(cfg).run().ok
    out = capsys.readouterr().out
    assert "SWEEP: avl=1 vl=1 vstart=0" in out
    assert "VLSU: store" in out


@pytest.mark.parametrize("fault_mode", ["random", "always"])
def test_rerunning_a_driver_repeats_the_sweep(fault_mode):
    driver = SweepDriver(SweepConfig(fault_mode=fault_mode, seed=11, fixed_latency=2))
    a = driver.run()
    b = driver.run()
    assert a.ok and b.ok
    assert a.points == b.points == len(b.records)
    assert a.records == b.records
    assert b.records == SweepDriver(SweepConfig(fault_mode=fault_mode, seed=11, fixed_latency=2)).run().records


def test_component_trace_lines_carry_the_point_counter(capsys):
    cfg = SweepConfig(band=1, fault_mode="always", trace=True)
    result = SweepDriver(cfg).run()
    lines = capsys.readouterr().out.splitlines()
    assert lines and all(line.startswith("[cfg=") for line in lines)
    last = f"[cfg={result.points}] "
    assert any(line.startswith(last + "VLSU: store") for line in lines)
    assert any(line.startswith(last + "FIC: mode=always") for line in lines)
