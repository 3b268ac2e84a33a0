import numpy as np
import pytest

from vlsu_oracle import (FaultMode, FaultInjectionStub, FaultInjectionController,
                         PolicySelectionError, ExitStatus)


@pytest.mark.parametrize("value,mode", [
    ("none", FaultMode.NONE),
    ("always", FaultMode.ALWAYS),
    ("fixed", FaultMode.ALWAYS),
    ("RANDOM", FaultMode.RANDOM),
    (0, FaultMode.NONE),
    (1, FaultMode.ALWAYS),
    (2, FaultMode.RANDOM),
    (np.int64(1), FaultMode.ALWAYS),
    (np.uint8(2), FaultMode.RANDOM),
    (FaultMode.RANDOM, FaultMode.RANDOM),
])
def test_parse_known_policies(value, mode):
    assert FaultMode.parse(value) is mode


@pytest.mark.parametrize("value", ["sometimes", "", 3, -1, np.int32(7), True, None, 1.0])
def test_parse_rejects_unknown_policies(value):
    with pytest.raises(PolicySelectionError) as ei:
        FaultMode.parse(value)
    assert ei.value.status == ExitStatus.POLICY_ERROR


def test_stub_rejects_from_latency_on():
    stub = FaultInjectionStub()
    stub.arm(FaultMode.ALWAYS, 2)
    stub.begin()
    assert [stub.accept(16 * i, 16) for i in range(4)] == [True, True, False, False]
    stub.begin()
    assert stub.accept(0, 16)


def test_disabled_stub_serves_everything():
    stub = FaultInjectionStub()
    stub.arm(FaultMode.ALWAYS, 0)
    stub.disable()
    stub.begin()
    assert all(stub.accept(0, 16) for _ in range(8))


def test_fixed_latency_advances_and_wraps():
    stub = FaultInjectionStub()
    ctrl = FaultInjectionController(stub, fixed_latency=3, max_latency=4)
    rng = np.random.default_rng(0)
    lats = [ctrl.configure("always", 8, 2, rng) for _ in range(6)]
    assert lats == [3, 4, 1, 2, 3, 4]
    assert ctrl.policy.mode is FaultMode.ALWAYS
    assert stub.enabled and stub.latency == 4


def test_reset_rewinds_fixed_latency():
    stub = FaultInjectionStub()
    ctrl = FaultInjectionController(stub, fixed_latency=2, max_latency=4)
    rng = np.random.default_rng(0)
    first = [ctrl.configure("always", 8, 2, rng) for _ in range(3)]
    ctrl.reset(2)
    assert not stub.enabled
    assert [ctrl.configure("always", 8, 2, rng) for _ in range(3)] == first == [2, 3, 4]


def test_fixed_latency_never_below_one():
    ctrl = FaultInjectionController(FaultInjectionStub(), fixed_latency=0, max_latency=3)
    rng = np.random.default_rng(0)
    assert ctrl.configure(FaultMode.ALWAYS, 8, 2, rng) == 1
    assert ctrl.arm(FaultMode.ALWAYS, 0) == 1
    assert ctrl.arm(FaultMode.RANDOM, 0) == 0


def test_random_latency_covers_zero_to_burst_count():
    ctrl = FaultInjectionController(FaultInjectionStub())
    rng = np.random.default_rng(1)
    lats = {ctrl.configure("random", 8, 3, rng) for _ in range(200)}
    assert lats == {0, 1, 2, 3}


def test_random_latency_is_reproducible():
    def draws(seed):
        ctrl = FaultInjectionController(FaultInjectionStub())
        rng = np.random.default_rng(seed)
        return [ctrl.configure("random", 16, 5, rng) for _ in range(50)]
    assert draws(42) == draws(42)


def test_none_policy_disarms_the_stub():
    stub = FaultInjectionStub()
    ctrl = FaultInjectionController(stub)
    ctrl.arm("always", 1)
    assert stub.enabled
    assert ctrl.configure("none", 8, 2, np.random.default_rng(0)) is None
    assert not stub.enabled
    assert ctrl.policy.latency is None


def test_unknown_policy_reaching_the_controller():
    ctrl = FaultInjectionController(FaultInjectionStub())
    with pytest.raises(PolicySelectionError):
        ctrl.configure("bursty", 8, 2, np.random.default_rng(0))
