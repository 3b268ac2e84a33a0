"""Expected-state oracle: what a precise exception must leave behind."""

from typing import Optional

from .types import BurstLog, ExpectedState, OracleInvariantError


def elements_covered(burst_log: BurstLog, covered_end: int) -> int:
    """Elements from vstart whose bytes all lie below `covered_end`."""
    if covered_end <= burst_log.start:
        return 0
    n = (covered_end - burst_log.start) // burst_log.eew
    return min(n, burst_log.vl - burst_log.vstart)


def predict(burst_log: BurstLog, latency: Optional[int]) -> ExpectedState:
    """Predict the state after one attempt whose first `latency` beats succeed.

    latency None (no injection) and latency >= len(burst_log) both mean the
    whole body completes and the resumption marker returns to 0.
    """
    vl, vstart = burst_log.vl, burst_log.vstart
    if latency is None or latency >= len(burst_log):
        return ExpectedState(
            elements_completed_pre_fault=vl - vstart,
            predicted_resumption_marker=0,
            fault_expected=False,
        )
    if latency < 0:
        raise OracleInvariantError(detail=f"negative fault latency {latency}")

    covered_end = burst_log[latency - 1].end if latency > 0 else burst_log.start
    done = elements_covered(burst_log, covered_end)
    marker = vstart + done
    if not vstart <= marker < vl:
        raise OracleInvariantError(
            detail=f"resumption marker {marker} outside [{vstart}, {vl}) with a fault pending "
                   f"(latency={latency}, bursts={len(burst_log)})")
    return ExpectedState(
        elements_completed_pre_fault=done,
        predicted_resumption_marker=marker,
        fault_expected=True,
        faulting_address=burst_log[latency].addr,
    )
