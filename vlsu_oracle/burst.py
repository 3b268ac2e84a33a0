"""Burst segmentation model.

Splits the byte range touched by a unit-stride access into the bus
transactions the memory interface issues for it: a transaction never
crosses a bus-width aligned boundary, so the first one is short when the
start address is not bus aligned and the last one is short when the end
is not. This is the reference the platform is judged against; it depends
on nothing but its arguments.
"""

from .types import BurstLog, Transaction


def _is_pow2(x: int) -> bool:
    return x > 0 and (x & (x - 1)) == 0


def segment(vl: int, eew: int, bus_width: int, vstart: int, base: int = 0) -> BurstLog:
    """Return the BurstLog for elements [vstart, vl) of an access at `base`.

    With base=0 the transaction addresses are byte offsets into the operand,
    e.g. segment(8, 4, 16, 2) -> [(8, 8), (16, 16)].
    """
    if vl < 1:
        raise ValueError(f"vl must be >= 1, got {vl}")
    if not 0 <= vstart < vl:
        raise ValueError(f"vstart must be in [0, {vl}), got {vstart}")
    if not _is_pow2(eew):
        raise ValueError(f"eew must be a power of two, got {eew}")
    if bus_width <= 0 or bus_width % eew:
        raise ValueError(f"bus width {bus_width} is not a positive multiple of eew {eew}")
    if base % eew:
        raise ValueError(f"base 0x{base:x} is not aligned to eew {eew}")

    log = BurstLog(vl=vl, eew=eew, bus_width=bus_width, vstart=vstart, base=base)
    addr, end = log.start, log.end
    while addr < end:
        boundary = (addr // bus_width + 1) * bus_width
        nxt = min(boundary, end)
        log.transactions.append(Transaction(addr, nxt - addr))
        addr = nxt
    return log


def burst_count(vl: int, eew: int, bus_width: int, vstart: int, base: int = 0) -> int:
    """Closed form of len(segment(...)): bus windows touched by the byte range."""
    start = base + vstart * eew
    end = base + vl * eew
    return -(-end // bus_width) - start // bus_width
