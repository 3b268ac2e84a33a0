
from typing import List, Tuple
from .types import PeReq


class AddrGen:
    """Address generator of the load/store units (unit-stride only).
    Elements are issued in order from vstart and packed into beats: consecutive
    elements share a beat while they fall in the same bus-width aligned window.
    """

    @staticmethod
    def element_addresses(req: PeReq) -> List[int]:
        return [req.base + i * req.eew for i in range(req.vstart, req.vl)]

    @staticmethod
    def beats(req: PeReq, bus_width: int) -> List[Tuple[int, List[int]]]:
        """Return [(beat address, [element indices])] in issue order."""
        out: List[Tuple[int, List[int]]] = []
        window = None
        for i, addr in zip(range(req.vstart, req.vl), AddrGen.element_addresses(req)):
            w = addr // bus_width
            if w != window:
                out.append((addr, []))
                window = w
            out[-1][1].append(i)
        return out
