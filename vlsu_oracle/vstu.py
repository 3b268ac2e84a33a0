
from .types import PeReq, PeResp, LSUException
from .addrgen import AddrGen
from .fault import FaultInjectionStub
from .vector_regfile import VectorRegFile


class StoreUnit:
    """Behavioral unit-stride vector store unit.
    - Reads elements [vstart, vl) of req.vs and writes them to memory beat by beat.
    - A beat rejected by the fault stub is dropped and the store stops there;
      the exception carries the first element of that beat as the new vstart.
    """
    def __init__(self, mem, vrf: VectorRegFile, stub: FaultInjectionStub, bus_width: int):
        self.mem = mem
        self.vrf = vrf
        self.stub = stub
        self.bus_width = bus_width

    def execute(self, req: PeReq) -> PeResp:
        if req.op != "store" or req.vs is None:
            return PeResp(ok=False, info="invalid store request: missing vs or wrong op")
        committed = 0
        try:
            for addr, elems in AddrGen.beats(req, self.bus_width):
                nbytes = len(elems) * req.eew
                if not self.stub.accept(addr, nbytes):
                    ex = LSUException(kind="StorePageFault", detail=f"beat rejected at 0x{addr:x}",
                                      vstart=elems[0], addr=addr)
                    return PeResp(ok=False, info=str(ex), committed=committed, exception=ex)
                data = b"".join(self.vrf.read_elem_bytes(req.vs, i, req.eew) for i in elems)
                self.mem.write_bytes(addr, data)
                committed += len(elems)
            return PeResp(ok=True, info=f"stored {committed} elements from v{req.vs}", committed=committed)
        except IndexError as e:
            ex = LSUException(kind="Memory", detail=str(e))
            return PeResp(ok=False, info=str(ex), committed=committed, exception=ex)
