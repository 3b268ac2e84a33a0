
from .types import PeReq, PeResp, LSUException
from .addrgen import AddrGen
from .fault import FaultInjectionStub
from .vector_regfile import VectorRegFile


class LoadUnit:
    """Behavioral unit-stride vector load unit.
    - Reads memory beat by beat and writes elements [vstart, vl) of req.vd.
    - Elements of a rejected beat, and everything after it, leave vd untouched.
    """
    def __init__(self, mem, vrf: VectorRegFile, stub: FaultInjectionStub, bus_width: int):
        self.mem = mem
        self.vrf = vrf
        self.stub = stub
        self.bus_width = bus_width

    def execute(self, req: PeReq) -> PeResp:
        if req.op != "load" or req.vd is None:
            return PeResp(ok=False, info="invalid load request: missing vd or wrong op")
        committed = 0
        try:
            for addr, elems in AddrGen.beats(req, self.bus_width):
                nbytes = len(elems) * req.eew
                if not self.stub.accept(addr, nbytes):
                    ex = LSUException(kind="LoadPageFault", detail=f"beat rejected at 0x{addr:x}",
                                      vstart=elems[0], addr=addr)
                    return PeResp(ok=False, info=str(ex), committed=committed, exception=ex)
                data = self.mem.read_bytes(addr, nbytes)
                for k, i in enumerate(elems):
                    self.vrf.write_elem_bytes(req.vd, i, data[k*req.eew:(k+1)*req.eew])
                committed += len(elems)
            return PeResp(ok=True, info=f"loaded {committed} elements into v{req.vd}", committed=committed)
        except IndexError as e:
            ex = LSUException(kind="Memory", detail=str(e))
            return PeResp(ok=False, info=str(ex), committed=committed, exception=ex)
