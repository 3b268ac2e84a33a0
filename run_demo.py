#!/usr/bin/env python3
"""One faulting vector store and its recovery, step by step.

  - vl=8 x 32-bit elements stored from v8 to 0x2000, starting at vstart=2
  - the fault stub serves one beat and rejects the second
  - the store is retried with faults disabled and completes
"""
from vlsu_oracle import (VLSU, MemorySnapshot, FaultInjectionController, FaultMode,
                         VectorOperation, segment, predict)


def show_region(vlsu: VLSU, base: int, nbytes: int):
    data = vlsu.mem.read_bytes(base, nbytes)
    print(f"[0x{base:08x}..0x{base+nbytes-1:08x}] =", data.hex(" "))


def main():
    vlsu = VLSU()
    ctrl = FaultInjectionController(vlsu.stub)
    dst_base, eew, vs = 0x2000, 4, 8

    vl = vlsu.setvl(8, eew)
    snap = MemorySnapshot(vl, eew)
    vlsu.write_v(vs, snap.source, eew)
    vlsu.mem.write_elems(dst_base, snap.poison, eew)
    print("Before:")
    show_region(vlsu, dst_base, vl * eew)

    log = segment(vl, eew, vlsu.bus_width, 2, dst_base)
    print("Bursts:", [(hex(t.addr), t.nbytes) for t in log])
    latency = ctrl.arm(FaultMode.ALWAYS, 1)
    expected = predict(log, latency)
    print("Expected:", expected)

    vlsu.write_vstart(2)
    r = vlsu.issue("store", dst_base, vs)
    print("Attempt:", r.ok, r.info)
    print("vstart =", vlsu.read_vstart(), " exception =", vlsu.read_exception())
    show_region(vlsu, dst_base, vl * eew)

    ctrl.quiesce()
    vlsu.clear_exception()
    r = vlsu.issue("store", dst_base, vs)
    print("Retry:", r.ok, r.info)
    print("vstart =", vlsu.read_vstart(), " exception =", vlsu.read_exception())
    show_region(vlsu, dst_base, vl * eew)

    op = VectorOperation("store", eew, 8, vl, 2)
    done = (vlsu.mem.read_elems(dst_base, vl, eew)[op.vstart:] == snap.source[op.vstart:]).all()
    print("Body complete:", bool(done))
    print("Done.")


if __name__ == "__main__":
    main()
