
from .types import (OpKind, FaultMode, FaultPolicy, VectorOperation, Transaction, BurstLog,
                    ExpectedState, ExceptionRecord, ExitStatus, OracleError, PolicySelectionError,
                    OracleInvariantError, VerificationMismatch, PeReq, PeResp, LSUException,
                    LOAD_PAGE_FAULT, STORE_PAGE_FAULT)
from .config import PlatformConfig, SweepConfig
from .memory import Memory, MemorySnapshot
from .burst import segment, burst_count
from .fault import FaultInjectionStub, FaultInjectionController
from .oracle import predict
from .vlsu import VLSU
from .engine import VerificationEngine
from .sweep import band_range, SweepDriver, SweepResult, PointRecord
