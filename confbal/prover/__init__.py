"""
Confidential Balance Protocol Proof Pipeline
"""

from confbal.prover.backend import (
    CircuitId,
    ProvingBackend,
    NargoBackend,
    split_public_inputs,
)
from confbal.prover.reference import ReferenceCircuitBackend
from confbal.prover.orchestrator import (
    ProofState,
    ProofJob,
    DepositParams,
    WithdrawParams,
    TransferParams,
    BackendCache,
    ProofOrchestrator,
    truncate_amount,
    build_deposit_inputs,
    build_transfer_inputs,
)

__all__ = [
    # Backends
    "CircuitId",
    "ProvingBackend",
    "NargoBackend",
    "ReferenceCircuitBackend",
    "split_public_inputs",
    # Orchestration
    "ProofState",
    "ProofJob",
    "DepositParams",
    "WithdrawParams",
    "TransferParams",
    "BackendCache",
    "ProofOrchestrator",
    "truncate_amount",
    "build_deposit_inputs",
    "build_transfer_inputs",
]
