"""
Proof Orchestrator

Produces a ProofBundle for a deposit, withdraw or transfer:
1. Validate and truncate the amount
2. Build the circuit input map (decimal strings)
3. Execute the witness            IDLE -> EXECUTING
4. Prove the witness              EXECUTING -> PROVING -> DONE

Any failure moves the job to FAILED and propagates. Nothing is retried;
proving is deterministic given identical inputs.
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from confbal.codec.public_inputs import (
    FieldLike,
    address_to_field,
    encode_deposit_layout,
    encode_transfer_layout,
)
from confbal.config import ProverConfig
from confbal.constants import (
    AMOUNT_MAX_DIGITS,
    AMOUNT_TRUNCATED_DIGITS,
    HASHING_SCHEME_KECCAK,
)
from confbal.core.types import Ciphertext, EncryptedBalance, Point, ProofBundle
from confbal.crypto.elgamal import Scalar, parse_scalar
from confbal.errors import (
    AmountTooLargeError,
    ConfBalError,
    InvalidWitnessError,
    ProvingBackendError,
)
from confbal.prover.backend import CircuitId, NargoBackend, ProvingBackend

logger = logging.getLogger(__name__)

BalanceLike = Union[Ciphertext, EncryptedBalance, bytes]
BackendFactory = Callable[[CircuitId], ProvingBackend]
StateCallback = Callable[[CircuitId, "ProofState"], None]


class ProofState(Enum):
    """Lifecycle of a single proof request."""
    IDLE = auto()
    EXECUTING = auto()
    PROVING = auto()
    DONE = auto()
    FAILED = auto()


@dataclass
class ProofJob:
    """Bookkeeping for one proof request."""
    circuit: CircuitId
    state: ProofState = ProofState.IDLE
    started_at: float = field(default_factory=time.monotonic)
    finished_at: Optional[float] = None
    error: Optional[ConfBalError] = None

    @property
    def elapsed(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at


# ==============================================================================
# Parameters
# ==============================================================================

@dataclass
class DepositParams:
    """
    Deposit inputs.

    amount is in raw token units; it is truncated before entering the
    circuit. old_balance may be a Ciphertext or the 128-byte wire value.
    """
    sender_private_key: Scalar
    randomness: Scalar
    sender_public_key: Point
    old_balance: BalanceLike
    sender_address: FieldLike
    token: FieldLike
    amount: int


@dataclass
class WithdrawParams(DepositParams):
    """Withdraw inputs; same shape as a deposit."""


@dataclass
class TransferParams:
    """
    Transfer inputs.

    randomness_sender and randomness_receiver must differ.
    """
    sender_private_key: Scalar
    transfer_amount: int
    randomness_sender: Scalar
    randomness_receiver: Scalar
    receiver_address: FieldLike
    receiver_public_key: Point
    receiver_old_balance: BalanceLike
    sender_public_key: Point
    sender_old_balance: BalanceLike
    token: FieldLike


def truncate_amount(amount: int) -> int:
    """
    Drop the low decimal digits the contract rescales away.

    Raises:
        ValueError: If amount is negative
        AmountTooLargeError: If more than AMOUNT_MAX_DIGITS digits remain
    """
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")
    truncated = amount // 10 ** AMOUNT_TRUNCATED_DIGITS
    if len(str(truncated)) > AMOUNT_MAX_DIGITS:
        raise AmountTooLargeError(truncated, AMOUNT_MAX_DIGITS)
    return truncated


def _as_ciphertext(balance: BalanceLike) -> Ciphertext:
    if isinstance(balance, Ciphertext):
        return balance
    if isinstance(balance, EncryptedBalance):
        return balance.to_ciphertext()
    return EncryptedBalance(bytes(balance)).to_ciphertext()


def _balance_inputs(prefix: str, balance: BalanceLike) -> Dict[str, Any]:
    c1, c2 = _as_ciphertext(balance).to_circuit()
    return {f"{prefix}_x1": c1, f"{prefix}_x2": c2}


def _address(value: FieldLike) -> str:
    return str(address_to_field(value))


def build_deposit_inputs(params: DepositParams, amount: int) -> Dict[str, Any]:
    """Circuit input map for deposit and withdraw."""
    inputs: Dict[str, Any] = {
        "sender_priv_key": str(parse_scalar(params.sender_private_key)),
        "r_amount": str(parse_scalar(params.randomness)),
        "sender_pubkey": params.sender_public_key.to_circuit(),
    }
    inputs.update(_balance_inputs("old_balance", params.old_balance))
    inputs["sender_address"] = _address(params.sender_address)
    inputs["token"] = _address(params.token)
    inputs["amount"] = str(amount)
    return inputs


def build_transfer_inputs(params: TransferParams, amount: int) -> Dict[str, Any]:
    """Circuit input map for transfer."""
    r_sender = parse_scalar(params.randomness_sender)
    r_receiver = parse_scalar(params.randomness_receiver)
    if r_sender == r_receiver:
        raise InvalidWitnessError(
            CircuitId.TRANSFER.value, "sender and receiver randomness must differ"
        )

    inputs: Dict[str, Any] = {
        "sender_priv_key": str(parse_scalar(params.sender_private_key)),
        "transfer_amount": str(amount),
        "r_amount_sender": str(r_sender),
        "r_amount_receiver": str(r_receiver),
        "receiver_address": _address(params.receiver_address),
        "receiver_pubkey": params.receiver_public_key.to_circuit(),
    }
    inputs.update(_balance_inputs("receiver_old_balance", params.receiver_old_balance))
    inputs["sender_pubkey"] = params.sender_public_key.to_circuit()
    inputs.update(_balance_inputs("sender_old_balance", params.sender_old_balance))
    inputs["token"] = _address(params.token)
    return inputs


# ==============================================================================
# Backend cache
# ==============================================================================

class BackendCache:
    """
    One initialized backend per circuit, created on first use.

    Concurrent first callers for the same circuit wait on a per-circuit
    lock, so each backend is built and initialized exactly once.
    """

    def __init__(self, factory: BackendFactory):
        self._factory = factory
        self._backends: Dict[CircuitId, ProvingBackend] = {}
        self._locks: Dict[CircuitId, asyncio.Lock] = {}

    def __contains__(self, circuit: CircuitId) -> bool:
        return circuit in self._backends

    def __len__(self) -> int:
        return len(self._backends)

    async def get(self, circuit: CircuitId) -> ProvingBackend:
        backend = self._backends.get(circuit)
        if backend is not None:
            return backend

        lock = self._locks.setdefault(circuit, asyncio.Lock())
        async with lock:
            backend = self._backends.get(circuit)
            if backend is None:
                logger.debug(f"Initializing backend for {circuit.value}")
                backend = self._factory(circuit)
                await backend.initialize()
                self._backends[circuit] = backend
        return backend

    def clear(self) -> None:
        self._backends.clear()
        self._locks.clear()


# ==============================================================================
# Orchestrator
# ==============================================================================

class ProofOrchestrator:
    """
    Drives witness execution and proving for the three balance circuits.

    Args:
        backend_factory: Builds the backend for a circuit on first use
        hashing_scheme: Oracle hash passed to the prover ("keccak" for
                        on-chain verification)
        on_state_change: Optional observer called on every state transition

    last_job holds the most recent ProofJob, including its error on failure.
    """

    def __init__(
        self,
        backend_factory: BackendFactory,
        hashing_scheme: str = HASHING_SCHEME_KECCAK,
        on_state_change: Optional[StateCallback] = None,
    ):
        self.backends = BackendCache(backend_factory)
        self.hashing_scheme = hashing_scheme
        self.on_state_change = on_state_change
        self.last_job: Optional[ProofJob] = None

    @classmethod
    def from_config(
        cls,
        config: ProverConfig,
        on_state_change: Optional[StateCallback] = None,
    ) -> ProofOrchestrator:
        """Build an orchestrator over the Noir toolchain from a ProverConfig."""
        def factory(circuit: CircuitId) -> ProvingBackend:
            return NargoBackend(
                circuit,
                circuits_dir=config.circuits_dir,
                nargo_path=config.nargo_path,
                bb_path=config.bb_path,
            )

        return cls(factory, hashing_scheme=config.hashing_scheme, on_state_change=on_state_change)

    def _transition(self, job: ProofJob, state: ProofState) -> None:
        job.state = state
        logger.debug(f"{job.circuit.value}: {state.name}")
        if self.on_state_change:
            self.on_state_change(job.circuit, state)

    async def _phase(
        self,
        job: ProofJob,
        state: ProofState,
        step: Awaitable,
        wrap: Callable[[str], ConfBalError],
    ):
        self._transition(job, state)
        try:
            return await step
        except ConfBalError as e:
            job.error = e
            raise
        except Exception as e:
            job.error = wrap(f"{type(e).__name__}: {e}")
            raise job.error from e

    async def _execute(self, circuit: CircuitId, inputs: Dict[str, Any]):
        backend = await self.backends.get(circuit)
        return backend, await backend.execute_witness(inputs)

    async def _run(self, circuit: CircuitId, inputs: Dict[str, Any]) -> ProofBundle:
        job = ProofJob(circuit)
        self.last_job = job
        try:
            # Backend setup counts as execution; a failed setup is EXECUTING -> FAILED
            backend, witness = await self._phase(
                job, ProofState.EXECUTING,
                self._execute(circuit, inputs),
                lambda reason: InvalidWitnessError(circuit.value, reason),
            )
            bundle = await self._phase(
                job, ProofState.PROVING,
                backend.generate_proof(witness, self.hashing_scheme),
                lambda reason: ProvingBackendError(circuit.value, reason),
            )
        except Exception as e:
            job.finished_at = time.monotonic()
            self._transition(job, ProofState.FAILED)
            logger.warning(f"{circuit.value} proof failed after {job.elapsed:.2f}s: {job.error or e}")
            raise

        job.finished_at = time.monotonic()
        self._transition(job, ProofState.DONE)
        logger.info(
            f"{circuit.value} proof generated: {len(bundle.proof)} bytes, "
            f"{len(bundle.public_inputs)} public inputs, {job.elapsed:.2f}s"
        )
        return bundle

    async def generate_deposit_proof(self, params: DepositParams) -> ProofBundle:
        amount = truncate_amount(params.amount)
        return await self._run(CircuitId.DEPOSIT, build_deposit_inputs(params, amount))

    async def generate_withdraw_proof(self, params: WithdrawParams) -> ProofBundle:
        amount = truncate_amount(params.amount)
        return await self._run(CircuitId.WITHDRAW, build_deposit_inputs(params, amount))

    async def generate_transfer_proof(self, params: TransferParams) -> ProofBundle:
        amount = truncate_amount(params.transfer_amount)
        return await self._run(CircuitId.TRANSFER, build_transfer_inputs(params, amount))

    async def verify_proof(self, circuit: CircuitId, bundle: ProofBundle) -> bool:
        backend = await self.backends.get(circuit)
        return await backend.verify_proof(bundle, self.hashing_scheme)

    @staticmethod
    def encode_for_contract(circuit: CircuitId, bundle: ProofBundle) -> bytes:
        """Contract calldata for the bundle's public inputs."""
        if circuit is CircuitId.TRANSFER:
            return encode_transfer_layout(bundle.public_inputs)
        return encode_deposit_layout(bundle.public_inputs)
