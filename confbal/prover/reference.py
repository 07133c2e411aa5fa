"""
Reference Circuit Backend (test double)

Evaluates the deposit, withdraw and transfer circuits' arithmetic in
Python and emits public inputs in the same order as the compiled
circuits. Proofs are keccak placeholders that only this class verifies;
nothing here is accepted by an on-chain verifier.

Use it to exercise the orchestrator and codec without the Noir toolchain.
"""

from __future__ import annotations
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from Crypto.Hash import keccak

from confbal.codec.public_inputs import field_to_hex, parse_field_element
from confbal.constants import AMOUNT_MAX_DIGITS, HASHING_SCHEME_KECCAK, MAX_BALANCE
from confbal.core.types import Ciphertext, Point, ProofBundle
from confbal.crypto.elgamal import (
    decrypt,
    derive_public_key,
    encrypt,
    homomorphic_add,
    homomorphic_subtract,
)
from confbal.errors import (
    ConfBalError,
    DecryptionFailedError,
    InvalidWitnessError,
    ProvingBackendError,
)
from confbal.prover.backend import CircuitId, ProvingBackend

logger = logging.getLogger(__name__)

PROOF_PREFIX = b"CONFBAL_REFERENCE_PROOF:"


def _keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


def _point(value: Dict[str, Any]) -> Point:
    return Point(parse_field_element(value["x"]), parse_field_element(value["y"]))


def _ciphertext(inputs: Dict[str, Any], prefix: str) -> Ciphertext:
    return Ciphertext(_point(inputs[f"{prefix}_x1"]), _point(inputs[f"{prefix}_x2"]))


def _flatten(*items: Any) -> List[str]:
    out: List[str] = []
    for item in items:
        if isinstance(item, Ciphertext):
            out.extend(_flatten(item.c1, item.c2))
        elif isinstance(item, Point):
            out.extend([field_to_hex(item.x), field_to_hex(item.y)])
        else:
            out.append(field_to_hex(item))
    return out


class ReferenceCircuitBackend(ProvingBackend):
    """
    In-process evaluation of the balance circuits.

    Args:
        circuit: Which circuit to evaluate
        max_balance: Search bound used to open the sender's old balance
        baby_steps: Optional cap on the discrete-log table size
    """

    def __init__(
        self,
        circuit: CircuitId,
        max_balance: int = MAX_BALANCE,
        baby_steps: Optional[int] = None,
    ):
        super().__init__(circuit)
        self.max_balance = max_balance
        self.baby_steps = baby_steps
        self.executions = 0

    def __repr__(self) -> str:
        return f"ReferenceCircuitBackend(circuit={self.circuit.value})"

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------

    def _fail(self, reason: str) -> InvalidWitnessError:
        return InvalidWitnessError(self.circuit.value, reason)

    def _check_owner(self, inputs: Dict[str, Any]) -> int:
        sk = parse_field_element(inputs["sender_priv_key"])
        try:
            derived = derive_public_key(sk)
        except ValueError as e:
            raise self._fail(str(e)) from e
        if derived != _point(inputs["sender_pubkey"]):
            raise self._fail("sender public key does not match private key")
        return sk

    def _check_amount(self, amount: int) -> int:
        if amount >= 10 ** AMOUNT_MAX_DIGITS:
            raise self._fail("amount exceeds digit budget")
        return amount

    def _open_balance(self, balance: Ciphertext, sk: int) -> int:
        try:
            return decrypt(balance, sk, self.max_balance, self.baby_steps)
        except DecryptionFailedError as e:
            raise self._fail("old balance cannot be opened with sender key") from e

    def _encrypt(self, public_key: Point, amount: int, randomness: Any) -> Ciphertext:
        try:
            return encrypt(public_key, amount, parse_field_element(randomness))
        except (ConfBalError, ValueError) as e:
            raise self._fail(str(e)) from e

    # ------------------------------------------------------------------
    # Circuits
    # ------------------------------------------------------------------

    def _deposit(self, inputs: Dict[str, Any]) -> List[str]:
        self._check_owner(inputs)
        public_key = _point(inputs["sender_pubkey"])
        old_balance = _ciphertext(inputs, "old_balance")
        amount = self._check_amount(parse_field_element(inputs["amount"]))

        delta = self._encrypt(public_key, amount, inputs["r_amount"])
        new_balance = homomorphic_add(old_balance, delta)

        return _flatten(
            public_key,
            old_balance,
            parse_field_element(inputs["sender_address"]),
            parse_field_element(inputs["token"]),
            amount,
            new_balance,
        )

    def _withdraw(self, inputs: Dict[str, Any]) -> List[str]:
        sk = self._check_owner(inputs)
        public_key = _point(inputs["sender_pubkey"])
        old_balance = _ciphertext(inputs, "old_balance")
        amount = self._check_amount(parse_field_element(inputs["amount"]))

        if self._open_balance(old_balance, sk) < amount:
            raise self._fail("insufficient balance")

        delta = self._encrypt(public_key, amount, inputs["r_amount"])
        new_balance = homomorphic_subtract(old_balance, delta)

        return _flatten(
            public_key,
            old_balance,
            parse_field_element(inputs["sender_address"]),
            parse_field_element(inputs["token"]),
            amount,
            new_balance,
        )

    def _transfer(self, inputs: Dict[str, Any]) -> List[str]:
        sk = self._check_owner(inputs)
        sender_key = _point(inputs["sender_pubkey"])
        receiver_key = _point(inputs["receiver_pubkey"])
        sender_old = _ciphertext(inputs, "sender_old_balance")
        receiver_old = _ciphertext(inputs, "receiver_old_balance")
        amount = self._check_amount(parse_field_element(inputs["transfer_amount"]))

        if self._open_balance(sender_old, sk) < amount:
            raise self._fail("insufficient balance")

        sender_new = homomorphic_subtract(
            sender_old, self._encrypt(sender_key, amount, inputs["r_amount_sender"])
        )
        receiver_new = homomorphic_add(
            receiver_old, self._encrypt(receiver_key, amount, inputs["r_amount_receiver"])
        )

        return _flatten(
            parse_field_element(inputs["receiver_address"]),
            receiver_key,
            receiver_old,
            sender_key,
            sender_old,
            parse_field_element(inputs["token"]),
            sender_new,
            receiver_new,
        )

    def _evaluator(self) -> Callable[[Dict[str, Any]], List[str]]:
        return {
            CircuitId.DEPOSIT: self._deposit,
            CircuitId.WITHDRAW: self._withdraw,
            CircuitId.TRANSFER: self._transfer,
        }[self.circuit]

    # ------------------------------------------------------------------
    # ProvingBackend
    # ------------------------------------------------------------------

    def _witness_bytes(self, public_inputs: List[str]) -> bytes:
        return json.dumps(
            {"circuit": self.circuit.value, "public_inputs": public_inputs},
            sort_keys=True,
        ).encode()

    def _proof_for(self, witness: bytes, hashing_scheme: str) -> bytes:
        return PROOF_PREFIX + _keccak256(hashing_scheme.encode() + b":" + witness)

    async def execute_witness(self, inputs: Dict[str, Any]) -> bytes:
        self.executions += 1
        logger.debug(f"Evaluating reference {self.circuit.value} circuit")
        try:
            public_inputs = self._evaluator()(inputs)
        except KeyError as e:
            raise self._fail(f"missing input {e.args[0]}") from e
        return self._witness_bytes(public_inputs)

    async def generate_proof(
        self,
        witness: bytes,
        hashing_scheme: str = HASHING_SCHEME_KECCAK,
    ) -> ProofBundle:
        try:
            data = json.loads(witness)
        except ValueError as e:
            raise ProvingBackendError(self.circuit.value, "witness is not a reference witness") from e
        if data.get("circuit") != self.circuit.value:
            raise ProvingBackendError(
                self.circuit.value, f"witness belongs to {data.get('circuit')}"
            )
        return ProofBundle(
            proof=self._proof_for(witness, hashing_scheme),
            public_inputs=tuple(data["public_inputs"]),
        )

    async def verify_proof(
        self,
        bundle: ProofBundle,
        hashing_scheme: str = HASHING_SCHEME_KECCAK,
    ) -> bool:
        witness = self._witness_bytes(list(bundle.public_inputs))
        return bundle.proof == self._proof_for(witness, hashing_scheme)
