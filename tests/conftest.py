"""
Confidential Balance Protocol Test Fixtures
"""

import pytest

from confbal.core.types import Ciphertext, KeyPair
from confbal.crypto.elgamal import derive_keypair, encrypt
from confbal.prover.backend import CircuitId
from confbal.prover.orchestrator import ProofOrchestrator
from confbal.prover.reference import ReferenceCircuitBackend

# Keeps discrete-log tables small; every test amount stays below it
TEST_BOUND = 10_000

SENDER_ADDRESS = "0x" + "11" * 20
RECEIVER_ADDRESS = "0x" + "22" * 20
TOKEN_ADDRESS = "0x" + "ab" * 20


@pytest.fixture
def test_bound() -> int:
    return TEST_BOUND


@pytest.fixture
def keypair() -> KeyPair:
    """Deterministic key pair from private key 42."""
    return derive_keypair(42)


@pytest.fixture
def other_keypair() -> KeyPair:
    """Second deterministic key pair."""
    return derive_keypair(7)


@pytest.fixture
def funded_balance(keypair) -> Ciphertext:
    """1000 units under `keypair`."""
    return encrypt(keypair.public_key, 1000, 123456789)


@pytest.fixture
def reference_factory():
    """Backend factory over the in-process reference circuits."""
    created = []

    def factory(circuit: CircuitId) -> ReferenceCircuitBackend:
        backend = ReferenceCircuitBackend(circuit, max_balance=TEST_BOUND)
        created.append(backend)
        return backend

    factory.created = created
    return factory


@pytest.fixture
def orchestrator(reference_factory) -> ProofOrchestrator:
    return ProofOrchestrator(reference_factory)


@pytest.fixture
def addresses() -> dict:
    return {
        "sender": SENDER_ADDRESS,
        "receiver": RECEIVER_ADDRESS,
        "token": TOKEN_ADDRESS,
    }
