"""
Proving Backends

A proving backend is bound to one circuit and runs the two proof phases:
1. execute_witness: solve the circuit for concrete inputs
2. generate_proof: prove the witness

NargoBackend drives the Noir toolchain (`nargo` for witness execution,
`bb` for UltraHonk proving) as subprocesses.
"""

from __future__ import annotations
import asyncio
import logging
import tempfile
import uuid
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import toml

from confbal.constants import (
    DEFAULT_BB_PATH,
    DEFAULT_NARGO_PATH,
    FIELD_ELEMENT_SIZE,
    HASHING_SCHEME_KECCAK,
    SUPPORTED_HASHING_SCHEMES,
)
from confbal.codec.public_inputs import parse_field_element
from confbal.core.types import ProofBundle, field_to_bytes
from confbal.errors import (
    InvalidWitnessError,
    MalformedPublicInputsError,
    ProvingBackendError,
)

logger = logging.getLogger(__name__)

# Keep error messages readable when the toolchain dumps long traces
STDERR_TAIL_CHARS = 2000


class CircuitId(str, Enum):
    """Circuit identity; also the Noir package name."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    TRANSFER = "transfer"


class ProvingBackend(ABC):
    """Witness execution and proving for a single circuit."""

    def __init__(self, circuit: CircuitId):
        self.circuit = circuit

    async def initialize(self) -> None:
        """One-time setup, run by the backend cache before first use."""

    @abstractmethod
    async def execute_witness(self, inputs: Dict[str, Any]) -> bytes:
        """
        Solve the circuit for `inputs`.

        Raises:
            InvalidWitnessError: If the inputs violate a constraint
        """

    @abstractmethod
    async def generate_proof(
        self,
        witness: bytes,
        hashing_scheme: str = HASHING_SCHEME_KECCAK,
    ) -> ProofBundle:
        """
        Prove a solved witness.

        Raises:
            ProvingBackendError: If proving fails
        """

    @abstractmethod
    async def verify_proof(
        self,
        bundle: ProofBundle,
        hashing_scheme: str = HASHING_SCHEME_KECCAK,
    ) -> bool:
        """Verify a proof locally before submission."""


def split_public_inputs(raw: bytes) -> Tuple[str, ...]:
    """Split bb's concatenated 32-byte public inputs into hex field elements."""
    if len(raw) % FIELD_ELEMENT_SIZE:
        raise MalformedPublicInputsError(
            f"Public inputs length {len(raw)} is not a multiple of {FIELD_ELEMENT_SIZE}"
        )
    return tuple(
        "0x" + raw[i:i + FIELD_ELEMENT_SIZE].hex()
        for i in range(0, len(raw), FIELD_ELEMENT_SIZE)
    )


def _tail(stderr: bytes) -> str:
    text = stderr.decode("utf-8", "ignore").strip()
    return text[-STDERR_TAIL_CHARS:] or "no output"


class NargoBackend(ProvingBackend):
    """
    Noir toolchain backend.

    Expects the circuit package at `<circuits_dir>/<circuit>/` with its
    compiled artifact at `target/<circuit>.json` (compiled on first use if
    missing). Each witness execution writes its own uniquely named Prover
    file so concurrent requests do not clobber each other.
    """

    def __init__(
        self,
        circuit: CircuitId,
        circuits_dir: str,
        nargo_path: str = DEFAULT_NARGO_PATH,
        bb_path: str = DEFAULT_BB_PATH,
    ):
        super().__init__(circuit)
        self.program_dir = Path(circuits_dir) / circuit.value
        self.target_dir = self.program_dir / "target"
        self.bytecode_path = self.target_dir / f"{circuit.value}.json"
        self.nargo_path = nargo_path
        self.bb_path = bb_path
        self._vk_paths: Dict[str, Path] = {}

    def __repr__(self) -> str:
        return f"NargoBackend(circuit={self.circuit.value}, program_dir={self.program_dir})"

    async def _run(self, *cmd: str, cwd: Optional[Path] = None) -> Tuple[int, bytes, bytes]:
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
            )
        except FileNotFoundError as e:
            raise ProvingBackendError(self.circuit.value, f"executable not found: {cmd[0]}") from e
        stdout, stderr = await proc.communicate()
        return proc.returncode, stdout, stderr

    async def initialize(self) -> None:
        if not self.program_dir.is_dir():
            raise ProvingBackendError(
                self.circuit.value, f"circuit package not found: {self.program_dir}"
            )
        if self.bytecode_path.exists():
            return

        logger.info(f"Compiling circuit {self.circuit.value}")
        rc, _, stderr = await self._run(
            self.nargo_path, "compile", "--program-dir", str(self.program_dir)
        )
        if rc != 0 or not self.bytecode_path.exists():
            raise ProvingBackendError(self.circuit.value, f"nargo compile failed: {_tail(stderr)}")

    async def execute_witness(self, inputs: Dict[str, Any]) -> bytes:
        run_id = uuid.uuid4().hex
        prover_name = f"Prover_{run_id}"
        prover_file = self.program_dir / f"{prover_name}.toml"
        witness_file = self.target_dir / f"{run_id}.gz"

        prover_file.write_text(toml.dumps(inputs))
        try:
            rc, _, stderr = await self._run(
                self.nargo_path, "execute",
                "--program-dir", str(self.program_dir),
                "--prover-name", prover_name,
                run_id,
            )
            if rc != 0:
                raise InvalidWitnessError(self.circuit.value, _tail(stderr))
            return witness_file.read_bytes()
        finally:
            prover_file.unlink(missing_ok=True)
            witness_file.unlink(missing_ok=True)

    async def generate_proof(
        self,
        witness: bytes,
        hashing_scheme: str = HASHING_SCHEME_KECCAK,
    ) -> ProofBundle:
        _check_scheme(self.circuit, hashing_scheme)
        with tempfile.TemporaryDirectory(prefix="confbal-prove-") as tmp:
            tmp_dir = Path(tmp)
            witness_file = tmp_dir / "witness.gz"
            witness_file.write_bytes(witness)

            rc, _, stderr = await self._run(
                self.bb_path, "prove",
                "-b", str(self.bytecode_path),
                "-w", str(witness_file),
                "-o", str(tmp_dir),
                "--oracle_hash", hashing_scheme,
            )
            if rc != 0:
                raise ProvingBackendError(self.circuit.value, _tail(stderr))

            proof = (tmp_dir / "proof").read_bytes()
            public_inputs = split_public_inputs((tmp_dir / "public_inputs").read_bytes())

        return ProofBundle(proof=proof, public_inputs=public_inputs)

    async def _verification_key(self, hashing_scheme: str) -> Path:
        vk_path = self._vk_paths.get(hashing_scheme)
        if vk_path is not None:
            return vk_path

        out_dir = self.target_dir / f"vk_{hashing_scheme}"
        out_dir.mkdir(parents=True, exist_ok=True)
        rc, _, stderr = await self._run(
            self.bb_path, "write_vk",
            "-b", str(self.bytecode_path),
            "-o", str(out_dir),
            "--oracle_hash", hashing_scheme,
        )
        if rc != 0:
            raise ProvingBackendError(self.circuit.value, f"bb write_vk failed: {_tail(stderr)}")

        vk_path = out_dir / "vk"
        self._vk_paths[hashing_scheme] = vk_path
        return vk_path

    async def verify_proof(
        self,
        bundle: ProofBundle,
        hashing_scheme: str = HASHING_SCHEME_KECCAK,
    ) -> bool:
        _check_scheme(self.circuit, hashing_scheme)
        vk_path = await self._verification_key(hashing_scheme)
        with tempfile.TemporaryDirectory(prefix="confbal-verify-") as tmp:
            tmp_dir = Path(tmp)
            proof_file = tmp_dir / "proof"
            inputs_file = tmp_dir / "public_inputs"
            proof_file.write_bytes(bundle.proof)
            inputs_file.write_bytes(b"".join(
                field_to_bytes(parse_field_element(value))
                for value in bundle.public_inputs
            ))

            rc, _, stderr = await self._run(
                self.bb_path, "verify",
                "-k", str(vk_path),
                "-p", str(proof_file),
                "-i", str(inputs_file),
                "--oracle_hash", hashing_scheme,
            )
        if rc != 0:
            logger.warning(f"Proof rejected for {self.circuit.value}: {_tail(stderr)}")
        return rc == 0


def _check_scheme(circuit: CircuitId, hashing_scheme: str) -> None:
    if hashing_scheme not in SUPPORTED_HASHING_SCHEMES:
        raise ProvingBackendError(circuit.value, f"unsupported hashing scheme: {hashing_scheme}")
