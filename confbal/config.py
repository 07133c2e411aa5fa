"""
Confidential Balance Protocol Client Configuration
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field, asdict
from typing import List, Optional

from confbal.codec.public_inputs import address_to_field
from confbal.constants import (
    DEFAULT_BB_PATH,
    DEFAULT_BSGS_BABY_STEPS,
    DEFAULT_NARGO_PATH,
    DEFAULT_RPC_TIMEOUT_SEC,
    HASHING_SCHEME_KECCAK,
    MAX_BALANCE,
    SUPPORTED_HASHING_SCHEMES,
)
from confbal.errors import MalformedPublicInputsError

logger = logging.getLogger(__name__)


@dataclass
class ProverConfig:
    """Proving toolchain configuration."""
    circuits_dir: str = "./circuits"
    nargo_path: str = DEFAULT_NARGO_PATH
    bb_path: str = DEFAULT_BB_PATH
    hashing_scheme: str = HASHING_SCHEME_KECCAK


@dataclass
class ChainConfig:
    """Chain access configuration."""
    rpc_url: str = "http://127.0.0.1:8545"
    contract_address: Optional[str] = None
    timeout_sec: float = DEFAULT_RPC_TIMEOUT_SEC


@dataclass
class BalanceConfig:
    """Balance recovery configuration."""
    max_balance: int = MAX_BALANCE
    bsgs_baby_steps: int = DEFAULT_BSGS_BABY_STEPS


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_size_mb: int = 10
    backup_count: int = 3


@dataclass
class ClientConfig:
    """
    Complete client configuration.

    Everything needed to prove balance transitions and read balances.
    """
    prover: ProverConfig = field(default_factory=ProverConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    balance: BalanceConfig = field(default_factory=BalanceConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        # Prover validation
        if not self.prover.circuits_dir:
            errors.append("circuits_dir cannot be empty")

        if self.prover.hashing_scheme not in SUPPORTED_HASHING_SCHEMES:
            errors.append(f"Unsupported hashing scheme: {self.prover.hashing_scheme}")

        # Chain validation
        if not self.chain.rpc_url.startswith(("http://", "https://")):
            errors.append(f"Invalid RPC URL: {self.chain.rpc_url}")

        if self.chain.contract_address is not None:
            try:
                address_to_field(self.chain.contract_address)
            except (MalformedPublicInputsError, ValueError):
                errors.append(f"Invalid contract address: {self.chain.contract_address}")

        if self.chain.timeout_sec <= 0:
            errors.append("timeout_sec must be positive")

        # Balance validation
        if not 0 < self.balance.max_balance <= MAX_BALANCE:
            errors.append(f"max_balance must be in [1, {MAX_BALANCE}]")

        if self.balance.bsgs_baby_steps < 1:
            errors.append("bsgs_baby_steps must be at least 1")

        # Log validation
        if not isinstance(getattr(logging, self.log.level.upper(), None), int):
            errors.append(f"Invalid log level: {self.log.level}")

        return errors

    def save(self, path: str) -> None:
        """Save configuration to file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: str) -> "ClientConfig":
        """Load configuration from file."""
        with open(path, 'r') as f:
            data = json.load(f)

        config = cls()

        if "prover" in data:
            config.prover = ProverConfig(**data["prover"])

        if "chain" in data:
            config.chain = ChainConfig(**data["chain"])

        if "balance" in data:
            config.balance = BalanceConfig(**data["balance"])

        if "log" in data:
            config.log = LogConfig(**data["log"])

        logger.info(f"Configuration loaded from {path}")
        return config

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {
            "prover": asdict(self.prover),
            "chain": asdict(self.chain),
            "balance": asdict(self.balance),
            "log": asdict(self.log),
        }


def setup_logging(config: LogConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler()]

    if config.file:
        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=handlers,
    )
