"""
Confidential Balance Protocol Configuration Tests
"""

import json
import logging

from confbal.config import (
    BalanceConfig,
    ChainConfig,
    ClientConfig,
    LogConfig,
    ProverConfig,
    setup_logging,
)
from confbal.constants import DEFAULT_BSGS_BABY_STEPS, MAX_BALANCE


class TestClientConfig:
    """Tests for ClientConfig."""

    def test_defaults_valid(self):
        """Test default configuration validates."""
        config = ClientConfig()
        assert config.validate() == []
        assert config.prover.hashing_scheme == "keccak"
        assert config.balance.max_balance == MAX_BALANCE
        assert config.balance.bsgs_baby_steps == DEFAULT_BSGS_BABY_STEPS

    def test_validation_errors(self):
        """Test each invalid field is reported."""
        config = ClientConfig(
            prover=ProverConfig(circuits_dir="", hashing_scheme="sha256"),
            chain=ChainConfig(rpc_url="ftp://node", contract_address="0xnope", timeout_sec=0),
            balance=BalanceConfig(max_balance=0, bsgs_baby_steps=0),
            log=LogConfig(level="CHATTY"),
        )
        errors = config.validate()
        assert len(errors) == 8

    def test_save_load_roundtrip(self, tmp_path):
        """Test JSON persistence."""
        path = tmp_path / "confbal.json"
        config = ClientConfig(
            prover=ProverConfig(circuits_dir="/opt/circuits", hashing_scheme="poseidon2"),
            chain=ChainConfig(contract_address="0x" + "cc" * 20),
            balance=BalanceConfig(max_balance=10_000, bsgs_baby_steps=128),
        )
        config.save(str(path))

        assert json.loads(path.read_text())["prover"]["circuits_dir"] == "/opt/circuits"
        loaded = ClientConfig.load(str(path))
        assert loaded == config

    def test_partial_file(self, tmp_path):
        """Test missing sections fall back to defaults."""
        path = tmp_path / "partial.json"
        path.write_text(json.dumps({"chain": {"rpc_url": "https://rpc.example"}}))
        loaded = ClientConfig.load(str(path))
        assert loaded.chain.rpc_url == "https://rpc.example"
        assert loaded.prover == ProverConfig()


def test_setup_logging_file(tmp_path):
    """Test a rotating file handler is attached when configured."""
    root = logging.getLogger()
    saved, saved_level = root.handlers[:], root.level
    root.handlers = []
    try:
        log_file = tmp_path / "confbal.log"
        setup_logging(LogConfig(level="DEBUG", file=str(log_file)))
        logging.getLogger("confbal.test").debug("hello")
        for handler in root.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()
        assert root.level == logging.DEBUG
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = saved
        root.setLevel(saved_level)
