"""
Confidential Balance Protocol Command Line

    confbal keygen [--seed N]
    confbal encrypt --pubkey HEX AMOUNT [--randomness R]
    confbal decrypt --key SK BALANCE_HEX
    confbal balance --key SK --token ADDR --user ADDR
    confbal encode {deposit,transfer} INPUT... [--decode]
"""

from __future__ import annotations
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

from confbal.balance.recovery import BalanceReader, recover_balance
from confbal.chain.rpc import RpcClient
from confbal.codec.public_inputs import (
    decode_deposit_layout,
    decode_transfer_layout,
    encode_deposit_layout,
    encode_transfer_layout,
    layout_words,
)
from confbal.config import ClientConfig, setup_logging
from confbal.core.types import EncryptedBalance, Point
from confbal.crypto.elgamal import derive_keypair, encrypt, generate_randomness, parse_scalar
from confbal.errors import ConfBalError

logger = logging.getLogger(__name__)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def _layout_view(layout) -> dict:
    def convert(value):
        if isinstance(value, dict):
            return {k: convert(v) for k, v in value.items()}
        if isinstance(value, int):
            return f"0x{value:064x}"
        return value
    return convert(asdict(layout))


def cmd_keygen(args, config: ClientConfig) -> int:
    keypair = derive_keypair(args.seed)
    _print_json({
        "private_key": keypair.private_key_hex(),
        "public_key": keypair.public_key.to_hex(),
        "public_key_bytes": "0x" + keypair.public_key.to_bytes().hex(),
    })
    return 0


def cmd_encrypt(args, config: ClientConfig) -> int:
    public_key = Point.from_bytes(bytes.fromhex(args.pubkey.removeprefix("0x")))
    randomness = parse_scalar(args.randomness) if args.randomness else generate_randomness()
    ciphertext = encrypt(public_key, args.amount, randomness)
    print("0x" + ciphertext.to_encrypted_balance().hex())
    return 0


def cmd_decrypt(args, config: ClientConfig) -> int:
    balance = EncryptedBalance.from_hex(args.balance)
    print(recover_balance(
        balance, args.key, config.balance.max_balance, config.balance.bsgs_baby_steps
    ))
    return 0


async def _fetch_balance(args, config: ClientConfig) -> str:
    contract = args.contract or config.chain.contract_address
    if not contract:
        raise ValueError("contract address required (--contract or config)")
    async with RpcClient(config.chain.rpc_url, contract, config.chain.timeout_sec) as rpc:
        reader = BalanceReader(rpc, config.balance.max_balance, config.balance.bsgs_baby_steps)
        return await reader.fetch_and_recover(args.token, args.user, args.key)


def cmd_balance(args, config: ClientConfig) -> int:
    print(asyncio.run(_fetch_balance(args, config)))
    return 0


def cmd_encode(args, config: ClientConfig) -> int:
    if args.layout == "transfer":
        data = encode_transfer_layout(args.inputs)
        view = decode_transfer_layout(data)
    else:
        data = encode_deposit_layout(args.inputs)
        view = decode_deposit_layout(data)

    if args.decode:
        _print_json({"words": layout_words(data), "fields": _layout_view(view)})
    else:
        print("0x" + data.hex())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="confbal", description="Confidential balance client")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--log-level", help="Override configured log level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("keygen", help="Derive a key pair")
    p.add_argument("--seed", help="Deterministic private key (testing only)")
    p.set_defaults(func=cmd_keygen)

    p = sub.add_parser("encrypt", help="Encrypt an amount to a public key")
    p.add_argument("--pubkey", required=True, help="64-byte public key, hex")
    p.add_argument("--randomness", help="Encryption randomness (fresh if omitted)")
    p.add_argument("amount", type=int, help="Amount in hundredths")
    p.set_defaults(func=cmd_encrypt)

    p = sub.add_parser("decrypt", help="Recover a 128-byte encrypted balance")
    p.add_argument("--key", required=True, help="Private key")
    p.add_argument("balance", help="Encrypted balance, hex")
    p.set_defaults(func=cmd_decrypt)

    p = sub.add_parser("balance", help="Fetch and recover an on-chain balance")
    p.add_argument("--key", required=True, help="Private key")
    p.add_argument("--token", required=True, help="Token address")
    p.add_argument("--user", required=True, help="Account address")
    p.add_argument("--contract", help="Contract address (overrides config)")
    p.set_defaults(func=cmd_balance)

    p = sub.add_parser("encode", help="Pack public inputs into contract calldata")
    p.add_argument("layout", choices=["deposit", "transfer"])
    p.add_argument("inputs", nargs="+", help="Public inputs, hex or decimal")
    p.add_argument("--decode", action="store_true", help="Print words and named fields")
    p.set_defaults(func=cmd_encode)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = ClientConfig.load(args.config) if args.config else ClientConfig()
    if args.log_level:
        config.log.level = args.log_level
    setup_logging(config.log)

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"config: {error}", file=sys.stderr)
        return 2

    try:
        return args.func(args, config)
    except ConfBalError as e:
        _print_json({"error": e.to_dict()})
        return 1
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
