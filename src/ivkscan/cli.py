"""
ivkscan command line.

Usage:
    ivkscan detect <key>
    ivkscan inspect <key> [--show-ivk]
    ivkscan derive [--account N] [--network mainnet|testnet]
    ivkscan decrypt-tx <key> (--hex HEX | --file PATH | --txid TXID) [--all]
    ivkscan decrypt-compact <key> --nullifier H --cmx H --ephemeral-key H --ciphertext H
    ivkscan batch <key> <outputs.json | ->
    ivkscan find-account (--hex HEX | --file PATH | --txid TXID) [--network N]

Seed phrases are read from IVKSCAN_SEED_PHRASE or prompted for; they are
never accepted on the command line. Results go to stdout as JSON.
Exit codes: 0 match / success, 1 error, 2 no match.
"""

import argparse
import getpass
import json
import os
import sys
from typing import List, Optional

from . import __version__, config
from .accounts import find_owning_account
from .backend import get_engine
from .batch import batch_filter_outputs
from .errors import IvkScanError
from .keys import detect_key_type, inspect_viewing_key, parse_orchard_ivk
from .logging_config import setup_logging
from .matcher import decrypt_compact_output, decrypt_full_output, decrypt_transaction
from .rpc import fetch_raw_transaction
from .seed import derive_viewing_key_from_seed

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_MATCH = 2


def _emit(obj) -> None:
    print(json.dumps(obj, indent=2))


def _banner(title: str, rows) -> None:
    print("=" * 65, file=sys.stderr)
    print(f"  {title}", file=sys.stderr)
    print("=" * 65, file=sys.stderr)
    for label, value in rows:
        print(f"  {label + ':':<20}{value}", file=sys.stderr)
    print("=" * 65, file=sys.stderr)


def _read_phrase() -> str:
    phrase = os.getenv("IVKSCAN_SEED_PHRASE", "").strip()
    if phrase:
        return phrase
    return getpass.getpass("Seed phrase: ")


def _read_tx(args) -> bytes:
    if args.hex:
        return bytes.fromhex(args.hex.strip())
    if args.file:
        with open(args.file) as f:
            return bytes.fromhex(f.read().strip())
    return fetch_raw_transaction(args.txid)


def _add_tx_source(p: argparse.ArgumentParser) -> None:
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--hex", help="raw transaction hex")
    src.add_argument("--file", help="file holding raw transaction hex")
    src.add_argument("--txid", help="fetch the transaction from IVKSCAN_RPC_URL")


# ============================================================
# Commands
# ============================================================
def cmd_detect(args) -> int:
    print(detect_key_type(args.key).value)
    return EXIT_OK


def cmd_inspect(args) -> int:
    info = inspect_viewing_key(args.key).to_dict()
    if args.show_ivk:
        info["orchard_ivk"] = parse_orchard_ivk(args.key).hex()
    _emit(info)
    return EXIT_OK


def cmd_derive(args) -> int:
    print(derive_viewing_key_from_seed(_read_phrase(), args.account, args.network))
    return EXIT_OK


def cmd_decrypt_tx(args) -> int:
    tx = _read_tx(args)
    txid = args.txid or ""
    if args.all:
        matches = decrypt_transaction(tx, args.key, txid=txid)
        _emit([m.to_dict() for m in matches])
        return EXIT_OK if matches else EXIT_NO_MATCH

    match = decrypt_full_output(tx, args.key, txid=txid)
    if match is None:
        print("No output in this transaction belongs to the viewing key.", file=sys.stderr)
        return EXIT_NO_MATCH
    _emit(match.to_dict())
    return EXIT_OK


def cmd_decrypt_compact(args) -> int:
    match = decrypt_compact_output(
        args.nullifier, args.cmx, args.ephemeral_key, args.ciphertext, args.key
    )
    if match is None:
        print("The viewing key does not match this output.", file=sys.stderr)
        return EXIT_NO_MATCH
    _emit(match.to_dict())
    return EXIT_OK


def cmd_batch(args) -> int:
    if args.outputs == "-":
        outputs_json = sys.stdin.read()
    else:
        with open(args.outputs) as f:
            outputs_json = f.read()

    _banner("BATCH OUTPUT FILTER", [
        ("Backend", get_engine()),
        ("Workers", args.workers or config.NUM_WORKERS),
        ("Chunk size", config.BATCH_CHUNK_SIZE),
    ])
    matches = batch_filter_outputs(outputs_json, args.key, workers=args.workers)
    _emit(matches)
    return EXIT_OK if matches else EXIT_NO_MATCH


def cmd_find_account(args) -> int:
    tx = _read_tx(args)
    max_accounts = args.max_accounts if args.max_accounts is not None else config.MAX_ACCOUNTS
    _banner("ACCOUNT SEARCH", [
        ("Backend", get_engine()),
        ("Network", args.network),
        ("Accounts", f"0..{max_accounts - 1}"),
    ])
    match = find_owning_account(
        tx, _read_phrase(), args.network, max_accounts, txid=args.txid or ""
    )
    if match is None:
        print(
            f"No account in 0..{max_accounts - 1} owns this transaction. "
            f"Raise --max-accounts if the wallet uses higher indices.",
            file=sys.stderr,
        )
        return EXIT_NO_MATCH
    _emit(match.to_dict())
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ivkscan", description="Orchard viewing key scanner")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    p.add_argument("--log-format", default=None, choices=["human", "json"])
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("detect", help="classify a viewing key by prefix")
    s.add_argument("key")
    s.set_defaults(func=cmd_detect)

    s = sub.add_parser("inspect", help="decode a viewing key and list its pools")
    s.add_argument("key")
    s.add_argument("--show-ivk", action="store_true", help="also print the Orchard IVK")
    s.set_defaults(func=cmd_inspect)

    s = sub.add_parser("derive", help="derive a viewing key from a seed phrase")
    s.add_argument("--account", type=int, default=0)
    s.add_argument("--network", default=config.DEFAULT_NETWORK)
    s.set_defaults(func=cmd_derive)

    s = sub.add_parser("decrypt-tx", help="decrypt the Orchard actions of a transaction")
    s.add_argument("key")
    _add_tx_source(s)
    s.add_argument("--all", action="store_true", help="report every matching action")
    s.set_defaults(func=cmd_decrypt_tx)

    s = sub.add_parser("decrypt-compact", help="decrypt one compact action")
    s.add_argument("key")
    s.add_argument("--nullifier", required=True)
    s.add_argument("--cmx", required=True)
    s.add_argument("--ephemeral-key", required=True)
    s.add_argument("--ciphertext", required=True)
    s.set_defaults(func=cmd_decrypt_compact)

    s = sub.add_parser("batch", help="filter a JSON array of compact outputs")
    s.add_argument("key")
    s.add_argument("outputs", help="JSON file, or - for stdin")
    s.add_argument("--workers", type=int, default=None)
    s.set_defaults(func=cmd_batch)

    s = sub.add_parser("find-account", help="find the seed account owning a transaction")
    _add_tx_source(s)
    s.add_argument("--network", default=config.DEFAULT_NETWORK)
    s.add_argument("--max-accounts", type=int, default=None)
    s.set_defaults(func=cmd_find_account)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, fmt=args.log_format)
    try:
        return args.func(args)
    except (IvkScanError, ValueError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
