#!/usr/bin/env python3
"""
powchain CLI

Small operator tool around the consensus core. Chains are exchanged as
JSON lists of block dictionaries.

Usage:
    # Mine a 5-block chain (genesis + 4) and write it out
    python cli.py mine --blocks 4 --out local.json

    # Check a chain received from somewhere else
    python cli.py validate candidate.json

    # Apply fork choice: keep local.json unless candidate.json is longer and valid
    python cli.py resolve local.json candidate.json --out accepted.json
"""

import argparse
import json
import logging
import sys

from powchain import Blockchain
from powchain.config import MINE_RATE

logger = logging.getLogger(__name__)


def load_chain_file(path: str) -> list:
    """Read a JSON chain file and decode it into blocks."""
    with open(path, "r", encoding="utf-8") as handle:
        raw = json.load(handle)
    return Blockchain.blocks_from_dicts(raw)


def write_chain(chain_data: list, path: str = None):
    text = json.dumps(chain_data, indent=2)
    if path is None:
        print(text)
        return
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(text + "\n")
    logger.info("Wrote %d blocks to %s", len(chain_data), path)


def cmd_mine(args) -> int:
    chain = Blockchain()
    for i in range(args.blocks):
        chain.add_block(f"{args.data}-{i + 1}", mine_rate=args.mine_rate)
    write_chain(chain.to_dict_list(), args.out)
    return 0


def cmd_validate(args) -> int:
    blocks = load_chain_file(args.chain)
    if Blockchain.is_valid_chain(blocks):
        print(f"valid ({len(blocks)} blocks)")
        return 0
    print("invalid")
    return 1


def cmd_resolve(args) -> int:
    try:
        chain = Blockchain.from_blocks(load_chain_file(args.local))
    except ValueError:
        logger.error("Local chain %s is not valid", args.local)
        return 1

    with open(args.candidate, "r", encoding="utf-8") as handle:
        candidate = json.load(handle)

    replaced = chain.replace_chain(candidate)
    logger.info("Kept %s chain (height %d)", "candidate" if replaced else "local", chain.height)
    write_chain(chain.to_dict_list(), args.out)
    return 0


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="powchain consensus tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    mine = subparsers.add_parser("mine", help="Mine a fresh chain")
    mine.add_argument("--blocks", type=int, default=3, help="Number of blocks to mine after genesis")
    mine.add_argument("--data", type=str, default="block", help="Payload prefix for mined blocks")
    mine.add_argument("--mine-rate", type=int, default=MINE_RATE, help="Target block time in ms")
    mine.add_argument("--out", type=str, default=None, help="Output file (stdout if omitted)")
    mine.set_defaults(func=cmd_mine)

    validate = subparsers.add_parser("validate", help="Validate a chain file")
    validate.add_argument("chain", help="Path to a JSON chain file")
    validate.set_defaults(func=cmd_validate)

    resolve = subparsers.add_parser("resolve", help="Apply longest-valid-chain rule to two chain files")
    resolve.add_argument("local", help="Path to the accepted local chain")
    resolve.add_argument("candidate", help="Path to the incoming candidate chain")
    resolve.add_argument("--out", type=str, default=None, help="Output file (stdout if omitted)")
    resolve.set_defaults(func=cmd_resolve)

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Setup logging
    level = logging.DEBUG if args.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )

    try:
        return args.func(args)
    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
