import argparse
import asyncio
import logging

from holdem_ledger.models import U64_MAX, TableConfig, identity_from_hex
from .server import HostServer

logging.basicConfig(level=logging.INFO)


def non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if not 0 <= number <= U64_MAX:
        raise argparse.ArgumentTypeError(f"must be between 0 and {U64_MAX}, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Poker ledger host server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument("--sb", type=non_negative_int, default=50)
    parser.add_argument("--bb", type=non_negative_int, default=100)
    parser.add_argument(
        "--starting-balance",
        type=non_negative_int,
        default=10_000,
        help="Balance credited to an identity the first time it connects",
    )
    parser.add_argument(
        "--table",
        default=None,
        help="Hex table address (random when omitted; its first byte feeds the shuffle seed)",
    )
    return parser


def main() -> None:
    args = build_parser().parse_args()

    config = TableConfig(
        small_blind=args.sb,
        big_blind=args.bb,
        starting_balance=args.starting_balance,
    )

    table_address = identity_from_hex(args.table) if args.table else None
    server = HostServer(config, table_address=table_address)
    asyncio.run(server.start(host=args.host, port=args.port))


if __name__ == "__main__":
    main()
