# aleolib/cli.py
import argparse
import asyncio
import json
import os
import sys

from aleolib import __version__, config
from aleolib.core.network_client import AleoNetworkClient
from aleolib.errors import AleoLibError, FetchError, ScanTimeoutError
from aleolib.utils.console import print_error, print_info, print_success, print_warn
from aleolib.utils.formatting import format_credits


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aleo-records", description="Aleo node client and record scanner")
    parser.add_argument('--version', action='version', version=f"aleolib v{__version__}")
    parser.add_argument('--host', default=None, help='Node base URL (default: $ALEOLIB_HOST)')
    parser.add_argument('--network', default=None, help='Network path segment (default: $ALEOLIB_NETWORK)')
    parser.add_argument('--json', action='store_true', help='Print JSON output')

    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('latest-height', help='Print the latest block height')

    block = commands.add_parser('block', help='Print a block by height')
    block.add_argument('height', type=int)

    scan = commands.add_parser('scan', help='Find unspent records owned by a private key')
    scan.add_argument('--start', type=int, required=True, help='First height to scan')
    scan.add_argument('--end', type=int, default=None, help='Height to stop before (default: chain tip)')
    scan.add_argument('--private-key', default=None, help='Private key (default: $ALEO_PRIVATE_KEY)')
    scan.add_argument('--amount', type=int, action='append', dest='amounts', help='Accept this amount; repeatable')
    scan.add_argument('--max-amount', type=int, default=None, help='Accept amounts up to this value')
    scan.add_argument('--all-programs', action='store_true', help='Scan records of every program')
    scan.add_argument('--no-spent-check', action='store_true', help='Skip asking the node whether records are spent')
    scan.add_argument('--timeout', type=float, default=None, help='Give up after this many seconds')
    return parser


def _emit(args, payload, text):
    if args.json:
        print(json.dumps(payload, indent=2, sort_keys=True))
    else:
        print_info(text)


async def _run(args) -> int:
    async with AleoNetworkClient(host=args.host, network=args.network) as client:
        if args.command == 'latest-height':
            height = await client.get_latest_height()
            _emit(args, {"height": height}, f"📊 Latest height: {height}")
            return 0

        if args.command == 'block':
            block = await client.get_block(args.height)
            print(json.dumps(block, indent=2, sort_keys=True))
            return 0

        private_key = args.private_key or os.getenv("ALEO_PRIVATE_KEY")
        if args.no_spent_check:
            print_warn("⚠️  Spent check disabled; results may include spent records")
        records = await client.find_unspent_records(
            args.start,
            args.end,
            private_key,
            amounts=args.amounts,
            max_amount=args.max_amount,
            program=None if args.all_programs else "credits.aleo",
            check_spent=not args.no_spent_check,
            timeout=args.timeout,
        )
        if args.json:
            print(json.dumps([record.to_dict() for record in records], indent=2, sort_keys=True))
            return 0

        total = sum(record.amount for record in records)
        for record in records:
            print_info(
                f"  #{record.block_height} {record.transition_id} {format_credits(record.amount)}"
            )
        print_success(f"✅ {len(records)} unspent records, {format_credits(total)} total")
        return 0


def main(argv=None) -> int:
    """Command line interface for aleolib"""
    config.apply_profile()
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(_run(args))
    except (FetchError, ScanTimeoutError) as e:
        print_error(f"❌ {e}")
        return 1
    except (AleoLibError, ValueError) as e:
        print_error(f"❌ {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
