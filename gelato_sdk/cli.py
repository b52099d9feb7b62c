"""
Command line interface for the Gelato relay service.

    gelato-relay status <task-id>
    gelato-relay chains
    gelato-relay estimate <chain-id> <gas-limit> [--token ADDR] [--high-priority]
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from .client import RelayClient
from .exceptions import GelatoError
from .types import NATIVE_TOKEN
from .version import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gelato-relay",
        description="Query the Gelato transaction relay service.")
    parser.add_argument(
        "--url",
        help="Relay service URL (default: $GELATO_RELAY_URL or https://relay.gelato.digital/)"
    )
    parser.add_argument(
        "-v", "--verbose",
        help="Enable debug output",
        action="store_true"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    commands = parser.add_subparsers(dest="command", required=True)

    status = commands.add_parser("status", help="Show the status of a relay task")
    status.add_argument("task_id", help="Task id returned on submission")

    commands.add_parser("chains", help="List the chain ids the relay supports")

    estimate = commands.add_parser("estimate", help="Estimate the relayer fee for a call")
    estimate.add_argument("chain_id", type=int, help="Chain the call executes on")
    estimate.add_argument("gas_limit", type=int, help="Gas limit of the call")
    estimate.add_argument("--token", default=NATIVE_TOKEN, help="Fee token address (default: native token)")
    estimate.add_argument("--high-priority", action="store_true", help="Quote for priority execution")

    return parser


def run(args: argparse.Namespace, client: RelayClient) -> None:
    if args.command == "status":
        status = client.task_status(args.task_id)
        print(json.dumps(status.to_wire(), indent=2))
    elif args.command == "chains":
        for chain_id in sorted(client.supported_chains()):
            print(chain_id)
    elif args.command == "estimate":
        print(client.estimate_fee(args.chain_id, args.token, args.gas_limit, args.high_priority))


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the ``gelato-relay`` script."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        with RelayClient(url=args.url) as client:
            run(args, client)
    except (GelatoError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
