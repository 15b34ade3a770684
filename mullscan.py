#!/usr/bin/env python3
"""
mullscan - Mullvad Relay Latency Scanner

Fetches the Mullvad relay catalog, pings every relay that matches the
given filters and prints the fastest ones.
"""

import argparse
import asyncio
import csv
import logging
import sys
from typing import List, Optional, Tuple

from ping_tester import MIN_INTERVAL, PingTester
from relay import ProbeResult
from relay_catalog import CatalogError, RelayCatalog, list_countries
from relay_filter import RUN_MODE_ALL, RUN_MODES, RelayFilter
from relay_ranker import RelayRanker

__version__ = "1.0.0"

logger = logging.getLogger("mullscan")


def _non_negative_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {n}")
    return n


def _positive_int(value: str) -> int:
    n = _non_negative_int(value)
    if n == 0:
        raise argparse.ArgumentTypeError("must be >= 1")
    return n


def _interval(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if not seconds >= MIN_INTERVAL:
        raise argparse.ArgumentTypeError(f"must be at least {MIN_INTERVAL} seconds, got {value}")
    return seconds


def build_argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mullscan",
        description="Find the lowest-latency Mullvad VPN relays",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Five fastest relays of any kind
  %(prog)s

  # Ten fastest WireGuard relays in Sweden running from RAM
  %(prog)s --country se --type wireguard --run-mode ram --count 10

  # Show country codes
  %(prog)s --list-countries
        """
    )
    parser.add_argument(
        "--country", "-c",
        metavar="code",
        type=str.lower,
        default=None,
        help="The country you want to query (e.g., us, gb, de)"
    )
    parser.add_argument(
        "--list-countries", "-l",
        action="store_true",
        help="Lists the available countries"
    )
    parser.add_argument(
        "--type", "-t",
        dest="relay_family",
        metavar="type",
        default="all",
        help="The type of server to query (openvpn, bridge, wireguard, all)"
    )
    parser.add_argument(
        "--pings", "-p",
        metavar="n",
        type=_positive_int,
        default=3,
        help="The number of pings to the server (default: 3)"
    )
    parser.add_argument(
        "--interval", "-i",
        metavar="seconds",
        type=_interval,
        default=MIN_INTERVAL,
        help=f"The interval between pings in seconds (default/min: {MIN_INTERVAL})"
    )
    parser.add_argument(
        "--count", "-n",
        metavar="n",
        type=_non_negative_int,
        default=5,
        help="The number of top servers to show, 0 for all (default: 5)"
    )
    parser.add_argument(
        "--port-speed", "-s",
        metavar="Gbps",
        type=_non_negative_int,
        default=1,
        help="Only show servers with at least n Gigabit port speed (default: 1)"
    )
    parser.add_argument(
        "--run-mode", "-r",
        metavar="mode",
        choices=RUN_MODES,
        default=RUN_MODE_ALL,
        help="Only show servers running from (all, ram, disk)"
    )
    parser.add_argument(
        "--max-concurrency",
        metavar="n",
        type=_non_negative_int,
        default=0,
        help="Maximum number of relays pinged at once, 0 for no limit (default: 0)"
    )
    parser.add_argument(
        "--timeout",
        metavar="seconds",
        type=float,
        default=30.0,
        help="Timeout for fetching the relay list in seconds (default: 30)"
    )
    parser.add_argument(
        "--csv",
        metavar="file",
        default=None,
        help="Also write the results to a CSV file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Log progress to stderr (-vv for debug output)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    return parser


def setup_logging(verbosity: int):
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr
    )


def format_result(result: ProbeResult) -> str:
    return (
        f" - {result.relay_hostname} ({result.mean_rtt_ms:.1f}ms) "
        f"{result.network_port_speed} Gbps {result.server_type or 'unknown'} "
        f"{result.city_name}, {result.country_name}"
    )


def print_countries(countries: List[Tuple[str, str]]):
    for code, name in countries:
        print(f"{code} - {name}")


def print_results(results: List[ProbeResult], top_n: int):
    """Print the ranking, or a notice on stderr if it is empty."""
    if not results:
        print("No servers found", file=sys.stderr)
        return

    print(f"\nTop {top_n} results:")
    for result in results:
        print(format_result(result))


def write_csv_results(results: List[ProbeResult], filename: str):
    """Write the ranking to a CSV file, one row per relay."""
    with open(filename, 'w', newline='') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow([
            'rank',
            'hostname',
            'mean rtt (ms)',
            'port speed (Gbps)',
            'type',
            'ipv4',
            'city',
            'country'
        ])
        for rank, result in enumerate(results, 1):
            writer.writerow([
                rank,
                result.relay_hostname,
                f"{result.mean_rtt_ms:.3f}",
                result.network_port_speed,
                result.server_type or 'unknown',
                result.ipv4_addr_in,
                result.city_name,
                result.country_name
            ])
    logger.info("Results written to %s", filename)


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit code
    """
    args = build_argparser().parse_args(argv)
    setup_logging(args.verbose)

    catalog = RelayCatalog(timeout=args.timeout)
    try:
        relays = await catalog.fetch(args.relay_family)
    except CatalogError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.list_countries:
        print_countries(list_countries(relays))
        return 0

    ranker = RelayRanker(
        PingTester(),
        relay_filter=RelayFilter(
            country=args.country,
            min_port_speed=args.port_speed,
            run_mode=args.run_mode
        ),
        pings=args.pings,
        interval=args.interval,
        max_concurrency=args.max_concurrency
    )
    results = await ranker.rank(relays, args.count)
    print_results(results, args.count)

    if args.csv:
        try:
            write_csv_results(results, args.csv)
        except OSError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    return 0


def run():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
