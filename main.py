#!/usr/bin/env python3
"""Log Triage - Entry point"""

import argparse
import json
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from log_triage import VERSION, DetectionConfig, LogAnalyzer, LogTriageError, print_report

console = Console(stderr=True)


def read_blacklist(path):
    with open(path, 'r', encoding='utf-8') as f:
        lines = (line.split('#', 1)[0].strip() for line in f)
        return [line for line in lines if line]


def build_config(args) -> DetectionConfig:
    blacklist = list(args.blacklist or [])
    if args.blacklist_file:
        blacklist.extend(read_blacklist(args.blacklist_file))
    return DetectionConfig.from_mapping({
        'brute_force_window': args.bf_window,
        'brute_force_threshold': args.bf_threshold,
        'port_scan_window': args.ps_window,
        'port_scan_threshold': args.ps_threshold,
        'blacklist': blacklist or None,
    })


def build_parser():
    parser = argparse.ArgumentParser(
        description="Log Triage - Brute-force, port-scan and blacklist detection over mixed logs",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument("logfile", help="Log file to analyze")
    parser.add_argument("-o", "--output", help="Output file (JSON)")
    parser.add_argument("-j", "--json", action="store_true", help="JSON output only")
    parser.add_argument("--bf-window", type=float, help="Brute-force window in minutes (default 10)")
    parser.add_argument("--bf-threshold", type=int, help="Failed attempts per window (default 5)")
    parser.add_argument("--ps-window", type=float, help="Port-scan window in minutes (default 5)")
    parser.add_argument("--ps-threshold", type=int,
                        help="Unique ports per window; port-scan detection is off without it")
    parser.add_argument("--blacklist", action="append", metavar="IP",
                        help="Blacklisted address, repeatable; replaces the built-in list")
    parser.add_argument("--blacklist-file", help="File with one blacklisted address per line")
    parser.add_argument("--year", type=int, help="Year for syslog timestamps (default: current)")
    parser.add_argument("--workers", type=int, default=1, help="Threads for per-IP scans")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")
    parser.add_argument("--version", action="version", version=f"LogTriage v{VERSION}")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(message)s",
                        handlers=[RichHandler(console=console, show_path=False)])

    try:
        config = build_config(args)
        analyzer = LogAnalyzer(config=config, console=None if args.json else console,
                               reference_year=args.year, max_workers=args.workers)
        result = analyzer.analyze_file(args.logfile)
        report = analyzer.generate_report(result)

        if args.json:
            print(json.dumps(report, indent=2))
        else:
            print_report(report, Console())

        if args.output:
            with open(args.output, 'w') as f:
                json.dump(report, f, indent=2)
            console.print(f"\n[green]Report saved to:[/] {args.output}")

    except (FileNotFoundError, LogTriageError, ValueError) as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
