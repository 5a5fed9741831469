from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import threading
import time

from .logger import create_logger
from .models import ScanConfig
from .output import format_row, print_results, save_results, start_progress_line
from .ports import parse_ports
from .progress import ProgressTracker
from .scanner import run
from .targets import resolve_target

DEFAULT_PORTS = "1-1000"
DEFAULT_TIMEOUT_MS = 50

EXIT_OK = 0
EXIT_PRECONDITION = 2
EXIT_CANCELLED = 130


def _threads_arg(value: str):
    if value == "sequential":
        return value
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("must be a positive integer or 'sequential'")
    if n < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pscan", description="Simple TCP connect port scanner (authorized targets only)")
    p.add_argument("-H", "--target", required=True, help="IP address or hostname")
    p.add_argument("-p", "--ports", default=DEFAULT_PORTS, help=f"Port spec: 1-1024 or 22,80,443 or mixed (default: {DEFAULT_PORTS})")
    p.add_argument("-t", "--timeout-ms", type=int, default=DEFAULT_TIMEOUT_MS, help=f"Connect timeout in ms (default: {DEFAULT_TIMEOUT_MS})")
    p.add_argument("--parallel", action="store_true", help="Probe several ports at once")
    p.add_argument("--threads", type=_threads_arg, help="Probes in flight with --parallel, or 'sequential' (default: CPU count)")
    p.add_argument("--show-closed", action="store_true", help="Also list closed and filtered ports")
    p.add_argument("--all-ips", action="store_true", help="Scan every address the target resolves to")
    p.add_argument("--no-progress", dest="progress", action="store_false", help="Hide the progress line")
    p.add_argument("--live", action="store_true", help="Print results as they arrive")
    p.add_argument("--format", choices=["txt", "csv", "json", "html"], help="Save results to file")
    p.add_argument("--out-dir", default="SCANS", help="Output directory for saved files")
    p.add_argument("-v", "--verbose", action="store_true", help="Log scan events to stderr")
    p.add_argument("--log-file", help="Append JSON scan events to this file")
    return p


def _install_interrupt(cancel: threading.Event) -> bool:
    """Ctrl-C sets the cancel flag instead of raising KeyboardInterrupt."""
    # Signal handlers can only be installed from the main thread
    if threading.current_thread() is not threading.main_thread():
        return False

    def handler(signum, frame):
        cancel.set()

    signal.signal(signal.SIGINT, handler)
    return True


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    create_logger(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)

    threads = args.threads if args.threads is not None else (os.cpu_count() or 4)
    try:
        config = ScanConfig.from_options(
            timeout_ms=args.timeout_ms,
            concurrency=threads,
            show_closed=args.show_closed,
            parallel=args.parallel,
        )
        targets = resolve_target(args.target)
        ports = parse_ports(args.ports)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_PRECONDITION

    if not args.all_ips:
        targets = targets[:1]

    print("pscan")
    print(f"  target       : {args.target}")
    print(f"  ips scanned  : {len(targets)}")
    print(f"  ports        : {ports.describe()}")
    print(f"  timeout      : {args.timeout_ms} ms")
    print(f"  parallel     : {args.parallel}")
    if args.parallel:
        print(f"  threads      : {config.concurrency}")
    print(f"  show_closed  : {args.show_closed}")

    cancel = config.cancel_signal
    previous = signal.getsignal(signal.SIGINT)
    installed = _install_interrupt(cancel)
    try:
        for target in targets:
            tracker = ProgressTracker(total=len(ports))
            scan_run = run(target, ports, config, tracker=tracker)

            done = threading.Event()
            progress = None
            if args.progress and not args.live:
                progress = start_progress_line(tracker, done, cancel, time.perf_counter())

            try:
                for r in scan_run:
                    if args.live:
                        print(f"[{target.address}] {format_row(r)}", flush=True)
            finally:
                done.set()
                if progress:
                    progress.join()

            print_results(target, scan_run.results, scan_run.status, scan_run.elapsed_s)

            if args.format:
                try:
                    path = save_results(target, scan_run.results, scan_run.status, fmt=args.format, out_dir=args.out_dir)
                except OSError as e:
                    # The scan itself succeeded; keep its exit status
                    print(f"error: could not save results: {e}", file=sys.stderr)
                else:
                    print(f"Saved results to {path}")

            if scan_run.cancelled:
                return EXIT_CANCELLED
    finally:
        if installed:
            signal.signal(signal.SIGINT, previous or signal.default_int_handler)

    return EXIT_OK
