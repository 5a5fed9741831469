from __future__ import annotations

import csv
import html
import json
import os
import sys
import threading
import time
from datetime import datetime
from typing import List, Optional, TextIO

from .models import PortResult, ScanStatus, Target
from .progress import ProgressTracker

PROGRESS_INTERVAL_S = 0.2


def format_row(r: PortResult) -> str:
    hint = r.service_hint or ""
    row = f"{r.port:<8}  {r.state.value:<8}  {hint}"
    if r.diagnostic:
        row = f"{row.rstrip()}  ({r.diagnostic})"
    return row.rstrip()


def print_results(
    target: Target,
    results: List[PortResult],
    status: ScanStatus,
    elapsed_s: float,
    out: Optional[TextIO] = None,
) -> None:
    """Summary table; `results` is expected in ascending port order."""
    out = out or sys.stdout
    print(file=out)
    print(f"target ip: {target.address}", file=out)
    print(f"{'port':<8}  {'state':<8}  hint", file=out)
    print(f"{'':-<8}  {'':-<8}  {'':-<8}", file=out)
    for r in results:
        print(format_row(r), file=out)

    print(file=out)
    print(f"open ports found: {sum(1 for r in results if r.is_open)}", file=out)
    if status is ScanStatus.CANCELLED:
        print("scan cancelled (results may be incomplete)", file=out)
    else:
        print(f"scan complete in {elapsed_s:.2f}s", file=out)


def start_progress_line(
    tracker: ProgressTracker,
    done: threading.Event,
    cancelled: threading.Event,
    started: float,
    out: Optional[TextIO] = None,
) -> threading.Thread:
    """Redraws a one-line progress indicator on stderr until done or cancelled."""
    out = out or sys.stderr

    def loop() -> None:
        while not done.is_set() and not cancelled.is_set():
            snap = tracker.snapshot()
            out.write(
                f"\rscanning... {snap.attempted}/{snap.total} ({snap.percent:.1f}%)"
                f" open={snap.open} elapsed: {time.perf_counter() - started:.1f}s"
            )
            out.flush()
            done.wait(PROGRESS_INTERVAL_S)
        out.write("\n")
        out.flush()

    t = threading.Thread(target=loop, name="progress", daemon=True)
    t.start()
    return t


def _row_dict(target: Target, r: PortResult) -> dict:
    return {
        "target": target.address,
        "port": r.port,
        "state": r.state.value,
        "elapsed_s": r.elapsed_s,
        "service_hint": r.service_hint,
        "diagnostic": r.diagnostic,
    }


def save_results(
    target: Target,
    results: List[PortResult],
    status: ScanStatus,
    fmt: str,
    out_dir: str = "SCANS",
) -> str:
    os.makedirs(out_dir, exist_ok=True)
    ts = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    safe_addr = target.address.replace(":", "_")
    path = os.path.join(out_dir, f"{ts}_{safe_addr}_port_scan.{fmt}")
    open_count = sum(1 for r in results if r.is_open)

    if fmt == "txt":
        with open(path, "w", encoding="utf-8") as f:
            f.write(f"Target {target.address} | status: {status.value} | open ports: {open_count}\n")
            for r in results:
                f.write(format_row(r) + "\n")

    elif fmt == "csv":
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(["target", "port", "state", "elapsed_s", "service_hint", "diagnostic"])
            for r in results:
                w.writerow([
                    target.address,
                    r.port,
                    r.state.value,
                    r.elapsed_s,
                    r.service_hint or "",
                    r.diagnostic or "",
                ])

    elif fmt == "json":
        payload = {
            "target": target.address,
            "host": target.host,
            "status": status.value,
            "open": open_count,
            "results": [_row_dict(target, r) for r in results],
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

    elif fmt == "html":
        with open(path, "w", encoding="utf-8") as f:
            f.write("<html><body>\n")
            f.write(f"<h1>Port Scan Results: {target.address}</h1>\n")
            f.write(f"<p>Status: {status.value} | Open ports: {open_count}</p>\n")
            f.write("<ul>\n")
            for r in results:
                f.write(f"<li>{html.escape(format_row(r))}</li>\n")
            f.write("</ul>\n</body></html>\n")

    else:
        raise ValueError(f"Unsupported format: {fmt}")

    return path
