import json
import logging
import os
import sys
import time
from typing import Any, Dict, Optional

LOGGER_NAME = "pscan"


def create_logger(level: int = logging.WARNING, log_path: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    # File keeps scan events even when the console is quiet
    logger.setLevel(min(level, logging.INFO) if log_path else level)

    # We write JSON ourselves; keep formatter minimal
    formatter = logging.Formatter("%(message)s")

    # Reuse existing handlers if main() runs more than once
    streams = [h for h in logger.handlers if type(h) is logging.StreamHandler]
    if not streams:
        sh = logging.StreamHandler(sys.stderr)
        sh.setFormatter(formatter)
        logger.addHandler(sh)
        streams = [sh]
    for sh in streams:
        sh.setLevel(level)

    if log_path:
        wanted = os.path.abspath(log_path)
        files = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        if not any(h.baseFilename == wanted for h in files):
            fh = logging.FileHandler(log_path)
            fh.setFormatter(formatter)
            logger.addHandler(fh)

    return logger


def now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime())


def log_event(logger: logging.Logger, event: str, fields: Dict[str, Any], level: int = logging.INFO) -> None:
    payload = {"ts": now_iso(), "event": event, **fields}
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))
