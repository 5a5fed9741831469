from .models import (
    PortResult,
    PortState,
    PreconditionError,
    ProgressSnapshot,
    ScanConfig,
    ScanStatus,
    Target,
)
from .ports import PortRange, parse_ports
from .probe import probe
from .scanner import ScanRun, run
from .targets import resolve_target

__version__ = "1.0.0"
