"""
Readiness gate engine.

Probes a set of targets in lock-step rounds until all are ready, backing off
exponentially between rounds and giving up at an attempt limit or a global
deadline. The result is always a complete Report.
"""
from .backoff import BackoffPolicy
from .errors import ConfigError, GateError, ProbeNotFoundError, TargetFormatError
from .executor import RoundExecutor
from .models import (
    GateState,
    GateStatus,
    ProbeOutcome,
    Report,
    RoundResult,
    Target,
    TerminationReason,
    parse_targets,
)
from .orchestrator import ReadinessGate, check_once, wait_for_targets
from .reporter import Reporter, default_report_path
from .settings import GateSettings

__all__ = [
    # Models
    'Target',
    'ProbeOutcome',
    'RoundResult',
    'GateState',
    'GateStatus',
    'TerminationReason',
    'Report',
    'parse_targets',

    # Engine
    'BackoffPolicy',
    'RoundExecutor',
    'ReadinessGate',
    'Reporter',
    'GateSettings',
    'wait_for_targets',
    'check_once',
    'default_report_path',

    # Errors
    'GateError',
    'TargetFormatError',
    'ProbeNotFoundError',
    'ConfigError',
]
