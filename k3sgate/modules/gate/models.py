"""
Data models for readiness gates.
"""
import ipaddress
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from .errors import TargetFormatError

# RFC 1123 hostname label
_HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GateStatus(str, Enum):
    """States of a readiness gate."""
    INIT = 'init'
    PROBING = 'probing'
    DONE_SUCCESS = 'done_success'
    DONE_SUCCESS_IMMEDIATE = 'done_success_immediate'
    DONE_PARTIAL = 'done_partial'

    @property
    def terminal(self) -> bool:
        return self not in (GateStatus.INIT, GateStatus.PROBING)


class TerminationReason(str, Enum):
    """Why a gate stopped probing."""
    ALL_READY = 'all_ready'
    NO_TARGETS = 'no_targets'
    ATTEMPTS_EXHAUSTED = 'attempts_exhausted'
    DEADLINE = 'deadline'
    CANCELLED = 'cancelled'


@dataclass(frozen=True)
class Target:
    """A host being waited on."""
    address: str
    label: str

    @classmethod
    def parse(cls, token: str) -> 'Target':
        """Build a target from an ``address|label`` token.

        Raises:
            TargetFormatError: if the token has no ``|`` or either side is empty
        """
        if not isinstance(token, str) or '|' not in token:
            raise TargetFormatError(f"Invalid target format: {token!r} (expected: address|label)")
        address, label = (part.strip() for part in token.split('|', 1))
        if not address or not label:
            raise TargetFormatError(f"Invalid target format: {token!r} (expected: address|label)")
        return cls(address=address, label=label)

    @property
    def token(self) -> str:
        return f"{self.address}|{self.label}"

    @property
    def address_is_valid(self) -> bool:
        """Whether the address is an IP literal or an RFC 1123 hostname."""
        try:
            ipaddress.ip_address(self.address)
            return True
        except ValueError:
            pass
        hostname = self.address[:-1] if self.address.endswith('.') else self.address
        if not hostname or len(hostname) > 253:
            return False
        labels = hostname.split('.')
        # all-numeric dotted names are bad IPs, not hostnames
        if all(part.isdigit() for part in labels):
            return False
        return all(_HOSTNAME_LABEL.match(part) for part in labels)

    def validate(self) -> None:
        """Raise TargetFormatError if the address cannot be probed."""
        if not self.address_is_valid:
            raise TargetFormatError(f"Malformed address for {self.label}: {self.address!r}")

    def __str__(self) -> str:
        return f"{self.label} ({self.address})"


def parse_targets(tokens: List[str]) -> List[Target]:
    """Parse tokens into targets, preserving order and dropping exact duplicates.

    The first malformed token aborts parsing.
    """
    targets: List[Target] = []
    seen = set()
    for token in tokens:
        target = Target.parse(token)
        if target in seen:
            continue
        seen.add(target)
        targets.append(target)
    return targets


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of one probe invocation against one target."""
    target: Target
    succeeded: bool
    detail: str = ''
    observed_at: datetime = field(default_factory=utcnow)
    attempt: int = 0
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'address': self.target.address,
            'label': self.target.label,
            'succeeded': self.succeeded,
            'detail': self.detail,
            'observed_at': self.observed_at.isoformat(),
            'attempt': self.attempt,
            'duration': round(self.duration, 3),
        }


@dataclass(frozen=True)
class RoundResult:
    """Partitioned outcomes of one probing round."""
    succeeded: FrozenSet[Target]
    still_failing: FrozenSet[Target]
    outcomes: List[ProbeOutcome]

    @classmethod
    def from_outcomes(cls, outcomes: List[ProbeOutcome]) -> 'RoundResult':
        succeeded = frozenset(o.target for o in outcomes if o.succeeded)
        still_failing = frozenset(o.target for o in outcomes if not o.succeeded)
        return cls(succeeded=succeeded, still_failing=still_failing, outcomes=list(outcomes))

    @property
    def all_succeeded(self) -> bool:
        return not self.still_failing


@dataclass
class GateState:
    """Working state of a running gate. Owned by the orchestrator thread."""
    remaining: FrozenSet[Target]
    attempt: int = 1
    elapsed: float = 0.0
    status: GateStatus = GateStatus.INIT
    rounds: int = 0

    def mark_ready(self, targets: FrozenSet[Target]) -> None:
        """Remove targets from the working set. Targets never re-enter it."""
        self.remaining = self.remaining - targets


@dataclass
class Report:
    """Final summary of a gate run."""
    probe: str
    status: GateStatus
    reason: TerminationReason
    total: int
    ready: List[Target]
    not_ready: List[Target]
    rounds: int = 0
    elapsed: float = 0.0
    generated_at: datetime = field(default_factory=utcnow)
    last_outcomes: Dict[Target, ProbeOutcome] = field(default_factory=dict)
    path: Optional[str] = None

    @property
    def success(self) -> bool:
        return not self.not_ready

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def to_dict(self) -> Dict[str, Any]:
        def entry(target: Target, ready: bool) -> Dict[str, Any]:
            outcome = self.last_outcomes.get(target)
            return {
                'address': target.address,
                'label': target.label,
                'status': 'READY' if ready else 'NOT READY',
                'detail': outcome.detail if outcome else '',
                'attempt': outcome.attempt if outcome else 0,
            }

        return {
            'probe': self.probe,
            'generated_at': self.generated_at.isoformat(),
            'status': self.status.value,
            'reason': self.reason.value,
            'success': self.success,
            'total': self.total,
            'rounds': self.rounds,
            'elapsed': round(self.elapsed, 3),
            'ready': [entry(t, True) for t in self.ready],
            'not_ready': [entry(t, False) for t in self.not_ready],
        }
