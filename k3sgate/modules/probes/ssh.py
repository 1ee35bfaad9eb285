"""SSH reachability probe.

A VM counts as SSH-ready once it answers ICMP echo and accepts a
non-interactive login that runs a trivial command.
"""
import logging
from typing import Optional, Tuple

from ...config import Config
from ...utils import run_command, ssh_command
from ..gate.models import Target
from .base import AttemptBudget, Probe

logger = logging.getLogger("probes.ssh")

SSH_MARKER = "SSH_READINESS_OK"


def ping(address: str, budget: AttemptBudget, wait: Optional[int] = None) -> Tuple[bool, str]:
    """Send one ICMP echo request."""
    wait = wait or Config.PING_TIMEOUT
    remaining = budget.remaining()
    wait_s = max(1, int(min(wait, remaining)))
    result = run_command(['ping', '-c', '1', '-W', str(wait_s), address], timeout=remaining)
    if result.ok:
        return True, "reachable"
    return False, "not reachable via ping"


class SSHProbe(Probe):
    """Ping, then ``ssh user@host echo``."""

    name = "ssh"
    report_title = "SSH Readiness Report"
    report_name = "ssh-readiness-report"
    export_var = "SSH_LOG_FILE"

    def __init__(self, user: Optional[str] = None, key_path: Optional[str] = None,
                 port: Optional[int] = None, require_ping: bool = True):
        self.user = user or Config.SSH_USER
        self.key_path = key_path
        self.port = port
        self.require_ping = require_ping

    def check(self, target: Target, budget: AttemptBudget) -> Tuple[bool, str]:
        if self.require_ping:
            reachable, detail = ping(target.address, budget)
            if not reachable:
                return False, detail

        remaining = budget.remaining()
        cmd = ssh_command(
            target.address,
            f"echo {SSH_MARKER}",
            user=self.user,
            key_path=self.key_path,
            port=self.port,
            connect_timeout=int(remaining),
        )
        result = run_command(cmd, timeout=remaining)
        if result.ok and SSH_MARKER in result.stdout:
            return True, "SSH connectivity confirmed"
        reason = result.last_line() or f"exit code {result.returncode}"
        return False, f"SSH connectivity failed: {reason}"
