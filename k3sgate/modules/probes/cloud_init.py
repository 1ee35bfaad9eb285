"""Cloud-init completion probe."""
import logging
from typing import Optional, Tuple

from ...config import Config
from ...utils import run_command, ssh_command
from ..gate.models import Target
from .base import AttemptBudget, Probe
from .ssh import ping

logger = logging.getLogger("probes.cloud_init")

# `cloud-init status` exits 0 only once provisioning finished cleanly
STATUS_DONE = 0
SSH_FAILURE = 255


class CloudInitProbe(Probe):
    """Ping, then block on ``cloud-init status --wait`` over SSH."""

    name = "cloud-init"
    report_title = "Cloud-Init Readiness Report"
    report_name = "cloud-init-readiness-report"
    export_var = "LOG_FILE"

    def __init__(self, user: Optional[str] = None, key_path: Optional[str] = None,
                 port: Optional[int] = None, connect_timeout: int = 10):
        self.user = user or Config.SSH_USER
        self.key_path = key_path
        self.port = port
        self.connect_timeout = connect_timeout

    def check(self, target: Target, budget: AttemptBudget) -> Tuple[bool, str]:
        reachable, detail = ping(target.address, budget)
        if not reachable:
            return False, detail

        remaining = budget.remaining()
        cmd = ssh_command(
            target.address,
            "cloud-init status --wait",
            user=self.user,
            key_path=self.key_path,
            port=self.port,
            connect_timeout=int(min(self.connect_timeout, remaining)),
        )
        result = run_command(cmd, timeout=remaining)
        status = result.last_line()
        if result.returncode == STATUS_DONE:
            return True, status or "status: done"
        if result.returncode == SSH_FAILURE:
            return False, f"SSH connection failed: {status or 'no output'}"
        return False, f"cloud-init not ready: {status or f'exit code {result.returncode}'}"
