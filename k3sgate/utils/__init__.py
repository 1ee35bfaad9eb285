"""Utility functions and helpers for k3sgate."""
import logging
import subprocess
from typing import Any, List, NamedTuple, Optional

from ..config import Config

logger = logging.getLogger("k3sgate.utils")


class CommandResult(NamedTuple):
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def last_line(self) -> str:
        """Last non-empty line of output, stdout first."""
        for stream in (self.stdout, self.stderr):
            lines = [line.strip() for line in (stream or '').splitlines() if line.strip()]
            if lines:
                return lines[-1]
        return ''


def run_command(cmd: List[str], timeout: float) -> CommandResult:
    """Run a local command and capture its output.

    Args:
        cmd: Command and arguments
        timeout: Seconds before the child is killed

    Returns:
        CommandResult with exit code and decoded output

    Raises:
        subprocess.TimeoutExpired: if the command ran past ``timeout``
        OSError: if the binary cannot be started
    """
    logger.debug("Running: %s (timeout %.1fs)", ' '.join(cmd), timeout)
    result = subprocess.run(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
        text=True,
        timeout=timeout,
    )
    return CommandResult(result.returncode, result.stdout, result.stderr)


def ssh_command(
    host: str,
    remote_command: str,
    user: Optional[str] = None,
    key_path: Optional[str] = None,
    port: Optional[int] = None,
    connect_timeout: int = 10,
) -> List[str]:
    """Build a non-interactive ssh invocation for a fresh VM.

    Host keys are not checked: freshly cloned VMs regenerate them.
    """
    cmd = [
        'ssh',
        '-T',
        '-o', 'BatchMode=yes',
        '-o', f'ConnectTimeout={max(1, int(connect_timeout))}',
        '-o', 'StrictHostKeyChecking=no',
        '-o', 'UserKnownHostsFile=/dev/null',
        '-o', 'LogLevel=ERROR',
        '-p', str(port or Config.SSH_PORT),
    ]
    key_path = key_path if key_path is not None else Config.SSH_KEY_PATH
    if key_path:
        cmd.extend(['-i', key_path])
    cmd.extend([f'{user or Config.SSH_USER}@{host}', remote_command])
    return cmd


def redact_sensitive_data(data: Any) -> Any:
    """Recursively redact sensitive values from dictionaries and lists."""
    if isinstance(data, dict):
        return {
            k: "[REDACTED]" if any(
                redact_key.lower() in k.lower()
                for redact_key in Config.REDACT_KEYS
            ) else redact_sensitive_data(v)
            for k, v in data.items()
        }
    elif isinstance(data, (list, tuple)):
        return [redact_sensitive_data(item) for item in data]
    return data
