"""Configuration management for the k3sgate application."""
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


# Placeholder only; `k3sgate serve` refuses to start with it
DEFAULT_GATE_API_KEY = "k3sgate-secret"


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name, "")
    return value or None


class Config:
    """Application configuration with sensible defaults.

    Per-gate policy (attempts, delays, timeouts) lives in
    :class:`k3sgate.modules.gate.settings.GateSettings`; this class holds the
    settings shared by every gate.
    """

    # SSH access to the VMs
    SSH_USER: str = os.getenv("SSH_USER", "ubuntu")
    SSH_KEY_PATH: Optional[str] = _optional("SSH_KEY_PATH")
    SSH_PORT: int = int(os.getenv("SSH_PORT", "22"))
    PING_TIMEOUT: int = int(os.getenv("PING_TIMEOUT", "5"))

    # K3s API
    KUBECONFIG: str = os.getenv("K3S_KUBECONFIG", os.getenv("KUBECONFIG", "/tmp/k3s-kubeconfig"))
    K3S_API_PORT: int = int(os.getenv("K3S_API_PORT", "6443"))

    # Reports
    REPORT_DIR: str = os.getenv("REPORT_DIR", "/tmp")
    REPORT_FORMAT: str = os.getenv("REPORT_FORMAT", "text").lower()
    EXPORT_ENV_FILE: Optional[str] = _optional("EXPORT_ENV_FILE") or _optional("GITHUB_ENV")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    LOG_FILE: Optional[str] = _optional("LOG_FILE")
    LOG_MAX_SIZE_MB: int = int(os.getenv("LOG_MAX_SIZE_MB", "10"))
    LOG_BACKUP_COUNT: int = int(os.getenv("LOG_BACKUP_COUNT", "3"))

    # HTTP API
    GATE_API_KEY: str = os.getenv("GATE_API_KEY", DEFAULT_GATE_API_KEY)

    # Security
    REDACT_KEYS: tuple = ("api_key", "password", "secret", "token")

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """Public settings as a plain dict."""
        return {
            k: v for k, v in vars(cls).items()
            if k.isupper() and k != "REDACT_KEYS"
        }

    @classmethod
    def validate(cls) -> None:
        """Validate shared configuration."""
        if cls.REPORT_FORMAT not in ("text", "json", "both"):
            raise ValueError(f"REPORT_FORMAT must be text, json or both, got {cls.REPORT_FORMAT!r}")
        if not 0 < cls.SSH_PORT < 65536:
            raise ValueError(f"SSH_PORT out of range: {cls.SSH_PORT}")
        if not 0 < cls.K3S_API_PORT < 65536:
            raise ValueError(f"K3S_API_PORT out of range: {cls.K3S_API_PORT}")

# Don't validate on import to allow for dynamic configuration
# Call Config.validate() explicitly when needed
