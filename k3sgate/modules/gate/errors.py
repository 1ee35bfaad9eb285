"""Exceptions raised by the readiness gate engine."""


class GateError(Exception):
    """Base class for readiness gate errors."""
    pass


class TargetFormatError(GateError, ValueError):
    """Raised for a malformed ``address|label`` token or target address."""
    pass


class ProbeNotFoundError(GateError, KeyError):
    """Raised when a probe name is not registered."""

    def __str__(self):
        return str(self.args[0]) if self.args else "Unknown probe"


class ConfigError(GateError):
    """Raised when gate settings fail validation."""
    pass
