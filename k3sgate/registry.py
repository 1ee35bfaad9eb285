"""Probe registry: resolves probe names used by the CLI and the HTTP API."""
from typing import Callable, Dict, List

from k3sgate.modules.gate.errors import ProbeNotFoundError
from k3sgate.modules.probes import CloudInitProbe, K3sApiProbe, Probe, SSHProbe

_REGISTRY: Dict[str, Callable[..., Probe]] = {
    SSHProbe.name: SSHProbe,
    CloudInitProbe.name: CloudInitProbe,
    K3sApiProbe.name: K3sApiProbe,
}


def register_probe(name: str, factory: Callable[..., Probe], replace: bool = False) -> None:
    """Make a probe available by name."""
    if name in _REGISTRY and not replace:
        raise ValueError(f"Probe '{name}' is already registered")
    _REGISTRY[name] = factory


def unregister_probe(name: str) -> None:
    _REGISTRY.pop(name, None)


def get_factory(name: str) -> Callable[..., Probe]:
    try:
        return _REGISTRY[name]
    except KeyError:
        raise ProbeNotFoundError(
            f"Unknown probe '{name}'. Available: {', '.join(list_probes())}"
        ) from None


def get_probe(name: str, **kwargs) -> Probe:
    """Instantiate a registered probe."""
    return get_factory(name)(**kwargs)


def list_probes() -> List[str]:
    return sorted(_REGISTRY)
