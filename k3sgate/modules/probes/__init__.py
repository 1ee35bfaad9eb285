"""
Readiness probes.

Each probe checks one thing about one target and reports ready or not:
- ``ssh``: ICMP reachability plus a non-interactive SSH login
- ``cloud-init``: ``cloud-init status --wait`` over SSH
- ``k3s-api``: API port, ``/healthz``, ``/readyz`` and a node listing
"""
from .base import AttemptBudget, FunctionProbe, Probe, ProbeTimeoutError
from .cloud_init import CloudInitProbe
from .k3s_api import K3sApiProbe
from .ssh import SSHProbe

__all__ = [
    'AttemptBudget',
    'FunctionProbe',
    'Probe',
    'ProbeTimeoutError',
    'SSHProbe',
    'CloudInitProbe',
    'K3sApiProbe',
]
