"""k3sgate - concurrent readiness gates for K3s clusters on KVM."""

__version__ = "0.1.0"
