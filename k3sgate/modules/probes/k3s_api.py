"""K3s API server health probe.

A server is ready when its API port accepts connections, ``/healthz`` and
``/readyz`` answer successfully, and a client built from the kubeconfig can
list nodes through it.
"""
import logging
import socket
from typing import List, Optional, Tuple

import requests
import urllib3
from kubernetes import client
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException

from ...config import Config
from ...utils.kube import api_client_for, url_host
from ..gate.models import Target
from .base import AttemptBudget, Probe

logger = logging.getLogger("probes.k3s_api")

# K3s serves a self-signed certificate until the kubeconfig CA is distributed.
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

PORT_CHECK_TIMEOUT = 5
HEALTH_ENDPOINTS = ("/healthz", "/readyz")


class K3sApiProbe(Probe):
    """Port, health endpoints and a node listing, all against one server."""

    name = "k3s-api"
    report_title = "K3s API Readiness Report"
    report_name = "k3s-api-readiness-report"
    export_var = "K3S_API_LOG_FILE"

    def __init__(self, port: Optional[int] = None, kubeconfig: Optional[str] = None):
        self.port = port or Config.K3S_API_PORT
        self.kubeconfig = kubeconfig

    def check_port(self, target: Target, budget: AttemptBudget) -> Tuple[bool, str]:
        timeout = min(PORT_CHECK_TIMEOUT, budget.remaining())
        try:
            with socket.create_connection((target.address, self.port), timeout=timeout):
                return True, f"port {self.port} open"
        except socket.timeout:
            return False, f"port {self.port} timed out"
        except OSError as e:
            return False, f"port {self.port} not open: {e.strerror or e}"

    def check_endpoint(self, target: Target, path: str, budget: AttemptBudget) -> Tuple[bool, str]:
        url = f"https://{url_host(target.address)}:{self.port}{path}"
        try:
            response = requests.get(url, verify=False, timeout=budget.remaining())
        except requests.Timeout:
            return False, f"{path} timed out"
        except requests.RequestException as e:
            return False, f"{path} unreachable: {e.__class__.__name__}"
        if response.ok:
            return True, f"{path} ok"
        return False, f"{path} returned HTTP {response.status_code}"

    def check_nodes(self, target: Target, budget: AttemptBudget) -> Tuple[bool, str]:
        try:
            api_client = api_client_for(target.address, self.port, self.kubeconfig)
        except (ConfigException, OSError) as e:
            return False, f"kubeconfig unusable: {e}"
        try:
            nodes = client.CoreV1Api(api_client).list_node(_request_timeout=budget.remaining())
        except ApiException as e:
            return False, f"list nodes failed: HTTP {e.status} {e.reason}"
        except urllib3.exceptions.TimeoutError:
            return False, "list nodes timed out"
        except urllib3.exceptions.HTTPError as e:
            return False, f"list nodes failed: {e.__class__.__name__}"
        finally:
            api_client.close()
        return True, f"{len(nodes.items)} nodes listed"

    def check(self, target: Target, budget: AttemptBudget) -> Tuple[bool, str]:
        port_open, detail = self.check_port(target, budget)
        if not port_open:
            return False, detail

        results: List[Tuple[bool, str]] = []
        for path in HEALTH_ENDPOINTS:
            results.append(self.check_endpoint(target, path, budget))
        results.append(self.check_nodes(target, budget))

        failures = [detail for ok, detail in results if not ok]
        if failures:
            return False, "; ".join(failures)
        return True, "all K3s API health checks passed"
