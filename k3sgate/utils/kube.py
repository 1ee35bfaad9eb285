import ipaddress
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from kubernetes import client, config
from kubernetes.config import ConfigException

from ..config import Config


def load_kubeconfig(path: Optional[str] = None) -> str:
    """
    Resolve the kubeconfig file to use.
    Returns the actual path of the kubeconfig.
    """
    path = path or Config.KUBECONFIG
    resolved = Path(os.path.expanduser(path)).resolve()
    if not resolved.exists():
        raise FileNotFoundError(f"Kubeconfig not found: {resolved}")
    return str(resolved)


def kubeconfig_from_env() -> Optional[Dict[str, Any]]:
    """
    Parse the KUBECONFIG_CONTENT env var (CI/CD secret), if set.
    Nothing is written to disk, so concurrent callers never share a file.
    """
    content = os.environ.get("KUBECONFIG_CONTENT")
    if not content:
        return None
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigException(f"Invalid kube-config in KUBECONFIG_CONTENT: {e}") from e
    if not isinstance(data, dict):
        raise ConfigException("Invalid kube-config in KUBECONFIG_CONTENT: not a mapping")
    return data


def url_host(address: str) -> str:
    """Host part of a URL for an address, bracketing IPv6 literals."""
    try:
        if isinstance(ipaddress.ip_address(address), ipaddress.IPv6Address):
            return f"[{address}]"
    except ValueError:
        pass
    return address


def api_client_for(address: str, port: int, kubeconfig: Optional[str] = None) -> client.ApiClient:
    """
    Build an API client from the kubeconfig, pointed at one specific server.
    Credentials and CA come from the kubeconfig; retries are disabled so a
    single call stays inside its timeout.
    """
    configuration = client.Configuration()
    env_config = kubeconfig_from_env()
    if env_config is not None:
        config.load_kube_config_from_dict(env_config, client_configuration=configuration)
    else:
        config.load_kube_config(config_file=load_kubeconfig(kubeconfig), client_configuration=configuration)
    configuration.host = f"https://{url_host(address)}:{port}"
    configuration.retries = 0
    return client.ApiClient(configuration)
