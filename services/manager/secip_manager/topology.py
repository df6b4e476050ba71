from __future__ import annotations

import json
import re
import shlex
from dataclasses import dataclass
from typing import Any, Dict, List

import structlog

from secip_manager.errors import DiscoveryFailed, RemoteCallError

log = structlog.get_logger(__name__)

IFACE_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class Topology:
    interface: str
    gateway: str


def _route_json(channel, host: str, command: str) -> List[Dict[str, Any]]:
    try:
        out = channel.check_output(host, command)
    except RemoteCallError as e:
        raise DiscoveryFailed(f"{host}: {e}") from e
    out = out.strip()
    if not out:
        return []
    try:
        data = json.loads(out)
    except ValueError as e:
        raise DiscoveryFailed(f"{host}: unparsable output of '{command}': {e}") from e
    if not isinstance(data, list):
        return []
    return [r for r in data if isinstance(r, dict)]


def discover_interface(channel, host: str, probe: str = "8.8.8.8") -> str:
    routes = _route_json(channel, host, f"ip -j route get {shlex.quote(probe)}")
    dev = str(routes[0].get("dev") or "") if routes else ""
    if not dev or not IFACE_RE.fullmatch(dev):
        raise DiscoveryFailed(f"could not determine a valid network interface on {host}, discovered: '{dev}'")
    return dev


def discover_gateway(channel, host: str) -> str:
    routes = _route_json(channel, host, "ip -j route show default")
    gw = str(routes[0].get("gateway") or "") if routes else ""
    if not gw:
        raise DiscoveryFailed(f"could not determine the default gateway on {host}")
    return gw


def discover(channel, host: str, probe: str = "8.8.8.8") -> Topology:
    """Два независимых запроса на хост, без ретраев. Любой сбой = DiscoveryFailed."""
    iface = discover_interface(channel, host, probe)
    log.info("interface_discovered", host=host, interface=iface)
    gw = discover_gateway(channel, host)
    log.info("gateway_discovered", host=host, gateway=gw)
    return Topology(interface=iface, gateway=gw)
