from __future__ import annotations

from dataclasses import dataclass
from ipaddress import ip_address
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import structlog

from secip_manager.errors import MissingPrimary
from secip_manager.inventory import inventory_path, render_inventory, write_inventory
from secip_manager.models import SyncCfg
from secip_manager.netplan import PolicyRouteDocument, build_document
from secip_manager.publish import publish
from secip_manager.topology import discover

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SyncResult:
    vnic_id: str
    hostname: str
    host: str
    ipv4s: Tuple[str, ...]
    ipv6s: Tuple[str, ...]
    inventory: Optional[Path]
    document: Optional[PolicyRouteDocument] = None
    path: Optional[str] = None
    written: bool = False


def _sorted(addrs: Sequence[str]) -> List[str]:
    # аналог `sort -V`: по числовому значению адреса внутри семейства
    return sorted(addrs, key=lambda a: int(ip_address(a)))


def collect(client, vnic_id: str) -> Tuple[str, str, List[str], List[str]]:
    """(primary_ip, hostname, secondary v4, secondary v6) по данным провайдера."""
    pips = client.list_private_ips(vnic_id)
    v6 = client.list_ipv6s(vnic_id)

    primary = next((p for p in pips if p.is_primary), None)
    if primary is None or not primary.ip_address or not primary.hostname_label:
        raise MissingPrimary(f"failed to retrieve primary IP or hostname for VNIC {vnic_id}")

    ipv4s = _sorted([p.ip_address for p in pips if not p.is_primary and p.ip_address])
    ipv6s = _sorted([a.ip_address for a in v6 if a.ip_address])
    return primary.ip_address, primary.hostname_label, ipv4s, ipv6s


def sync_vnic(client, channel, vnic_id: str, cfg: Optional[SyncCfg] = None) -> SyncResult:
    """
    VNIC -> netplan на хосте (по primary IP).
    Документ пересобирается целиком на каждый запуск и только записывается,
    `netplan apply` остаётся за оператором.
    """
    cfg = cfg or SyncCfg()
    primary_ip, hostname, ipv4s, ipv6s = collect(client, vnic_id)
    log.info("primary_found", vnic=vnic_id, ip=primary_ip, hostname=hostname,
             ipv4=len(ipv4s), ipv6=len(ipv6s))

    inv = inventory_path(cfg.inventory_dir, hostname)
    write_inventory(inv, render_inventory(hostname, vnic_id, primary_ip, ipv4s, ipv6s))
    log.info("inventory_written", path=str(inv))

    base = dict(vnic_id=vnic_id, hostname=hostname, host=primary_ip,
                ipv4s=tuple(ipv4s), ipv6s=tuple(ipv6s), inventory=inv)
    if not ipv4s and not ipv6s:
        log.info("sync_nothing_to_do", vnic=vnic_id)
        return SyncResult(**base)

    topo = discover(channel, primary_ip, cfg.probe_address)
    doc = build_document(topo.interface, topo.gateway, ipv4s, ipv6s, cfg.table_base)
    publish(channel, primary_ip, doc.render(), cfg.netplan_path)
    return SyncResult(**base, document=doc, path=cfg.netplan_path, written=True)
