from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

import structlog

from secip_manager.errors import MissingPrimary, SecIpError, ValidationError
from secip_manager.ipam import Family, allocate_range, family_of
from secip_manager.models import PrivateIp
from secip_manager.naming import name_for

log = structlog.get_logger(__name__)

FAMILIES: Tuple[Family, ...] = ("ipv4", "ipv6")


@dataclass
class BatchOutcome:
    """Итог поэлементного цикла: ошибки отдельных адресов не фатальны."""

    succeeded: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def nothing_to_do(self) -> bool:
        return self.processed == 0

    @property
    def ok(self) -> bool:
        return not self.failed


class SecondaryIpReconciler:
    def __init__(self, client) -> None:
        self.client = client

    def primary(self, vnic_id: str) -> PrivateIp:
        for pip in self.client.list_private_ips(vnic_id):
            if pip.is_primary:
                if not pip.hostname_label:
                    break
                return pip
        raise MissingPrimary(f"could not determine primary hostname-label for VNIC {vnic_id}")

    # ---- add ----

    def add_range(self, vnic_id: str, start: str, count: int) -> BatchOutcome:
        """
        Добавляет count адресов подряд от start. Best-effort по элементам:
        упавший create логируется и попадает в failed, цикл идёт дальше.
        Повторный запуск с тем же диапазоном не идемпотентен (дубли упадут поштучно).
        """
        fam = family_of(start)
        primary = self.primary(vnic_id)
        hostname = primary.hostname_label or ""
        log.info("primary_found", vnic=vnic_id, hostname=hostname)

        # RangeOverflow вылетает здесь, до первого create
        addrs = allocate_range(start, count)
        log.info("add_start", vnic=vnic_id, start=start, count=count, family=fam)

        out = BatchOutcome()
        for ip in addrs:
            label = name_for(hostname, ip)
            try:
                if fam == "ipv4":
                    self.client.create_private_ip(vnic_id, ip, label)
                else:
                    self.client.create_ipv6(vnic_id, ip, label)
            except SecIpError as e:
                log.warning("ip_create_failed", vnic=vnic_id, ip=ip, label=label, error=str(e))
                out.failed.append((ip, str(e)))
                continue
            log.info("ip_created", vnic=vnic_id, ip=ip, label=label)
            out.succeeded.append(ip)
        return out

    # ---- cleanup ----

    def cleanup(self, vnic_id: str, families: Iterable[Family] = FAMILIES) -> Dict[Family, BatchOutcome]:
        """
        ipv4: удаляются только вторичные (is_primary == False).
        ipv6: удаляются ВСЕ IPv6 на VNIC, деления на primary/secondary нет,
              VNIC теряет IPv6-связность целиком.
        """
        res: Dict[Family, BatchOutcome] = {}
        for fam in _normalize(families):
            if fam == "ipv4":
                targets = [(p.id, p.ip_address or p.id) for p in self.client.list_private_ips(vnic_id) if not p.is_primary]
                delete = self.client.delete_private_ip
            else:
                targets = [(a.id, a.ip_address or a.id) for a in self.client.list_ipv6s(vnic_id)]
                delete = self.client.delete_ipv6

            out = BatchOutcome()
            if not targets:
                log.info("cleanup_nothing_to_do", vnic=vnic_id, family=fam)
            for rid, ip in targets:
                try:
                    delete(rid)
                except SecIpError as e:
                    log.warning("ip_delete_failed", vnic=vnic_id, family=fam, id=rid, ip=ip, error=str(e))
                    out.failed.append((rid, str(e)))
                    continue
                log.info("ip_deleted", vnic=vnic_id, family=fam, id=rid, ip=ip)
                out.succeeded.append(rid)
            res[fam] = out
        return res

    def cleanup_instance(
        self, instance_id: str, families: Iterable[Family] = FAMILIES
    ) -> Dict[str, Dict[Family, BatchOutcome]]:
        fams = _normalize(families)
        vnics = self.client.list_vnic_ids(instance_id)
        log.info("instance_vnics", instance=instance_id, vnics=vnics)
        return {vnic: self.cleanup(vnic, fams) for vnic in vnics}


def _normalize(families: Iterable[Family]) -> List[Family]:
    fams: List[Family] = []
    for f in families:
        if f not in FAMILIES:
            raise ValidationError(f"unknown address family: {f}")
        if f not in fams:
            fams.append(f)
    return fams
