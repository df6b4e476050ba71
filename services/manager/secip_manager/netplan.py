from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

import yaml

HEADER = "# auto-generated by secip_manager, do not edit: overwritten on every sync\n"


@dataclass(frozen=True)
class RouteTable:
    source: str
    table: int


@dataclass(frozen=True)
class PolicyRouteDocument:
    interface: str
    gateway: str
    addresses: Tuple[str, ...]
    tables: Tuple[RouteTable, ...]

    def to_dict(self) -> Dict[str, Any]:
        eth: Dict[str, Any] = {"addresses": list(self.addresses)}
        if self.tables:
            eth["routes"] = [
                {"to": "default", "via": self.gateway, "table": t.table, "on-link": True}
                for t in self.tables
            ]
            eth["routing-policy"] = [{"from": t.source, "table": t.table} for t in self.tables]
        return {"network": {"version": 2, "ethernets": {self.interface: eth}}}

    def render(self) -> str:
        body = yaml.safe_dump(self.to_dict(), sort_keys=False, default_flow_style=False)
        return HEADER + body


def assign_tables(ipv4s: Sequence[str], base: int = 100) -> Tuple[RouteTable, ...]:
    # номер таблицы = base + позиция в списке; никакого внешнего счётчика
    return tuple(RouteTable(source=ip, table=base + i) for i, ip in enumerate(ipv4s))


def host_routes(ipv4s: Sequence[str], ipv6s: Sequence[str]) -> Tuple[str, ...]:
    out: List[str] = [f"{ip}/32" for ip in ipv4s]
    out += [f"{ip}/128" for ip in ipv6s]
    return tuple(out)


def build_document(
    interface: str,
    gateway: str,
    ipv4s: Sequence[str],
    ipv6s: Sequence[str],
    table_base: int = 100,
) -> PolicyRouteDocument:
    """
    Адреса: сначала v4 (/32), потом v6 (/128), в порядке входа.
    routes / routing-policy: только v4, таблицы table_base, table_base+1, ...
    IPv6 policy routing не получает.
    """
    return PolicyRouteDocument(
        interface=interface,
        gateway=gateway,
        addresses=host_routes(ipv4s, ipv6s),
        tables=assign_tables(ipv4s, table_base),
    )
