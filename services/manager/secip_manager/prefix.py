from __future__ import annotations

import copy
import enum
import shlex
from ipaddress import IPv6Network
from typing import Any, Dict, List

import structlog

from secip_manager.errors import (
    DiscoveryFailed,
    InvalidPrefix,
    OciError,
    PrefixUpdateError,
    RemoteCallError,
    RuleNotFound,
)

log = structlog.get_logger(__name__)


class DriftOutcome(str, enum.Enum):
    UNCHANGED = "unchanged"
    UPDATED = "updated"


def validate_prefix(prefix: str) -> str:
    try:
        net = IPv6Network(prefix, strict=False)
    except ValueError as e:
        raise InvalidPrefix(f"not an IPv6 prefix: {prefix!r}") from e
    # строго "/64" в тексте: строка уходит в правило как есть
    if not prefix.endswith("/64") or net.prefixlen != 64:
        raise InvalidPrefix(f"the discovered address is not a /64 prefix: {prefix}")
    return prefix


def parse_rdisc6(output: str) -> str:
    # "  Prefix                   : 2001:db8:1::/64" -> третье поле
    for line in output.splitlines():
        if "Prefix" in line:
            parts = line.split()
            return parts[2] if len(parts) > 2 else ""
    return ""


def probe_prefix(channel, host: str, interface: str) -> str:
    """Текущий префикс из Router Advertisement (`rdisc6 -1`) на хосте в домашней сети."""
    try:
        out = channel.check_output(host, f"rdisc6 -1 {shlex.quote(interface)}")
    except RemoteCallError as e:
        raise DiscoveryFailed(f"could not determine the current IPv6 prefix: {e}") from e
    pfx = parse_rdisc6(out)
    if not pfx:
        raise DiscoveryFailed(f"could not determine the current IPv6 prefix from {host} ({interface})")
    return pfx


class PrefixDriftDetector:
    """
    Держит source правила (по точному description) равным наблюдаемому /64.
    Сравнение строковое: "2001:DB8::/64" и "2001:db8::/64" считаются разными.
    Правило должно уже существовать; создавать его здесь не будем.
    """

    def __init__(self, client, security_list_id: str) -> None:
        self.client = client
        self.security_list_id = security_list_id

    def reconcile(self, observed: str, description: str) -> DriftOutcome:
        validate_prefix(observed)

        try:
            rules: List[Dict[str, Any]] = self.client.get_ingress_rules(self.security_list_id)
        except OciError as e:
            raise PrefixUpdateError(f"failed to fetch security list rules: {e}") from e

        idx = [i for i, r in enumerate(rules) if r.get("description") == description]
        if not idx:
            raise RuleNotFound(f"could not find a rule with the description '{description}'")
        if len(idx) > 1:
            raise RuleNotFound(f"description '{description}' matches {len(idx)} rules, must be unique")

        current = rules[idx[0]].get("source")
        log.info("rule_found", description=description, source=current)
        if current == observed:
            log.info("prefix_unchanged", prefix=observed)
            return DriftOutcome.UNCHANGED

        new_rules = copy.deepcopy(rules)
        new_rules[idx[0]]["source"] = observed
        log.info("prefix_drift", old=current, new=observed)
        try:
            self.client.update_ingress_rules(self.security_list_id, new_rules)
        except OciError as e:
            raise PrefixUpdateError(f"failed to update security list: {e}") from e
        log.info("rule_updated", security_list=self.security_list_id, prefix=observed)
        return DriftOutcome.UPDATED
