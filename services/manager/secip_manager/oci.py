from __future__ import annotations

import json
import subprocess as sp
from typing import Any, Dict, List, Optional

import structlog

from secip_manager.errors import OciError
from secip_manager.models import Ipv6, OciCfg, PrivateIp

log = structlog.get_logger(__name__)


class OciCli:
    """
    Тонкая обёртка над `oci` CLI: каждая операция = один вызов, JSON на stdout.
    Пустой stdout у list-команд означает пустой список (так ведёт себя oci).
    """

    def __init__(self, cfg: Optional[OciCfg] = None) -> None:
        self.cfg = cfg or OciCfg()

    # ---- plumbing ----

    def _argv(self, *args: str) -> List[str]:
        argv = [self.cfg.cli]
        if self.cfg.config_file:
            argv += ["--config-file", self.cfg.config_file]
        if self.cfg.profile:
            argv += ["--profile", self.cfg.profile]
        return argv + list(args)

    def _call(self, *args: str) -> Any:
        argv = self._argv(*args)
        log.debug("oci_call", argv=argv)
        try:
            cp = sp.run(argv, check=False, capture_output=True, text=True, timeout=self.cfg.timeout)
        except sp.TimeoutExpired as e:
            raise OciError(f"oci call timed out after {self.cfg.timeout}s: {' '.join(args[:3])}", argv) from e
        except OSError as e:
            raise OciError(f"cannot run {self.cfg.cli}: {e}", argv) from e
        if cp.returncode != 0:
            err = (cp.stderr or cp.stdout or "").strip()
            raise OciError(f"oci {' '.join(args[:3])} failed (rc={cp.returncode}): {err}", argv, err)
        out = (cp.stdout or "").strip()
        if not out:
            return None
        try:
            return json.loads(out)
        except ValueError as e:
            raise OciError(f"oci {' '.join(args[:3])}: invalid JSON output: {e}", argv) from e

    @staticmethod
    def _data(doc: Any) -> List[Dict[str, Any]]:
        if doc is None:
            return []
        data = doc.get("data") if isinstance(doc, dict) else doc
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return list(data)

    # ---- private IPs (IPv4) ----

    def list_private_ips(self, vnic_id: str) -> List[PrivateIp]:
        doc = self._call("network", "private-ip", "list", "--vnic-id", vnic_id, "--all")
        return [PrivateIp.model_validate(d) for d in self._data(doc)]

    def create_private_ip(self, vnic_id: str, ip_address: str, hostname_label: str) -> PrivateIp:
        doc = self._call(
            "network", "private-ip", "create",
            "--vnic-id", vnic_id,
            "--ip-address", ip_address,
            "--hostname-label", hostname_label,
        )
        items = self._data(doc)
        if not items:
            return PrivateIp(id="", ip_address=ip_address, hostname_label=hostname_label, vnic_id=vnic_id)
        return PrivateIp.model_validate(items[0])

    def delete_private_ip(self, private_ip_id: str) -> None:
        self._call("network", "private-ip", "delete", "--private-ip-id", private_ip_id, "--force")

    # ---- IPv6 ----

    def list_ipv6s(self, vnic_id: str) -> List[Ipv6]:
        doc = self._call("network", "ipv6", "list", "--vnic-id", vnic_id, "--all")
        return [Ipv6.model_validate(d) for d in self._data(doc)]

    def create_ipv6(self, vnic_id: str, ip_address: str, display_name: str) -> Ipv6:
        doc = self._call(
            "network", "ipv6", "create",
            "--vnic-id", vnic_id,
            "--ip-address", ip_address,
            "--display-name", display_name,
        )
        items = self._data(doc)
        if not items:
            return Ipv6(id="", ip_address=ip_address, display_name=display_name, vnic_id=vnic_id)
        return Ipv6.model_validate(items[0])

    def delete_ipv6(self, ipv6_id: str) -> None:
        self._call("network", "ipv6", "delete", "--ipv6-id", ipv6_id, "--force")

    # ---- compute ----

    def list_vnic_ids(self, instance_id: str) -> List[str]:
        doc = self._call("compute", "instance", "list-vnics", "--instance-id", instance_id, "--all")
        return [str(d["id"]) for d in self._data(doc) if d.get("id")]

    # ---- security lists ----

    def get_ingress_rules(self, security_list_id: str) -> List[Dict[str, Any]]:
        doc = self._call(
            "network", "security-list", "get",
            "--security-list-id", security_list_id,
            "--query", 'data."ingress-security-rules"',
        )
        if doc is None:
            return []
        if not isinstance(doc, list):
            raise OciError(f"unexpected ingress rules payload for {security_list_id}: {type(doc).__name__}")
        return doc

    def update_ingress_rules(self, security_list_id: str, rules: List[Dict[str, Any]]) -> None:
        self._call(
            "network", "security-list", "update",
            "--security-list-id", security_list_id,
            "--ingress-security-rules", json.dumps(rules, ensure_ascii=False),
            "--force",
        )
