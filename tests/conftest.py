from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import pytest
import structlog

from secip_manager.errors import OciError, RemoteCallError
from secip_manager.models import Ipv6, PrivateIp
from secip_manager.remote import RemoteResult


class FakeOci:
    """In-memory stand-in for OciCli: records every mutating call."""

    def __init__(self) -> None:
        self.private_ips: Dict[str, List[PrivateIp]] = {}
        self.ipv6s: Dict[str, List[Ipv6]] = {}
        self.vnics: Dict[str, List[str]] = {}
        self.rules: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[Tuple] = []
        self.fail_create: set = set()
        self.fail_delete: set = set()
        self.fail_update = False
        self._seq = 0

    def _id(self, kind: str) -> str:
        self._seq += 1
        return f"ocid1.{kind}.oc1..{self._seq:04d}"

    def add_primary(self, vnic: str, ip: str, hostname: Optional[str]) -> None:
        self.private_ips.setdefault(vnic, []).append(
            PrivateIp(id=self._id("privateip"), ip_address=ip, is_primary=True, hostname_label=hostname, vnic_id=vnic)
        )

    def add_secondary(self, vnic: str, ip: str) -> None:
        self.private_ips.setdefault(vnic, []).append(
            PrivateIp(id=self._id("privateip"), ip_address=ip, is_primary=False, vnic_id=vnic)
        )

    def add_ipv6(self, vnic: str, ip: str) -> None:
        self.ipv6s.setdefault(vnic, []).append(Ipv6(id=self._id("ipv6"), ip_address=ip, vnic_id=vnic))

    # ---- client API ----

    def list_private_ips(self, vnic_id: str) -> List[PrivateIp]:
        self.calls.append(("list_private_ips", vnic_id))
        return list(self.private_ips.get(vnic_id, []))

    def create_private_ip(self, vnic_id: str, ip_address: str, hostname_label: str) -> PrivateIp:
        self.calls.append(("create_private_ip", vnic_id, ip_address, hostname_label))
        if ip_address in self.fail_create:
            raise OciError(f"ServiceError: {ip_address} already assigned")
        pip = PrivateIp(id=self._id("privateip"), ip_address=ip_address, is_primary=False,
                        hostname_label=hostname_label, vnic_id=vnic_id)
        self.private_ips.setdefault(vnic_id, []).append(pip)
        return pip

    def delete_private_ip(self, private_ip_id: str) -> None:
        self.calls.append(("delete_private_ip", private_ip_id))
        if private_ip_id in self.fail_delete:
            raise OciError(f"ServiceError: cannot delete {private_ip_id}")
        for vnic, items in self.private_ips.items():
            self.private_ips[vnic] = [p for p in items if p.id != private_ip_id]

    def list_ipv6s(self, vnic_id: str) -> List[Ipv6]:
        self.calls.append(("list_ipv6s", vnic_id))
        return list(self.ipv6s.get(vnic_id, []))

    def create_ipv6(self, vnic_id: str, ip_address: str, display_name: str) -> Ipv6:
        self.calls.append(("create_ipv6", vnic_id, ip_address, display_name))
        if ip_address in self.fail_create:
            raise OciError(f"ServiceError: {ip_address} already assigned")
        a = Ipv6(id=self._id("ipv6"), ip_address=ip_address, display_name=display_name, vnic_id=vnic_id)
        self.ipv6s.setdefault(vnic_id, []).append(a)
        return a

    def delete_ipv6(self, ipv6_id: str) -> None:
        self.calls.append(("delete_ipv6", ipv6_id))
        if ipv6_id in self.fail_delete:
            raise OciError(f"ServiceError: cannot delete {ipv6_id}")
        for vnic, items in self.ipv6s.items():
            self.ipv6s[vnic] = [a for a in items if a.id != ipv6_id]

    def list_vnic_ids(self, instance_id: str) -> List[str]:
        self.calls.append(("list_vnic_ids", instance_id))
        return list(self.vnics.get(instance_id, []))

    def get_ingress_rules(self, security_list_id: str) -> List[Dict[str, Any]]:
        self.calls.append(("get_ingress_rules", security_list_id))
        if security_list_id not in self.rules:
            raise OciError(f"NotAuthorizedOrNotFound: {security_list_id}")
        return copy.deepcopy(self.rules[security_list_id])

    def update_ingress_rules(self, security_list_id: str, rules: List[Dict[str, Any]]) -> None:
        self.calls.append(("update_ingress_rules", security_list_id, copy.deepcopy(rules)))
        if self.fail_update:
            raise OciError("ServiceError: update rejected")
        self.rules[security_list_id] = copy.deepcopy(rules)

    def mutations(self) -> List[Tuple]:
        return [c for c in self.calls if not c[0].startswith(("list_", "get_"))]


class FakeChannel:
    """Remote host channel: canned stdout per (host, command prefix)."""

    def __init__(self) -> None:
        self.responses: Dict[Tuple[str, str], RemoteResult] = {}
        self.calls: List[Tuple[str, str, Optional[str]]] = []

    def on(self, host: str, prefix: str, stdout: str = "", rc: int = 0, stderr: str = "") -> None:
        self.responses[(host, prefix)] = RemoteResult(rc=rc, stdout=stdout, stderr=stderr)

    def run(self, host: str, command: str, input: Optional[str] = None) -> RemoteResult:
        self.calls.append((host, command, input))
        for (h, prefix), res in self.responses.items():
            if h == host and command.startswith(prefix):
                return res
        return RemoteResult(rc=255, stdout="", stderr=f"ssh: connect to host {host} port 22: No route to host")

    def check_output(self, host: str, command: str, input: Optional[str] = None) -> str:
        res = self.run(host, command, input=input)
        if res.rc != 0:
            raise RemoteCallError(f"ssh {host}: '{command}' failed (rc={res.rc})", host=host, rc=res.rc)
        return res.stdout


def route_get(dev: str = "ens3", gateway: str = "10.0.0.1", probe: str = "8.8.8.8") -> str:
    return json.dumps([{"dst": probe, "gateway": gateway, "dev": dev, "prefsrc": "10.0.0.5", "flags": [], "uid": 0, "cache": []}])


def route_default(gateway: str = "10.0.0.1", dev: str = "ens3") -> str:
    return json.dumps([{"dst": "default", "gateway": gateway, "dev": dev, "protocol": "dhcp", "metric": 100, "flags": []}])


@pytest.fixture
def oci() -> FakeOci:
    return FakeOci()


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    structlog.reset_defaults()
