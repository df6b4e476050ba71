from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =========================
#        CONFIG
# =========================

class OciCfg(BaseModel):
    cli: str = "oci"
    profile: Optional[str] = None
    config_file: Optional[str] = None
    timeout: float = Field(60.0, gt=0)


class SshCfg(BaseModel):
    user: Optional[str] = None
    identity: Optional[str] = None
    connect_timeout: int = Field(10, ge=1)
    timeout: float = Field(30.0, gt=0)
    strict_host_key_checking: Literal["yes", "no", "accept-new"] = "no"
    known_hosts_file: Optional[str] = "/dev/null"


class SyncCfg(BaseModel):
    netplan_path: str = "/etc/netplan/90-script-addons.yaml"
    inventory_dir: str = "/home/scripts/DB"
    probe_address: str = "8.8.8.8"
    table_base: int = Field(100, ge=1)

    @field_validator("netplan_path")
    @classmethod
    def _absolute(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("netplan_path must be absolute")
        return v


class PrefixCfg(BaseModel):
    security_list_id: Optional[str] = None
    rule_description: str = "ALLOW_HOME_NETWORK@NET28"
    probe_host: str = "root@msm"
    probe_interface: str = "wlan0"
    log_file: Optional[str] = "/var/log/oci_ipv6_update.log"


class Config(BaseModel):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    oci: OciCfg = Field(default_factory=OciCfg)
    ssh: SshCfg = Field(default_factory=SshCfg)
    sync: SyncCfg = Field(default_factory=SyncCfg)
    prefix: PrefixCfg = Field(default_factory=PrefixCfg)

    model_config = ConfigDict(extra="forbid")


# =========================
#     PROVIDER RECORDS
# =========================
# oci CLI отдаёт kebab-case ключи: "ip-address", "is-primary", ...

class PrivateIp(BaseModel):
    id: str
    ip_address: Optional[str] = Field(None, alias="ip-address")
    is_primary: bool = Field(False, alias="is-primary")
    hostname_label: Optional[str] = Field(None, alias="hostname-label")
    vnic_id: Optional[str] = Field(None, alias="vnic-id")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Ipv6(BaseModel):
    id: str
    ip_address: Optional[str] = Field(None, alias="ip-address")
    display_name: Optional[str] = Field(None, alias="display-name")
    vnic_id: Optional[str] = Field(None, alias="vnic-id")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
