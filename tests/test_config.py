from __future__ import annotations

import json
import logging

import pytest
import structlog

from secip_manager.config_io import load_config
from secip_manager.errors import ValidationError
from secip_manager.util import setup_logging


def test_missing_file_gives_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("Security_List", raising=False)
    cfg = load_config(tmp_path / "nope.yaml")
    assert cfg.sync.netplan_path == "/etc/netplan/90-script-addons.yaml"
    assert cfg.sync.table_base == 100
    assert cfg.sync.probe_address == "8.8.8.8"
    assert cfg.prefix.rule_description == "ALLOW_HOME_NETWORK@NET28"
    assert cfg.prefix.security_list_id is None
    assert cfg.oci.cli == "oci"


def test_yaml_overrides(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text(
        "log_level: DEBUG\n"
        "oci:\n  profile: HOME\n  timeout: 15\n"
        "ssh:\n  user: ubuntu\n  strict_host_key_checking: accept-new\n"
        "sync:\n  table_base: 200\n  inventory_dir: /srv/db\n"
        "prefix:\n  security_list_id: ocid1.securitylist.oc1..x\n",
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.log_level == "DEBUG"
    assert cfg.oci.profile == "HOME" and cfg.oci.timeout == 15
    assert cfg.ssh.user == "ubuntu"
    assert cfg.sync.table_base == 200
    assert cfg.prefix.security_list_id == "ocid1.securitylist.oc1..x"


def test_security_list_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("Security_List", "ocid1.securitylist.oc1..env")
    assert load_config(tmp_path / "nope.yaml").prefix.security_list_id == "ocid1.securitylist.oc1..env"


@pytest.mark.parametrize(
    "text",
    [
        "sync:\n  table_base: 0\n",
        "sync:\n  netplan_path: relative.yaml\n",
        "unknown_section: 1\n",
        "- a\n- b\n",
        "oci: [unclosed\n",
    ],
)
def test_invalid_config(tmp_path, text):
    p = tmp_path / "config.yaml"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(p)


def test_logging_writes_json_lines_to_file(tmp_path):
    log_file = tmp_path / "logs" / "update.log"
    setup_logging("INFO", str(log_file))

    structlog.get_logger("secip_manager.test").info("prefix_unchanged", prefix="2001:db8::/64")
    structlog.get_logger("secip_manager.test").debug("hidden")
    for h in logging.getLogger().handlers:
        h.flush()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    rec = json.loads(lines[0])
    assert rec["message"] == "prefix_unchanged"
    assert rec["prefix"] == "2001:db8::/64"
    assert rec["level"] == "INFO"
    assert "ts" in rec
