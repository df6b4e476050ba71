from __future__ import annotations

import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence


def render_inventory(
    hostname: str,
    vnic_id: str,
    primary_ip: str,
    ipv4s: Sequence[str],
    ipv6s: Sequence[str],
    now: Optional[datetime] = None,
) -> str:
    ts = (now or datetime.now().astimezone()).strftime("%a %b %d %H:%M:%S %Z %Y")
    lines: List[str] = [
        f"# Host: {hostname}",
        f"# VNIC: {vnic_id}",
        f"# Primary IP: {primary_ip}",
        f"# Generated on: {ts}",
        "",
        "# [IPv4 Secondary IPs]",
    ]
    lines += list(ipv4s) or ["# (None)"]
    lines += ["", "# [IPv6 Secondary IPs]"]
    lines += list(ipv6s) or ["# (None)"]
    return "\n".join(lines) + "\n"


def inventory_path(inventory_dir: str, hostname: str) -> Path:
    return Path(inventory_dir) / f"{hostname}-IP-list.db"


def write_inventory(path: Path, content: str) -> Path:
    """Справочная запись, обратно никем не читается. Пишем атомарно."""
    path.parent.mkdir(parents=True, exist_ok=True)
    f = tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding="utf-8")
    tmp_name = f.name
    try:
        with f:
            f.write(content)
        os.replace(tmp_name, path)
    except Exception:
        # не оставляем мусорный tmp рядом с записью
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return path
