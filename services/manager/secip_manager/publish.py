from __future__ import annotations

import posixpath
import shlex
from dataclasses import dataclass

import structlog

from secip_manager.errors import PublishFailed, RemoteCallError

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PublishResult:
    host: str
    path: str
    written: bool = True
    applied: bool = False


def publish_command(path: str) -> str:
    """
    Shell-команда для удалённой стороны: stdin -> temp-файл рядом с целью -> mv.
    Цель подменяется только целиком; при сбое остаётся предыдущая версия.
    """
    d = posixpath.dirname(path) or "/"
    base = posixpath.basename(path)
    tmpl = shlex.quote(posixpath.join(d, f".{base}.XXXXXX"))
    dst = shlex.quote(path)
    return (
        f"set -e; tmp=$(sudo mktemp {tmpl}); "
        f'trap \'sudo rm -f "$tmp"\' EXIT; '
        f'sudo tee "$tmp" > /dev/null; '
        f'sudo chmod 600 "$tmp"; '
        f'sudo mv -f "$tmp" {dst}; '
        f"trap - EXIT"
    )


def publish(channel, host: str, content: str, path: str) -> PublishResult:
    """Пишет документ, но НЕ применяет его: `netplan apply` на стороне вызывающего."""
    try:
        channel.check_output(host, publish_command(path), input=content)
    except RemoteCallError as e:
        raise PublishFailed(f"failed to write {path} on {host}: {e}") from e
    log.info("config_written", host=host, path=path, size=len(content))
    return PublishResult(host=host, path=path)
