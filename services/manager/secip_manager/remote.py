from __future__ import annotations

import subprocess as sp
from dataclasses import dataclass
from typing import List, Optional

import structlog

from secip_manager.errors import RemoteCallError
from secip_manager.models import SshCfg

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RemoteResult:
    rc: int
    stdout: str
    stderr: str


class SshChannel:
    """
    Канал "выполни команду на хосте H": системный ssh, неинтерактивно.
    Каждый вызов ограничен cfg.timeout; таймаут = RemoteCallError.
    """

    def __init__(self, cfg: Optional[SshCfg] = None) -> None:
        self.cfg = cfg or SshCfg()

    def _argv(self, host: str) -> List[str]:
        argv: List[str] = [
            "ssh",
            "-q",
            "-T",
            "-o",
            "BatchMode=yes",
            "-o",
            f"ConnectTimeout={self.cfg.connect_timeout}",
            "-o",
            f"StrictHostKeyChecking={self.cfg.strict_host_key_checking}",
        ]
        if self.cfg.known_hosts_file:
            argv += ["-o", f"UserKnownHostsFile={self.cfg.known_hosts_file}"]
        if self.cfg.identity:
            argv += ["-i", self.cfg.identity]
        if self.cfg.user:
            argv += ["-l", self.cfg.user]
        return argv + [host]

    def run(self, host: str, command: str, input: Optional[str] = None) -> RemoteResult:
        argv = self._argv(host) + [command]
        log.debug("ssh_call", host=host, command=command)
        try:
            cp = sp.run(
                argv,
                input=input,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.cfg.timeout,
            )
        except sp.TimeoutExpired as e:
            raise RemoteCallError(f"ssh {host}: timed out after {self.cfg.timeout}s", host=host) from e
        except OSError as e:
            raise RemoteCallError(f"ssh {host}: cannot run ssh: {e}", host=host) from e
        return RemoteResult(rc=cp.returncode, stdout=cp.stdout or "", stderr=cp.stderr or "")

    def check_output(self, host: str, command: str, input: Optional[str] = None) -> str:
        res = self.run(host, command, input=input)
        if res.rc != 0:
            raise RemoteCallError(
                f"ssh {host}: '{command}' failed (rc={res.rc}): {res.stderr.strip()}",
                host=host,
                rc=res.rc,
                stderr=res.stderr,
            )
        return res.stdout
