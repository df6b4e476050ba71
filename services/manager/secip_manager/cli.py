from __future__ import annotations

import enum
from typing import Dict, List, NoReturn, Optional

import structlog
import typer

from secip_manager.config_io import DEFAULT_CONFIG_PATH, load_config
from secip_manager.errors import SecIpError, ValidationError
from secip_manager.ipam import Family
from secip_manager.models import Config
from secip_manager.oci import OciCli
from secip_manager.prefix import DriftOutcome, PrefixDriftDetector, probe_prefix
from secip_manager.reconcile import BatchOutcome, SecondaryIpReconciler
from secip_manager.remote import SshChannel
from secip_manager.sync import sync_vnic
from secip_manager.util import setup_logging

app = typer.Typer(no_args_is_help=True, help="Secondary IPs on OCI VNICs and their policy routing on the host.")

log = structlog.get_logger(__name__)


class LogLevel(str, enum.Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class _Ctx:
    cfg: Config
    log_level: Optional[str]


def _ctx(ctx: typer.Context) -> _Ctx:
    return ctx.obj


def _fail(e: SecIpError) -> NoReturn:
    typer.secho(f"[!] {e}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _report(title: str, out: BatchOutcome) -> None:
    if out.nothing_to_do:
        typer.echo(f"[✓] {title}: nothing to do")
        return
    typer.echo(f"[*] {title}: {len(out.succeeded)} succeeded, {len(out.failed)} failed")
    for item, err in out.failed:
        typer.echo(f"    [!] {item}: {err}")


@app.callback()
def main(
    ctx: typer.Context,
    config: str = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        envvar="SECIP_CONFIG",
        help="Path to the YAML config (missing file = defaults)",
    ),
    log_level: Optional[LogLevel] = typer.Option(None, "--log-level", case_sensitive=False, help="Overrides log_level from the config"),
) -> None:
    st = _Ctx()
    try:
        st.cfg = load_config(config)
    except SecIpError as e:
        _fail(e)
    st.log_level = log_level.value if log_level else None
    ctx.obj = st


def _setup(st: _Ctx, log_file: Optional[str] = None) -> None:
    setup_logging(st.log_level or st.cfg.log_level, log_file)


@app.command("add")
def add_cmd(
    ctx: typer.Context,
    vnic_id: str = typer.Argument(..., help="OCID of the VNIC"),
    start_ip: str = typer.Argument(..., help="First address of the range (IPv4 or IPv6)"),
    count: int = typer.Argument(..., help="Number of addresses to add"),
) -> None:
    """
    Add COUNT consecutive addresses to VNIC_ID starting at START_IP.

    IPv4 gets hostname-label <primary_hostname><octet3><octet4> (10.0.64.10 -> myhost6410).
    IPv6 gets display-name <primary_hostname><last hex segment>; OCI has no hostname labels for IPv6.
    """
    if count < 1:
        _fail(ValidationError(f"count must be >= 1, got {count}"))
    st = _ctx(ctx)
    _setup(st)
    rec = SecondaryIpReconciler(OciCli(st.cfg.oci))
    try:
        out = rec.add_range(vnic_id, start_ip, count)
    except SecIpError as e:
        _fail(e)
    _report(f"add {start_ip} x{count}", out)
    typer.echo("[✔] IP addition process complete.")


@app.command("cleanup")
def cleanup_cmd(
    ctx: typer.Context,
    instance_id: str = typer.Argument(..., help="OCID of the compute instance"),
    ipv4: bool = typer.Option(False, "--ipv4", "-4", help="Clean up secondary IPv4 addresses (primary is kept)"),
    ipv6: bool = typer.Option(False, "--ipv6", "-6", help="Clean up ALL IPv6 addresses. WARNING: removes all IPv6 connectivity"),
) -> None:
    """
    Delete secondary addresses on every VNIC of INSTANCE_ID. No flags = both families.

    IPv4 keeps the primary private IP. IPv6 has no primary: every IPv6 object is deleted.
    """
    st = _ctx(ctx)
    _setup(st)
    fams: List[Family] = []
    if ipv4:
        fams.append("ipv4")
    if ipv6:
        fams.append("ipv6")
    if not fams:
        fams = ["ipv4", "ipv6"]

    rec = SecondaryIpReconciler(OciCli(st.cfg.oci))
    try:
        res: Dict[str, Dict[Family, BatchOutcome]] = rec.cleanup_instance(instance_id, fams)
    except SecIpError as e:
        _fail(e)
    if not res:
        typer.echo(f"[✓] No VNICs found for {instance_id}")
    for vnic, per_fam in res.items():
        for fam, out in per_fam.items():
            _report(f"{vnic} {fam}", out)
    typer.echo("[✔] Cleanup complete.")


@app.command("sync")
def sync_cmd(
    ctx: typer.Context,
    vnic_id: str = typer.Argument(..., help="OCID of the VNIC to sync"),
) -> None:
    """
    Write netplan with all secondary IPs of VNIC_ID onto its host (reached via the primary IP).

    Needs SSH key auth to the host and passwordless sudo. The config is only written, not applied.
    """
    st = _ctx(ctx)
    _setup(st)
    try:
        res = sync_vnic(OciCli(st.cfg.oci), SshChannel(st.cfg.ssh), vnic_id, st.cfg.sync)
    except SecIpError as e:
        _fail(e)
    typer.echo(f"[✓] Inventory written to {res.inventory}")
    if not res.written:
        typer.echo("[i] No secondary IPs found for this VNIC. Nothing to sync.")
        typer.echo("[✔] Sync process complete.")
        return
    typer.echo(f"[✓] Wrote netplan config to {res.path} on host {res.hostname} ({res.host}).")
    typer.echo("")
    typer.echo("--- ACTION REQUIRED ---")
    typer.echo(f"To apply the new network configuration, SSH into the host ({res.host}) and run:")
    typer.echo("")
    typer.echo("  sudo netplan apply")
    typer.echo("-----------------------")
    typer.echo("[✔] Sync process complete.")


@app.command("update-prefix")
def update_prefix_cmd(
    ctx: typer.Context,
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Use this /64 instead of probing via rdisc6"),
) -> None:
    """Keep the security-list rule source in sync with the current home IPv6 /64."""
    st = _ctx(ctx)
    pcfg = st.cfg.prefix
    _setup(st, pcfg.log_file)
    log.info("prefix_check_start")
    try:
        if not pcfg.security_list_id:
            raise ValidationError("prefix.security_list_id is not configured (or set $Security_List)")
        observed = prefix or probe_prefix(SshChannel(st.cfg.ssh), pcfg.probe_host, pcfg.probe_interface)
        log.info("prefix_discovered", prefix=observed)
        det = PrefixDriftDetector(OciCli(st.cfg.oci), pcfg.security_list_id)
        outcome = det.reconcile(observed, pcfg.rule_description)
    except SecIpError as e:
        log.error("prefix_check_failed", error=str(e))
        _fail(e)
    if outcome is DriftOutcome.UNCHANGED:
        typer.echo(f"[✓] Prefixes match ({observed}). No update required.")
    else:
        typer.echo(f"[✓] Security list updated. New prefix: {observed}")
    log.info("prefix_check_finished", outcome=outcome.value)


def run() -> None:
    """Точка входа `secip`: ошибки разбора аргументов click (2) отдаём как 1."""
    try:
        app()
    except SystemExit as e:
        if e.code == 2:
            raise SystemExit(1) from None
        raise


if __name__ == "__main__":
    run()
