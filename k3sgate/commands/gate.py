from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from k3sgate import registry
from k3sgate.config import Config
from k3sgate.modules.gate import (
    ConfigError,
    GateSettings,
    ProbeNotFoundError,
    ReadinessGate,
    Reporter,
    TargetFormatError,
    check_once,
    default_report_path,
    parse_targets,
)
from k3sgate.modules.gate.settings import PROFILE_DEFAULTS

console = Console()

# Probe constructor options the CLI can fill in, per probe
PROBE_OPTIONS = {
    "ssh": ("user", "key_path"),
    "cloud-init": ("user", "key_path"),
    "k3s-api": ("kubeconfig",),
}


def usage_error(message: str) -> typer.Exit:
    typer.secho(f"❌ {message}", fg=typer.colors.RED, err=True)
    return typer.Exit(code=1)


def build_probe(name: str, **options: Any):
    allowed = PROBE_OPTIONS.get(name, ())
    kwargs = {k: v for k, v in options.items() if v is not None and k in allowed}
    return registry.get_probe(name, **kwargs)


def echo_outcomes(outcomes) -> None:
    for outcome in outcomes:
        if outcome.succeeded:
            typer.secho(f"✅ {outcome.target} - ready", fg=typer.colors.GREEN)
        else:
            typer.secho(f"⏳ {outcome.target} - not ready: {outcome.detail}", fg=typer.colors.YELLOW)


def wait(
    probe: str = typer.Argument(..., help="Probe to run (ssh, cloud-init, k3s-api)"),
    targets: List[str] = typer.Argument(..., help="Targets as address|label"),
    max_attempts: Optional[int] = typer.Option(None, help="Rounds before giving up [env: MAX_ATTEMPTS]"),
    base_delay: Optional[float] = typer.Option(None, help="Delay after round 1, seconds [env: BASE_DELAY]"),
    max_delay: Optional[float] = typer.Option(None, help="Cap on the backoff delay, seconds [env: MAX_DELAY]"),
    timeout: Optional[float] = typer.Option(None, help="Global deadline, seconds [env: TIMEOUT]"),
    probe_timeout: Optional[float] = typer.Option(None, help="Per-attempt timeout, seconds [env: SSH_TIMEOUT/CLOUD_INIT_TIMEOUT/API_TIMEOUT]"),
    grace: Optional[float] = typer.Option(None, help="Extra wait for a hung probe, seconds [env: GRACE]"),
    max_workers: Optional[int] = typer.Option(None, help="Cap on concurrent probes per round"),
    report: Optional[str] = typer.Option(None, help="Report path (default: REPORT_DIR/<probe>-readiness-report.txt)"),
    fmt: Optional[str] = typer.Option(None, "--format", help="Report format: text, json or both"),
    config: Optional[str] = typer.Option(None, help="YAML settings file"),
    export: bool = typer.Option(True, help="Append the report path to $GITHUB_ENV / EXPORT_ENV_FILE"),
    ssh_user: Optional[str] = typer.Option(None, help="SSH user for ssh and cloud-init probes"),
    ssh_key: Optional[str] = typer.Option(None, help="SSH private key for ssh and cloud-init probes"),
    kubeconfig: Optional[str] = typer.Option(None, help="Kubeconfig for the k3s-api probe"),
):
    """Wait until every target passes the probe. Exit 0 if all are ready, 1 otherwise."""
    try:
        Config.validate()
        parsed = parse_targets(targets)
        settings = GateSettings.load(probe, config_path=config).with_overrides(
            max_attempts=max_attempts,
            base_delay=base_delay,
            max_delay=max_delay,
            timeout=timeout,
            probe_timeout=probe_timeout,
            grace=grace,
            max_workers=max_workers,
        )
        checker = build_probe(probe, user=ssh_user, key_path=ssh_key, kubeconfig=kubeconfig)
        fmt = fmt or Config.REPORT_FORMAT
        reporter = Reporter.for_probe(
            checker,
            path=report or default_report_path(checker, Config.REPORT_DIR, fmt),
            fmt=fmt,
            export_env_file=Config.EXPORT_ENV_FILE if export else None,
        )
    except (TargetFormatError, ConfigError, ProbeNotFoundError, ValueError) as e:
        raise usage_error(str(e))

    typer.secho(f"🔍 {checker.name} readiness gate for {len(parsed)} targets...", fg=typer.colors.BLUE)
    result = ReadinessGate(checker, settings=settings, reporter=reporter).run(parsed)

    for target in result.ready:
        typer.secho(f"✅ {target} - ready", fg=typer.colors.GREEN)
    for target in result.not_ready:
        outcome = result.last_outcomes.get(target)
        detail = f": {outcome.detail}" if outcome else ""
        typer.secho(f"❌ {target} - not ready{detail}", fg=typer.colors.RED)

    if result.success:
        typer.secho(f"🎉 All {result.total} targets ready ({result.rounds} rounds, {result.elapsed:.0f}s)",
                    fg=typer.colors.GREEN)
    else:
        typer.secho(f"❌ {len(result.not_ready)}/{result.total} targets not ready ({result.reason.value})",
                    fg=typer.colors.RED)
    if result.path:
        typer.echo(f"Report saved to: {result.path}")
    raise typer.Exit(code=result.exit_code)


def check(
    probe: str = typer.Argument(..., help="Probe to run"),
    targets: List[str] = typer.Argument(..., help="Targets as address|label"),
    probe_timeout: Optional[float] = typer.Option(None, help="Per-attempt timeout, seconds"),
    ssh_user: Optional[str] = typer.Option(None, help="SSH user for ssh and cloud-init probes"),
    ssh_key: Optional[str] = typer.Option(None, help="SSH private key for ssh and cloud-init probes"),
    kubeconfig: Optional[str] = typer.Option(None, help="Kubeconfig for the k3s-api probe"),
):
    """Probe every target once, without retrying. Exit 0 if all are ready, 1 otherwise."""
    try:
        parsed = parse_targets(targets)
        settings = GateSettings.load(probe).with_overrides(probe_timeout=probe_timeout)
        checker = build_probe(probe, user=ssh_user, key_path=ssh_key, kubeconfig=kubeconfig)
    except (TargetFormatError, ConfigError, ProbeNotFoundError) as e:
        raise usage_error(str(e))

    result = check_once(checker, parsed, probe_timeout=settings.probe_timeout, grace=settings.grace)
    echo_outcomes(result.outcomes)
    raise typer.Exit(code=0 if result.all_succeeded else 1)


def probes():
    """List the registered probes with their default gate settings."""
    table = Table(title="Registered probes")
    table.add_column("Probe", style="cyan")
    table.add_column("Attempts", justify="right")
    table.add_column("Delay (base/max)", justify="right")
    table.add_column("Timeout", justify="right")
    table.add_column("Export variable")
    for name in registry.list_probes():
        defaults = PROFILE_DEFAULTS.get(name)
        export_var = getattr(registry.get_factory(name), "export_var", None) or "READINESS_REPORT"
        if defaults:
            table.add_row(
                name,
                str(defaults["max_attempts"]),
                f"{defaults['base_delay']}s/{defaults['max_delay']}s",
                f"{defaults['timeout']}s",
                export_var,
            )
        else:
            table.add_row(name, "-", "-", "-", export_var)
    console.print(table)
