from typing import Optional

import typer
import yaml

from k3sgate.config import Config
from k3sgate.modules.gate import ConfigError, GateSettings
from k3sgate.modules.gate.settings import profiles
from k3sgate.utils import redact_sensitive_data

app = typer.Typer()


@app.command("show")
def show_config(
    profile: Optional[str] = typer.Argument(None, help="Probe profile (default: all)"),
    config: Optional[str] = typer.Option(None, help="YAML settings file"),
):
    """Show the effective gate settings and shared configuration."""
    names = [profile] if profile else profiles()
    try:
        data = {
            "profiles": {
                name: GateSettings.load(name, config_path=config).model_dump()
                for name in names
            },
            "shared": redact_sensitive_data({k.lower(): v for k, v in Config.as_dict().items()}),
        }
    except ConfigError as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
