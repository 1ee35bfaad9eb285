import typer

from ..config import DEFAULT_GATE_API_KEY, Config


def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
    allow_default_key: bool = typer.Option(
        False, "--allow-default-key", help="Start even though GATE_API_KEY is the built-in placeholder"
    ),
):
    """Serve the readiness gate HTTP API."""
    import uvicorn

    if Config.GATE_API_KEY == DEFAULT_GATE_API_KEY and not allow_default_key:
        typer.secho(
            "❌ GATE_API_KEY is not set; export a secret key or pass --allow-default-key",
            fg=typer.colors.RED, err=True,
        )
        raise typer.Exit(code=1)

    typer.echo(f"🚀 Serving k3sgate API on http://{host}:{port}")
    uvicorn.run("k3sgate.api.main:app", host=host, port=port, log_config=None)
