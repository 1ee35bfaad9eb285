import logging
import sys
from typing import Optional

import typer

from k3sgate.commands import config, gate, serve
from k3sgate.logging import setup_logging

app = typer.Typer(help="Concurrent readiness gates for K3s clusters on KVM.")

# Global debug flag
debug_mode = False

# Add all commands
app.command("wait")(gate.wait)
app.command("check")(gate.check)
app.command("probes")(gate.probes)
app.command("serve")(serve.serve)
app.add_typer(config.app, name="config", help="Inspect configuration")


# Global options callback
@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
    log_file: Optional[str] = typer.Option(None, help="Also append logs to this file [env: LOG_FILE]"),
):
    """k3sgate - wait for SSH, cloud-init and the K3s API across cluster VMs."""
    global debug_mode
    debug_mode = debug
    setup_logging(debug, log_file=log_file)
    if debug:
        logging.debug("Debug mode enabled")


def run():
    try:
        app()
    except Exception as e:
        if debug_mode:
            import traceback
            logging.error(f"Unhandled exception: {e}\n{traceback.format_exc()}")
        else:
            logging.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
