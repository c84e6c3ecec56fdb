"""CLI entry point for LMS discovery.

Runs a discovery session and prints one JSON document per event,
followed by a summary of the servers still present at exit:

    lms-discovery --duration 10
    python -m lms_discovery.cli --config discovery.yaml --debug
"""

import sys
import time
from typing import Optional

import click

from .config.parser import load_config, merge_overrides
from .config.schema import DiscoveryConfig
from .events import DISCOVERED, ERROR, LOST
from .reporting.json_reporter import JsonReporter, error_output
from .service import DiscoveryService

DEBUG_PREFIX = "[lms-discovery::DEBUG]"


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config", "config_file",
    type=click.Path(dir_okay=False),
    help="YAML file with discovery options.",
)
@click.option("--broadcast-address", help="Address discovery requests are sent to.")
@click.option("--ttl", type=int, help="Milliseconds before a silent server is lost.")
@click.option("--interval", type=int, help="Milliseconds between discovery requests.")
@click.option(
    "--duration", type=float, default=0,
    help="Seconds to run before exiting (default: until Ctrl-C).",
)
@click.option("--save-report", "report_path", type=click.Path(dir_okay=False),
              help="Also write the final report to this file.")
@click.option("--debug", is_flag=True, help="Print trace lines to stderr.")
@click.option("--pretty", is_flag=True, help="Pretty print output.")
def main(
    config_file: Optional[str],
    broadcast_address: Optional[str],
    ttl: Optional[int],
    interval: Optional[int],
    duration: float,
    report_path: Optional[str],
    debug: bool,
    pretty: bool,
):
    """Discover Logitech Media Servers on the local network."""
    reporter = JsonReporter()

    def output(doc: dict) -> None:
        click.echo(reporter.to_json_string(doc, pretty=pretty))

    try:
        config = load_config(config_file) if config_file else DiscoveryConfig()
        config = merge_overrides(
            config,
            broadcast_address=broadcast_address,
            discovered_ttl=ttl,
            discover_interval=interval,
        )
    except (FileNotFoundError, ValueError) as e:
        output(error_output(f"Invalid configuration: {e}"))
        sys.exit(1)

    service = DiscoveryService()
    errors: list[Exception] = []

    service.on(DISCOVERED, lambda server: output(reporter.event(DISCOVERED, server)))
    service.on(LOST, lambda server: output(reporter.event(LOST, server)))

    def on_error(error: Exception) -> None:
        errors.append(error)
        output(reporter.event(ERROR, error))

    service.on(ERROR, on_error)

    if debug:
        service.set_debug(True, lambda msg: click.echo(f"{DEBUG_PREFIX} {msg}", err=True))

    start_time = time.time()
    try:
        service.start(config)
    except (RuntimeError, ValueError) as e:
        output(error_output(str(e)))
        sys.exit(1)

    try:
        if duration > 0:
            time.sleep(duration)
        else:
            while True:
                time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        servers = service.get_all_discovered()
        service.stop()

    duration_ms = int((time.time() - start_time) * 1000)
    report = reporter.generate(servers, duration_ms=duration_ms, error_count=len(errors))

    saved_path = None
    if report_path:
        saved_path = str(reporter.save(report, report_path))

    output(reporter.generate_cli_output(report, saved_path))


if __name__ == "__main__":
    main()
