"""Command-line interface for AVD diagnostics."""

import argparse
import signal
import sys
from typing import List, Optional

from rich.console import Console

from . import __version__
from .config import DiagnosticsConfig
from .export.csv_exporter import CSVExporter
from .export.reporter import Reporter
from .probes.system_probes import SystemProbes
from .runner.advanced import AdvancedDiagnostics
from .runner.endpoint_runner import EndpointTestRunner
from .runner.suite_runner import DiagnosticSuiteRunner
from .scheduler import SchedulerLoop


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="avd-diagnostics",
        description="Scheduled network diagnostics for remote desktop gateway, broker and web endpoints.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-i", "--interval",
        type=int,
        default=None,
        help="Minutes between suite runs (default: 5)",
    )
    parser.add_argument(
        "-l", "--log-dir",
        default=None,
        help="Directory for the run log and daily CSV (default: current directory)",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single suite and exit",
    )
    return parser


def load_config(args: argparse.Namespace) -> DiagnosticsConfig:
    """Config file values, overridden by command-line flags."""
    config = DiagnosticsConfig.load(args.config)
    if args.interval is not None:
        config.schedule.interval_minutes = args.interval
    if args.log_dir is not None:
        config.output.log_dir = args.log_dir
    return config


def build_scheduler(config: DiagnosticsConfig, reporter: Reporter, max_runs: Optional[int] = None) -> SchedulerLoop:
    """Wire probes, runners and exporter into a scheduler loop."""
    probes = SystemProbes()
    endpoint_runner = EndpointTestRunner(probes, reporter, config.probes)
    advanced = AdvancedDiagnostics(probes, reporter, config.advanced, config.probes)
    suite = DiagnosticSuiteRunner(endpoint_runner, advanced, reporter)
    exporter = CSVExporter(config.output.log_dir, config.endpoints)

    return SchedulerLoop(
        suite_runner=suite,
        exporter=exporter,
        reporter=reporter,
        endpoints=config.endpoints,
        interval_minutes=config.schedule.interval_minutes,
        max_runs=max_runs,
    )


def run_monitor(args: argparse.Namespace) -> int:
    """Run the diagnostic loop until interrupted. Returns completed runs."""
    config = load_config(args)

    reporter = Reporter.for_run(config.output.log_dir, console=console)
    scheduler = build_scheduler(config, reporter, max_runs=1 if args.once else None)

    # First signal finishes the current run; a second Ctrl+C abandons it
    def signal_handler(sig, frame):
        console.print("\n[yellow]Stopping after the current run (Ctrl+C again to abort it)...[/yellow]")
        scheduler.stop()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    console.print(f"[green]AVD diagnostics v{__version__} | log: {reporter.log_path}[/green]")

    try:
        return scheduler.run()
    finally:
        reporter.close()


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.interval is not None and args.interval < 1:
        parser.error("--interval must be at least 1 minute")

    try:
        run_monitor(args)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
