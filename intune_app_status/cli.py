"""
Typer CLI entrypoint for Intune App Status.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

import typer
from tabulate import tabulate

from .config import RUN_TYPES, Config, ConfigError, load_config
from .graph_client import AuthenticationError, GraphAuth, GraphClient, RemoteFetchError
from .logging_utils import setup_logging
from .pipeline import RunMode, run_deployment_report
from .report_writers import print_summary, write_json, write_report

app = typer.Typer(add_completion=False, help="Intune application deployment status reports from Microsoft Graph.")


@dataclass
class CliState:
    logger: Any
    config_file: Optional[Path]
    tenant_id: Optional[str]
    client_id: Optional[str]
    base_url: Optional[str]
    verbose: bool


def _load_config(state: CliState, **overrides: Any) -> Config:
    try:
        return load_config(
            str(state.config_file) if state.config_file else None,
            tenant_id=state.tenant_id,
            client_id=state.client_id,
            graph_base_url=state.base_url,
            **overrides,
        )
    except ConfigError as exc:
        typer.echo(f"Config error: {exc}", err=True)
        raise typer.Exit(code=2)


def _build_client(state: CliState, config: Config) -> GraphClient:
    return GraphClient(
        GraphAuth(tenant_id=config.tenant_id, client_id=config.client_id),
        logger=state.logger,
        base_url=config.graph_base_url,
        debug_api=state.verbose,
    )


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(None, help="Optional config file to load defaults."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose debug logging."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Reduce log verbosity."),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write a debug log to this file."),
    tenant_id: Optional[str] = typer.Option(None, "--tenant-id", help="Entra ID tenant id (or AZURE_TENANT_ID)."),
    client_id: Optional[str] = typer.Option(None, "--client-id", help="App registration client id (or AZURE_CLIENT_ID)."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Graph API base URL (default: https://graph.microsoft.com/beta)."),
):
    """
    Configure global options and shared context.
    """
    logger = setup_logging(verbose=verbose, quiet=quiet, logger_name="intune_app_status", log_file=log_file)
    ctx.obj = CliState(
        logger=logger,
        config_file=config_file,
        tenant_id=tenant_id,
        client_id=client_id,
        base_url=base_url,
        verbose=verbose,
    )


@app.command("report")
def report_cmd(
    ctx: typer.Context,
    run_type: Optional[str] = typer.Option(None, "--run-type", help=f"Which statuses to collect: {', '.join(RUN_TYPES)}."),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", help="Directory for CSV/HTML reports."),
    report_format: List[str] = typer.Option(None, "--format", help="Report format, csv or html (repeatable). Default: both."),
    output_json: Optional[Path] = typer.Option(None, "--output-json", "--json-out", help="Write the full report to a JSON file."),
    group_depth: Optional[int] = typer.Option(None, "--group-depth", help="Nested group levels expanded when counting assigned users (default: 1)."),
    max_workers: Optional[int] = typer.Option(None, "--max-workers", help="Applications processed concurrently (default: 1, sequential)."),
):
    """
    Build deployment statistics for every Intune app and write the reports.
    """
    state: CliState = ctx.obj
    logger = state.logger
    config = _load_config(
        state,
        run_type=run_type,
        output_dir=str(output_dir) if output_dir else None,
        formats=report_format or None,
        group_expansion_depth=group_depth,
        max_workers=max_workers,
    )

    try:
        client = _build_client(state, config)
        report = run_deployment_report(
            client,
            RunMode(config.run_type),
            group_depth=config.group_expansion_depth,
            max_workers=config.max_workers,
            logger=logger,
        )
    except AuthenticationError as exc:
        logger.error("Authentication failed: %s", exc)
        raise typer.Exit(code=3)
    except RemoteFetchError as exc:
        logger.error("Report aborted, no files written. %s", exc)
        raise typer.Exit(code=3)

    print_summary(report)
    written = write_report(report, config.output_dir, config.formats, logger=logger)
    if output_json:
        write_json(output_json, report, logger=logger)
    total_files = sum(len(paths) for paths in written.values())
    logger.info("Report complete: %d files written to %s", total_files, config.output_dir)


@app.command("list-apps")
def list_apps_cmd(ctx: typer.Context):
    """
    List the Intune apps included in reports, with their classified type.
    """
    state: CliState = ctx.obj
    logger = state.logger
    config = _load_config(state)
    try:
        apps = _build_client(state, config).list_mobile_apps()
    except (AuthenticationError, RemoteFetchError) as exc:
        logger.error("Failed to list applications: %s", exc)
        raise typer.Exit(code=3)

    rows = [[a.display_name, a.app_type, a.type_tag or "", a.id] for a in sorted(apps, key=lambda a: a.display_name)]
    typer.echo(tabulate(rows, headers=["App Name", "Type", "Graph Type", "App ID"], tablefmt="github"))


if __name__ == "__main__":
    app()
