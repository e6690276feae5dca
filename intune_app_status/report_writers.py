"""
CSV, HTML, JSON and console rendering of deployment reports.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import typer
from tabulate import tabulate

from .models import DeploymentReport
from .report import (
    DETAIL_HEADERS,
    DEVICE_STAT_HEADERS,
    USER_STAT_HEADERS,
    detail_rows,
    device_stat_rows,
    user_stat_rows,
)
from .utils import report_timestamp

SUPPORTED_FORMATS = ("csv", "html")

HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ font-family: Segoe UI, Arial, sans-serif; margin: 2em; }}
table {{ border-collapse: collapse; }}
th {{ background-color: #0076D7; color: #fff; }}
th, td {{ border: 1px solid #ccc; padding: 4px 8px; text-align: left; }}
tr:nth-child(even) {{ background-color: #f2f2f2; }}
</style>
</head>
<body>
<h1>{title}</h1>
<p>Generated {generated_at}</p>
{table}
</body>
</html>
"""


def write_csv(path: Path, headers: Sequence[str], rows: Iterable[Sequence]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(headers)
        writer.writerows(rows)
    return path


def write_html(path: Path, title: str, headers: Sequence[str], rows: Iterable[Sequence], generated_at: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    table = tabulate(list(rows), headers=list(headers), tablefmt="html")
    path.write_text(HTML_TEMPLATE.format(title=title, generated_at=generated_at, table=table), encoding="utf-8")
    return path


def write_json(path: Path, report: DeploymentReport, logger: Optional[logging.Logger] = None) -> Path:
    log = logger or logging.getLogger(__name__)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.to_dict(), indent=2, default=str), encoding="utf-8")
    log.info("Wrote JSON output to %s", path)
    return path


def _report_tables(report: DeploymentReport) -> List[tuple]:
    tables = []
    if report.run_mode != "user":
        tables.append(("DeviceStatistics", "Application Deployment Statistics", DEVICE_STAT_HEADERS, device_stat_rows(report.device_stats)))
        tables.append(("DeviceDetails", "Application Install Details", DETAIL_HEADERS, detail_rows(report.device_details)))
    if report.run_mode != "device":
        tables.append(("UserStatistics", "Application Assignment Statistics", USER_STAT_HEADERS, user_stat_rows(report.user_stats)))
    return tables


def write_report(
    report: DeploymentReport,
    output_dir: Path,
    formats: Iterable[str] = SUPPORTED_FORMATS,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, List[Path]]:
    """
    Write every table of a report in each requested format.

    Files are named "<timestamp>-<Table>.<ext>" under output_dir.

    Returns:
        Mapping of format to the list of written paths
    """
    log = logger or logging.getLogger(__name__)
    prefix = report_timestamp()
    written: Dict[str, List[Path]] = {}

    for fmt in formats:
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported report format: {fmt}. Choose from {', '.join(SUPPORTED_FORMATS)}")
        for name, title, headers, rows in _report_tables(report):
            path = output_dir / f"{prefix}-{name}.{fmt}"
            if fmt == "csv":
                write_csv(path, headers, rows)
            else:
                write_html(path, title, headers, rows, generated_at=report.generated_at)
            log.info("Wrote %s", path)
            written.setdefault(fmt, []).append(path)

    return written


def print_summary(report: DeploymentReport) -> None:
    if report.device_stats:
        typer.echo("Device deployment statistics:")
        typer.echo(tabulate(device_stat_rows(report.device_stats), headers=DEVICE_STAT_HEADERS, tablefmt="github"))
    if report.user_stats:
        if report.device_stats:
            typer.echo("")
        typer.echo("User assignment statistics:")
        typer.echo(tabulate(user_stat_rows(report.user_stats), headers=USER_STAT_HEADERS, tablefmt="github"))
    if not report.device_stats and not report.user_stats:
        typer.echo("No applications found.")
