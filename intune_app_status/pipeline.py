"""
Business logic for the deployment report run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .aggregator import aggregate_device_stats, aggregate_user_stats
from .concurrency import execute_concurrent
from .graph_client import GraphClient
from .membership import DEFAULT_GROUP_DEPTH, resolve_assigned_user_count
from .models import (
    ApplicationAssignmentStatistic,
    ApplicationDeploymentStatistic,
    DeploymentReport,
    InstallStatusRecord,
    MobileApp,
)
from .report import ReportAssembler
from .status_fetcher import fetch_device_statuses, fetch_group_assignments, fetch_user_statuses


class RunMode(str, Enum):
    DEVICE = "device"
    USER = "user"
    USER_AND_DEVICE = "useranddevice"

    @property
    def includes_devices(self) -> bool:
        return self in (RunMode.DEVICE, RunMode.USER_AND_DEVICE)

    @property
    def includes_users(self) -> bool:
        return self in (RunMode.USER, RunMode.USER_AND_DEVICE)


@dataclass
class AppResult:
    """Everything produced for one application."""
    app: MobileApp
    device_stat: Optional[ApplicationDeploymentStatistic] = None
    device_records: List[InstallStatusRecord] = field(default_factory=list)
    user_stat: Optional[ApplicationAssignmentStatistic] = None


def count_assigned_users(
    client: GraphClient,
    app: MobileApp,
    group_depth: int = DEFAULT_GROUP_DEPTH,
    logger: Optional[logging.Logger] = None,
) -> int:
    """Sum the assigned-user counts of every group an app is assigned to."""
    log = logger or logging.getLogger(__name__)
    assigned = 0
    for assignment in fetch_group_assignments(client, app):
        if not assignment.target_group_id:
            log.debug("Skipping assignment without target group for %s", app.display_name)
            continue
        assigned += resolve_assigned_user_count(client, assignment.target_group_id, group_depth, logger=log)
    return assigned


def process_app(
    client: GraphClient,
    app: MobileApp,
    run_mode: RunMode,
    group_depth: int = DEFAULT_GROUP_DEPTH,
    logger: Optional[logging.Logger] = None,
) -> AppResult:
    log = logger or logging.getLogger(__name__)
    log.info("Processing app %s (%s)", app.display_name, app.app_type)
    result = AppResult(app=app)

    if run_mode.includes_devices:
        result.device_records = fetch_device_statuses(client, app)
        result.device_stat = aggregate_device_stats(app, result.device_records)

    if run_mode.includes_users:
        user_records = fetch_user_statuses(client, app)
        assigned = count_assigned_users(client, app, group_depth, logger=log)
        result.user_stat = aggregate_user_stats(app, user_records, assigned)

    return result


def run_deployment_report(
    client: GraphClient,
    run_mode: RunMode = RunMode.USER_AND_DEVICE,
    *,
    group_depth: int = DEFAULT_GROUP_DEPTH,
    max_workers: int = 1,
    logger: Optional[logging.Logger] = None,
) -> DeploymentReport:
    """
    List applications and build deployment statistics for each of them.

    This function:
    1. Lists mobile apps once (managed and iOS VPP apps are filtered out by the client)
    2. Fetches device statuses per app when the run mode includes devices
    3. Fetches user statuses and resolves group assignments when the run mode includes users
    4. Assembles sorted statistic tables and the device detail table

    Any RemoteFetchError aborts the whole run; no partial report is returned.

    Args:
        client: GraphClient instance for API calls
        run_mode: Which status branches to execute
        group_depth: Nested group expansion depth for assigned-user counts
        max_workers: Applications processed concurrently (1 = strictly sequential)
        logger: Optional logger instance

    Returns:
        DeploymentReport with device statistics, user statistics and device details

    Example:
        >>> report = run_deployment_report(client, RunMode.DEVICE)
        >>> print(report.device_stats[0].success_rate)
    """
    log = logger or logging.getLogger(__name__)
    apps = client.list_mobile_apps()
    log.info("Building %s report for %d applications", run_mode.value, len(apps))

    results = execute_concurrent(
        lambda app: process_app(client, app, run_mode, group_depth, logger=log),
        apps,
        max_workers=max_workers,
        logger=log,
        description="Processing applications",
    )

    assembler = ReportAssembler()
    for result in results:
        if result.device_stat is not None:
            assembler.add_device_stat(result.device_stat)
            assembler.add_details(result.device_records)
        if result.user_stat is not None:
            assembler.add_user_stat(result.user_stat)

    return assembler.build(run_mode.value)
