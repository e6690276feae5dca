"""
Per-application folding of install status records into deployment statistics.
"""

from __future__ import annotations

from typing import Iterable

from .models import (
    STATE_FAILED,
    STATE_INSTALLED,
    STATE_NOT_APPLICABLE,
    STATE_NOT_INSTALLED,
    ApplicationAssignmentStatistic,
    ApplicationDeploymentStatistic,
    InstallStatusRecord,
    MobileApp,
)
from .utils import format_percentage


def aggregate_device_stats(app: MobileApp, records: Iterable[InstallStatusRecord]) -> ApplicationDeploymentStatistic:
    """
    Count device install outcomes for one app.

    Only records tagged with this app's id are counted, and records in the
    notApplicable state are left out of every count including the total.
    Statuses other than installed/failed/notInstalled still add to the total.

    Args:
        app: The application being summarised
        records: Device status records (records for other apps are ignored)

    Returns:
        ApplicationDeploymentStatistic with counts and formatted rates

    Example:
        >>> stat = aggregate_device_stats(app, records)
        >>> print(stat.success_rate, stat.failure_rate)
        50.00% 50.00%
    """
    total = succeeded = failed = not_installed = 0
    for record in records:
        if record.app_id != app.id or record.install_state == STATE_NOT_APPLICABLE:
            continue
        total += 1
        if record.install_state == STATE_INSTALLED:
            succeeded += 1
        elif record.install_state == STATE_FAILED:
            failed += 1
        elif record.install_state == STATE_NOT_INSTALLED:
            not_installed += 1

    return ApplicationDeploymentStatistic(
        app_name=app.display_name,
        app_type=app.app_type,
        total=total,
        succeeded=succeeded,
        failed=failed,
        not_installed=not_installed,
        success_rate=format_percentage(succeeded, total),
        failure_rate=format_percentage(failed, total),
    )


def aggregate_user_stats(
    app: MobileApp,
    records: Iterable[InstallStatusRecord],
    assigned_user_count: int,
) -> ApplicationAssignmentStatistic:
    """
    Sum per-user device counts for one app.

    Every user record for the app counts towards deployed_user_total regardless
    of state. When there are no user records the device sums are "-" rather
    than 0, meaning "not computed".
    """
    matching = [r for r in records if r.app_id == app.id]
    stat = ApplicationAssignmentStatistic(
        app_name=app.display_name,
        app_type=app.app_type,
        assigned_user_count=assigned_user_count,
        deployed_user_total=len(matching),
    )
    if not matching:
        return stat

    stat.installed_device_count = sum(r.installed_device_count for r in matching)
    stat.failed_device_count = sum(r.failed_device_count for r in matching)
    stat.not_installed_device_count = sum(r.not_installed_device_count for r in matching)
    return stat
