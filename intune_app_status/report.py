"""
Accumulation of per-application statistics into ordered report tables.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .models import (
    STATE_NOT_APPLICABLE,
    ApplicationAssignmentStatistic,
    ApplicationDeploymentStatistic,
    DeploymentReport,
    InstallStatusRecord,
)
from .utils import format_sync_time

DEVICE_STAT_HEADERS = [
    "App Name", "Type", "Succeeded", "Failed", "Not Installed", "Total", "Success Rate", "Failure Rate",
]
USER_STAT_HEADERS = [
    "App Name", "Type", "Assigned Users", "Deployed Total", "Installed Devices", "Failed Devices",
    "Not Installed Devices",
]
DETAIL_HEADERS = [
    "App Name", "Type", "User Principal Name", "User Name", "OS Description", "OS Version",
    "Install Status", "Error Code", "Last Sync", "Device Name", "Device ID",
]


class ReportAssembler:
    """
    Collects statistics for each processed application.

    Rows are returned sorted by app name using Python's default string
    ordering (ordinal, so upper case sorts before lower case). The sort is
    stable and nothing is deduplicated.
    """

    def __init__(self) -> None:
        self._device_stats: List[ApplicationDeploymentStatistic] = []
        self._user_stats: List[ApplicationAssignmentStatistic] = []
        self._details: List[InstallStatusRecord] = []

    def add_device_stat(self, stat: ApplicationDeploymentStatistic) -> None:
        self._device_stats.append(stat)

    def add_user_stat(self, stat: ApplicationAssignmentStatistic) -> None:
        self._user_stats.append(stat)

    def add_details(self, records: Iterable[InstallStatusRecord]) -> None:
        self._details.extend(r for r in records if r.install_state != STATE_NOT_APPLICABLE)

    def device_statistics(self) -> List[ApplicationDeploymentStatistic]:
        return sorted(self._device_stats, key=lambda s: s.app_name)

    def user_statistics(self) -> List[ApplicationAssignmentStatistic]:
        return sorted(self._user_stats, key=lambda s: s.app_name)

    def detail_records(self) -> List[InstallStatusRecord]:
        return list(self._details)

    def build(self, run_mode: str, generated_at: Optional[datetime] = None) -> DeploymentReport:
        return DeploymentReport(
            run_mode=run_mode,
            generated_at=(generated_at or datetime.now(timezone.utc)).isoformat(),
            device_stats=self.device_statistics(),
            user_stats=self.user_statistics(),
            device_details=self.detail_records(),
        )


def device_stat_rows(stats: Iterable[ApplicationDeploymentStatistic]) -> List[list]:
    return [
        [s.app_name, s.app_type, s.succeeded, s.failed, s.not_installed, s.total, s.success_rate, s.failure_rate]
        for s in stats
    ]


def user_stat_rows(stats: Iterable[ApplicationAssignmentStatistic]) -> List[list]:
    return [
        [
            s.app_name,
            s.app_type,
            s.assigned_user_count,
            s.deployed_user_total,
            s.installed_device_count,
            s.failed_device_count,
            s.not_installed_device_count,
        ]
        for s in stats
    ]


def detail_rows(records: Iterable[InstallStatusRecord]) -> List[list]:
    return [
        [
            r.app_name,
            r.app_type,
            r.user_principal_name or "",
            r.user_name or "",
            r.os_description or "",
            r.os_version or "",
            r.install_state or "",
            "" if r.error_code is None else r.error_code,
            format_sync_time(r.last_sync_date_time),
            r.device_name or "",
            r.device_id or "",
        ]
        for r in records
    ]
