"""
Per-application status retrieval.

Each function issues one collection fetch for a single app and returns the
parsed, app-tagged records.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .graph_client import GraphClient, RemoteFetchError
from .models import GroupAssignment, InstallStatusRecord, MobileApp


def _as_int(value: Any, path: str, field_name: str) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise RemoteFetchError(path, reason=f"non-numeric {field_name}: {value!r}") from exc


def _device_record(app: MobileApp, item: Dict[str, Any]) -> InstallStatusRecord:
    return InstallStatusRecord(
        kind="device",
        app_id=app.id,
        app_name=app.display_name,
        app_type=app.app_type,
        install_state=item.get("installState"),
        user_principal_name=item.get("userPrincipalName"),
        user_name=item.get("userName"),
        device_name=item.get("deviceName"),
        device_id=item.get("deviceId"),
        os_description=item.get("osDescription"),
        os_version=item.get("osVersion"),
        error_code=item.get("errorCode"),
        last_sync_date_time=item.get("lastSyncDateTime"),
    )


def _user_record(app: MobileApp, item: Dict[str, Any], path: str) -> InstallStatusRecord:
    return InstallStatusRecord(
        kind="user",
        app_id=app.id,
        app_name=app.display_name,
        app_type=app.app_type,
        install_state=item.get("installState"),
        user_principal_name=item.get("userPrincipalName"),
        user_name=item.get("userName"),
        installed_device_count=_as_int(item.get("installedDeviceCount"), path, "installedDeviceCount"),
        failed_device_count=_as_int(item.get("failedDeviceCount"), path, "failedDeviceCount"),
        not_installed_device_count=_as_int(item.get("notInstalledDeviceCount"), path, "notInstalledDeviceCount"),
    )


def fetch_device_statuses(client: GraphClient, app: MobileApp) -> List[InstallStatusRecord]:
    items = client.fetch(f"deviceAppManagement/mobileApps/{app.id}/deviceStatuses")
    return [_device_record(app, item) for item in items]


def fetch_user_statuses(client: GraphClient, app: MobileApp) -> List[InstallStatusRecord]:
    path = f"deviceAppManagement/mobileApps/{app.id}/userStatuses"
    return [_user_record(app, item, path) for item in client.fetch(path)]


def fetch_group_assignments(client: GraphClient, app: MobileApp) -> List[GroupAssignment]:
    items = client.fetch(f"deviceAppManagement/mobileApps/{app.id}/groupAssignments")
    return [
        GroupAssignment(
            target_group_id=item.get("targetGroupId"),
            intent=item.get("installIntent") or item.get("intent"),
            target_type=item.get("@odata.type"),
        )
        for item in items
    ]
