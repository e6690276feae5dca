"""
Data models for Intune App Status.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union

NOT_COMPUTED = "-"
ZERO_RATE = "0.00%"

# Install states reported by Graph for device and user status records.
STATE_INSTALLED = "installed"
STATE_FAILED = "failed"
STATE_NOT_INSTALLED = "notInstalled"
STATE_NOT_APPLICABLE = "notApplicable"

DeviceCount = Union[int, str]


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _camel_dict(obj: Any) -> Dict[str, Any]:
    return {_camel_case(key): value for key, value in asdict(obj).items()}


@dataclass
class MobileApp:
    id: str
    display_name: str
    type_tag: Optional[str]
    app_type: str = "Unknown"


@dataclass
class InstallStatusRecord:
    """One install outcome for an app on a device (kind="device") or for a user (kind="user")."""
    kind: str
    app_id: str
    app_name: str
    app_type: str
    install_state: Optional[str]
    user_principal_name: Optional[str] = None
    user_name: Optional[str] = None
    device_name: Optional[str] = None
    device_id: Optional[str] = None
    os_description: Optional[str] = None
    os_version: Optional[str] = None
    error_code: Optional[Any] = None
    last_sync_date_time: Optional[str] = None
    installed_device_count: int = 0
    failed_device_count: int = 0
    not_installed_device_count: int = 0


@dataclass
class GroupAssignment:
    target_group_id: Optional[str]
    intent: Optional[str] = None
    target_type: Optional[str] = None


@dataclass
class GroupMember:
    member_type: str  # "user", "group" or "other"
    member_id: str


@dataclass
class ApplicationDeploymentStatistic:
    app_name: str
    app_type: str
    total: int
    succeeded: int
    failed: int
    not_installed: int
    success_rate: str = ZERO_RATE
    failure_rate: str = ZERO_RATE


@dataclass
class ApplicationAssignmentStatistic:
    app_name: str
    app_type: str
    assigned_user_count: int
    deployed_user_total: int
    installed_device_count: DeviceCount = NOT_COMPUTED
    failed_device_count: DeviceCount = NOT_COMPUTED
    not_installed_device_count: DeviceCount = NOT_COMPUTED


@dataclass
class DeploymentReport:
    """Result of a single report run, ready for rendering."""
    run_mode: str
    generated_at: str
    device_stats: List[ApplicationDeploymentStatistic] = field(default_factory=list)
    user_stats: List[ApplicationAssignmentStatistic] = field(default_factory=list)
    device_details: List[InstallStatusRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "runMode": self.run_mode,
            "deviceStatistics": [_camel_dict(s) for s in self.device_stats],
            "userStatistics": [_camel_dict(s) for s in self.user_stats],
            "deviceDetails": [_camel_dict(r) for r in self.device_details],
        }
