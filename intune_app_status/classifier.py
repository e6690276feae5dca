"""
Mapping of Graph mobile app types to short category labels.
"""

from __future__ import annotations

from typing import Dict, Optional

UNKNOWN_APP_TYPE = "Unknown"

APP_TYPE_LABELS: Dict[str, str] = {
    "#microsoft.graph.win32LobApp": "Win32",
    "#microsoft.graph.windowsMobileMSI": "MSI",
    "#microsoft.graph.webApp": "Web App",
    "#microsoft.graph.officeSuiteApp": "Microsoft 365 Apps",
    "#microsoft.graph.microsoftStoreForBusinessApp": "Store for Business",
    "#microsoft.graph.winGetApp": "Microsoft Store",
}


def classify(type_tag: Optional[str]) -> str:
    """Return the category label for an app's @odata.type, or "Unknown"."""
    if not type_tag:
        return UNKNOWN_APP_TYPE
    return APP_TYPE_LABELS.get(type_tag, UNKNOWN_APP_TYPE)
