"""
Microsoft Graph client using direct HTTP with bearer auth.
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Dict, List, Optional, TypeVar

import requests

from .classifier import classify
from .models import GroupMember, MobileApp

T = TypeVar("T")

DEFAULT_BASE_URL = "https://graph.microsoft.com/beta"
LOGIN_URL = "https://login.microsoftonline.com"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"

IOS_VPP_APP_TYPE = "#microsoft.graph.iosVppApp"

# Safety bound for @odata.nextLink chains
MAX_PAGES = 1000


class GraphClientError(Exception):
    """Base class for Graph client failures."""


class AuthenticationError(GraphClientError):
    """Raised when a bearer token cannot be acquired."""


class RemoteFetchError(GraphClientError):
    """Raised when a Graph request fails or returns an unusable body."""

    def __init__(self, path: str, status_code: Optional[int] = None, body: Optional[str] = None, reason: Optional[str] = None):
        self.path = path
        self.status_code = status_code
        self.body = body
        self.reason = reason
        message = f"Request for {path} failed"
        if status_code is not None:
            message += f" with HTTP {status_code}"
        if reason:
            message += f": {reason}"
        if body:
            message += f"\n\nServer response (first 500 chars): {body[:500]}"
        super().__init__(message)


def _retry_with_backoff(
    max_retries: int = 2,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    retryable_exceptions: tuple = (requests.exceptions.ConnectionError, requests.exceptions.Timeout),
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to retry a transport call with exponential backoff.

    Only connection errors and timeouts are retried; HTTP error responses are
    returned to the caller untouched.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            delay = initial_delay
            logger = args[0].logger if args and hasattr(args[0], "logger") else logging.getLogger(__name__)

            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as exc:
                    if attempt >= max_retries:
                        logger.error("All retry attempts exhausted")
                        raise
                    attempt += 1
                    logger.warning(
                        "Attempt %d/%d failed: %s. Retrying in %.1fs...",
                        attempt, max_retries + 1, exc, delay
                    )
                    time.sleep(delay)
                    delay *= backoff_factor

        return wrapper
    return decorator


@dataclass
class GraphAuth:
    tenant_id: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    bearer_token: Optional[str] = None

    def from_env(self) -> "GraphAuth":
        self.tenant_id = self.tenant_id or os.environ.get("AZURE_TENANT_ID")
        self.client_id = self.client_id or os.environ.get("AZURE_CLIENT_ID")
        self.client_secret = self.client_secret or os.environ.get("AZURE_CLIENT_SECRET")
        self.bearer_token = self.bearer_token or os.environ.get("GRAPH_BEARER_TOKEN")
        return self


def _member_type(odata_type: Optional[str]) -> str:
    if odata_type == "#microsoft.graph.user":
        return "user"
    if odata_type == "#microsoft.graph.group":
        return "group"
    return "other"


def _is_excluded_app_type(odata_type: Optional[str]) -> bool:
    if not odata_type:
        return False
    return "managed" in odata_type.lower() or odata_type == IOS_VPP_APP_TYPE


class GraphClient:
    """
    Client responsible for fetching device management resources from Graph.
    """

    def __init__(
        self,
        auth: Optional[GraphAuth] = None,
        logger: Optional[logging.Logger] = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 30,
        debug_api: bool = False,
    ):
        self.auth = (auth or GraphAuth()).from_env()
        self.logger = logger or logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.debug_api = debug_api
        self._cached_token: Optional[str] = None
        self._token_expiry: Optional[float] = None

    # -------- Authentication --------
    def authenticate(self) -> str:
        if self._cached_token:
            # Refresh token if within 60 seconds of expiry
            if self._token_expiry is None or time.time() + 60 < self._token_expiry:
                return self._cached_token
            self.logger.debug("Token expired or expiring soon, refreshing...")
            self._cached_token = None
            self._token_expiry = None

        if self.auth.bearer_token:
            self._cached_token = self.auth.bearer_token
            return self._cached_token
        if self.auth.tenant_id and self.auth.client_id and self.auth.client_secret:
            self._cached_token = self._fetch_token_client_creds()
            return self._cached_token
        raise AuthenticationError(
            "No Graph credentials configured. Set GRAPH_BEARER_TOKEN, or AZURE_TENANT_ID, "
            "AZURE_CLIENT_ID and AZURE_CLIENT_SECRET for the client credentials flow."
        )

    def _fetch_token_client_creds(self) -> str:
        url = f"{LOGIN_URL}/{self.auth.tenant_id}/oauth2/v2.0/token"
        payload = {
            "grant_type": "client_credentials",
            "client_id": self.auth.client_id,
            "client_secret": self.auth.client_secret,
            "scope": GRAPH_SCOPE,
        }
        try:
            resp = requests.post(url, data=payload, timeout=15)
            resp.raise_for_status()
            data = resp.json()
            token = data["access_token"]
        except requests.exceptions.HTTPError as exc:
            raise AuthenticationError(
                f"Token request for tenant {self.auth.tenant_id} returned HTTP {exc.response.status_code}: "
                f"{exc.response.text[:500]}"
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise AuthenticationError(f"Failed to fetch token with client credentials: {exc}") from exc
        except (KeyError, ValueError) as exc:
            raise AuthenticationError(f"Invalid token response format: {exc}") from exc

        if "expires_in" in data:
            self._token_expiry = time.time() + float(data["expires_in"])
        self.logger.debug("Acquired Graph token for tenant %s", self.auth.tenant_id)
        return token

    # -------- Transport --------
    @_retry_with_backoff(max_retries=2, initial_delay=1.0, backoff_factor=2.0)
    def _send(self, url: str, headers: Dict[str, str]) -> requests.Response:
        return requests.request("GET", url, headers=headers, timeout=self.timeout)

    def _http_call(self, path: str, url: str) -> Dict[str, Any]:
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.authenticate()}",
        }
        self.logger.debug("api call path=%s", path)
        try:
            resp = self._send(url, headers)
        except requests.RequestException as exc:
            raise RemoteFetchError(path, reason=str(exc)) from exc

        if self.debug_api:
            self.logger.debug("API Response [GET %s]: Status=%d", path, resp.status_code)
            self.logger.debug("Response body: %s", resp.text[:5000])

        if resp.status_code >= 400:
            raise RemoteFetchError(path, status_code=resp.status_code, body=resp.text)

        try:
            return resp.json()
        except ValueError as exc:
            self.logger.error("Failed to parse JSON from response. Body: %s", resp.text[:1000])
            raise RemoteFetchError(path, status_code=resp.status_code, body=resp.text, reason="malformed JSON body") from exc

    def fetch(self, resource_path: str) -> List[Dict[str, Any]]:
        """
        GET a collection resource and return every item in it.

        Follows @odata.nextLink until the collection is exhausted.
        """
        path = resource_path.lstrip("/")
        url: Optional[str] = f"{self.base_url}/{path}"
        items: List[Dict[str, Any]] = []
        pages = 0

        while url:
            data = self._http_call(path, url)
            if isinstance(data, list):
                items.extend(data)
                break
            if not isinstance(data, dict):
                raise RemoteFetchError(path, reason=f"unexpected response type {type(data).__name__}")
            if "value" not in data:
                raise RemoteFetchError(path, body=json.dumps(data)[:1000], reason="missing 'value' collection")
            value = data["value"]
            if not isinstance(value, list):
                raise RemoteFetchError(path, reason="'value' is not a list")
            items.extend(value)

            url = data.get("@odata.nextLink")
            pages += 1
            if url and pages >= MAX_PAGES:
                raise RemoteFetchError(path, reason=f"collection exceeds pagination limit of {MAX_PAGES} pages")

        return items

    # -------- Applications --------
    def list_mobile_apps(self) -> List[MobileApp]:
        apps = []
        skipped = 0
        path = "deviceAppManagement/mobileApps"
        for item in self.fetch(path):
            odata_type = item.get("@odata.type")
            if _is_excluded_app_type(odata_type):
                skipped += 1
                continue
            if not item.get("id"):
                raise RemoteFetchError(path, body=json.dumps(item)[:1000], reason="application without id")
            apps.append(
                MobileApp(
                    id=item["id"],
                    display_name=item.get("displayName") or item["id"],
                    type_tag=odata_type,
                    app_type=classify(odata_type),
                )
            )
        self.logger.info("Found %d applications (%d managed/VPP apps skipped)", len(apps), skipped)
        return apps

    # -------- Groups --------
    def get_group_members(self, group_id: str) -> List[GroupMember]:
        return [
            GroupMember(member_type=_member_type(item.get("@odata.type")), member_id=item.get("id", ""))
            for item in self.fetch(f"groups/{group_id}/members")
        ]
