import types

import pytest
import requests

from intune_app_status.graph_client import (
    AuthenticationError,
    GraphAuth,
    GraphClient,
    RemoteFetchError,
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(response=self)


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    for name in ("AZURE_TENANT_ID", "AZURE_CLIENT_ID", "AZURE_CLIENT_SECRET", "GRAPH_BEARER_TOKEN"):
        monkeypatch.delenv(name, raising=False)


def make_client():
    return GraphClient(GraphAuth(bearer_token="token"), base_url="https://graph.test/beta")


def route(monkeypatch, pages):
    calls = []

    def fake_request(method, url, headers, timeout):
        calls.append(types.SimpleNamespace(method=method, url=url, headers=headers))
        return pages[url]

    monkeypatch.setattr("requests.request", fake_request)
    return calls


def test_fetch_returns_value_and_sends_bearer(monkeypatch):
    calls = route(monkeypatch, {"https://graph.test/beta/groups/1/members": FakeResponse(payload={"value": [{"id": "a"}]})})
    assert make_client().fetch("groups/1/members") == [{"id": "a"}]
    assert calls[0].headers["Authorization"] == "Bearer token"


def test_fetch_follows_next_link(monkeypatch):
    route(
        monkeypatch,
        {
            "https://graph.test/beta/groups/1/members": FakeResponse(
                payload={"value": [{"id": "a"}], "@odata.nextLink": "https://graph.test/beta/next"}
            ),
            "https://graph.test/beta/next": FakeResponse(payload={"value": [{"id": "b"}]}),
        },
    )
    assert [m["id"] for m in make_client().fetch("groups/1/members")] == ["a", "b"]


def test_fetch_http_error_carries_status_and_body(monkeypatch):
    route(monkeypatch, {"https://graph.test/beta/groups/x/members": FakeResponse(status_code=404, text='{"error": "Request_ResourceNotFound"}')})
    with pytest.raises(RemoteFetchError) as excinfo:
        make_client().fetch("groups/x/members")
    assert excinfo.value.status_code == 404
    assert "Request_ResourceNotFound" in excinfo.value.body
    assert "groups/x/members" in str(excinfo.value)


def test_fetch_malformed_body(monkeypatch):
    route(monkeypatch, {"https://graph.test/beta/groups/1/members": FakeResponse(payload=None, text="<html>")})
    with pytest.raises(RemoteFetchError, match="malformed JSON"):
        make_client().fetch("groups/1/members")


def test_fetch_connection_error_retried_then_raised(monkeypatch):
    attempts = []

    def fake_request(method, url, headers, timeout):
        attempts.append(url)
        raise requests.exceptions.ConnectionError("connection refused")

    monkeypatch.setattr("requests.request", fake_request)
    monkeypatch.setattr("time.sleep", lambda seconds: None)
    with pytest.raises(RemoteFetchError) as excinfo:
        make_client().fetch("groups/1/members")
    assert excinfo.value.status_code is None
    assert len(attempts) == 3


def test_list_mobile_apps_filters_managed_and_vpp(monkeypatch):
    route(
        monkeypatch,
        {
            "https://graph.test/beta/deviceAppManagement/mobileApps": FakeResponse(
                payload={
                    "value": [
                        {"id": "1", "displayName": "Viewer", "@odata.type": "#microsoft.graph.webApp"},
                        {"id": "2", "displayName": "Outlook", "@odata.type": "#microsoft.graph.managedIOSStoreApp"},
                        {"id": "3", "displayName": "Pages", "@odata.type": "#microsoft.graph.iosVppApp"},
                        {"id": "4", "displayName": "Chrome", "@odata.type": "#microsoft.graph.androidStoreApp"},
                    ]
                }
            )
        },
    )
    apps = make_client().list_mobile_apps()
    assert [a.id for a in apps] == ["1", "4"]
    assert apps[0].app_type == "Web App"
    assert apps[1].app_type == "Unknown"


def test_get_group_members_maps_types(monkeypatch):
    route(
        monkeypatch,
        {
            "https://graph.test/beta/groups/G/members": FakeResponse(
                payload={
                    "value": [
                        {"id": "u", "@odata.type": "#microsoft.graph.user"},
                        {"id": "g", "@odata.type": "#microsoft.graph.group"},
                        {"id": "d", "@odata.type": "#microsoft.graph.device"},
                    ]
                }
            )
        },
    )
    members = make_client().get_group_members("G")
    assert [(m.member_type, m.member_id) for m in members] == [("user", "u"), ("group", "g"), ("other", "d")]


def test_client_credentials_token(monkeypatch):
    posted = {}

    def fake_post(url, data, timeout):
        posted["url"] = url
        posted["data"] = data
        return FakeResponse(payload={"access_token": "abc", "expires_in": 3599})

    monkeypatch.setattr("requests.post", fake_post)
    client = GraphClient(GraphAuth(tenant_id="contoso", client_id="cid", client_secret="secret"))
    assert client.authenticate() == "abc"
    assert posted["url"] == "https://login.microsoftonline.com/contoso/oauth2/v2.0/token"
    assert posted["data"]["scope"] == "https://graph.microsoft.com/.default"
    # Cached until expiry
    monkeypatch.setattr("requests.post", lambda *a, **k: pytest.fail("token requested twice"))
    assert client.authenticate() == "abc"


def test_token_request_rejected(monkeypatch):
    monkeypatch.setattr("requests.post", lambda url, data, timeout: FakeResponse(status_code=401, text="invalid_client"))
    client = GraphClient(GraphAuth(tenant_id="contoso", client_id="cid", client_secret="bad"))
    with pytest.raises(AuthenticationError, match="invalid_client"):
        client.authenticate()


def test_missing_credentials():
    with pytest.raises(AuthenticationError, match="No Graph credentials"):
        GraphClient().authenticate()


def test_authentication_error_propagates_through_fetch(monkeypatch):
    monkeypatch.setattr("requests.request", lambda *a, **k: pytest.fail("request sent without token"))
    with pytest.raises(AuthenticationError):
        GraphClient(base_url="https://graph.test/beta").fetch("deviceAppManagement/mobileApps")


def test_fetch_object_without_value_rejected(monkeypatch):
    route(monkeypatch, {"https://graph.test/beta/deviceAppManagement/mobileApps/1/deviceStatuses": FakeResponse(payload={"@odata.context": "x"})})
    with pytest.raises(RemoteFetchError, match="missing 'value' collection") as excinfo:
        make_client().fetch("deviceAppManagement/mobileApps/1/deviceStatuses")
    assert "@odata.context" in excinfo.value.body


def test_fetch_value_not_a_list_rejected(monkeypatch):
    route(monkeypatch, {"https://graph.test/beta/groups/1/members": FakeResponse(payload={"value": {"id": "a"}})})
    with pytest.raises(RemoteFetchError, match="'value' is not a list"):
        make_client().fetch("groups/1/members")


def test_fetch_page_limit_raises_instead_of_truncating(monkeypatch):
    monkeypatch.setattr("intune_app_status.graph_client.MAX_PAGES", 2)

    def endless(method, url, headers, timeout):
        return FakeResponse(payload={"value": [{"id": "a"}], "@odata.nextLink": "https://graph.test/beta/next"})

    monkeypatch.setattr("requests.request", endless)
    with pytest.raises(RemoteFetchError, match="pagination limit of 2 pages"):
        make_client().fetch("groups/1/members")


def test_fetch_page_limit_reached_exactly_on_last_page(monkeypatch):
    monkeypatch.setattr("intune_app_status.graph_client.MAX_PAGES", 2)
    route(
        monkeypatch,
        {
            "https://graph.test/beta/groups/1/members": FakeResponse(
                payload={"value": [{"id": "a"}], "@odata.nextLink": "https://graph.test/beta/next"}
            ),
            "https://graph.test/beta/next": FakeResponse(payload={"value": [{"id": "b"}]}),
        },
    )
    assert len(make_client().fetch("groups/1/members")) == 2


def test_list_mobile_apps_rejects_app_without_id(monkeypatch):
    route(
        monkeypatch,
        {"https://graph.test/beta/deviceAppManagement/mobileApps": FakeResponse(payload={"value": [{"displayName": "X"}]})},
    )
    with pytest.raises(RemoteFetchError, match="application without id") as excinfo:
        make_client().list_mobile_apps()
    assert excinfo.value.path == "deviceAppManagement/mobileApps"
