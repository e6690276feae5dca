import pytest

from intune_app_status.classifier import APP_TYPE_LABELS, classify


@pytest.mark.parametrize(
    "type_tag,label",
    [
        ("#microsoft.graph.win32LobApp", "Win32"),
        ("#microsoft.graph.windowsMobileMSI", "MSI"),
        ("#microsoft.graph.webApp", "Web App"),
        ("#microsoft.graph.officeSuiteApp", "Microsoft 365 Apps"),
        ("#microsoft.graph.microsoftStoreForBusinessApp", "Store for Business"),
        ("#microsoft.graph.winGetApp", "Microsoft Store"),
    ],
)
def test_known_types(type_tag, label):
    assert classify(type_tag) == label


@pytest.mark.parametrize("type_tag", ["", None, "#microsoft.graph.androidStoreApp", "webApp", "#MICROSOFT.GRAPH.WEBAPP"])
def test_unknown_types_fall_back(type_tag):
    assert classify(type_tag) == "Unknown"


def test_label_table_is_closed_set_of_six():
    assert len(APP_TYPE_LABELS) == 6
    assert all(APP_TYPE_LABELS.values())
