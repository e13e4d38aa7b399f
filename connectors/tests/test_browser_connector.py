import pytest
from fastapi.testclient import TestClient

from common.config import AppConfig
from connectors.browser_connector import BrowserAPIError, BrowserSession
from subs_server.daemon import create_app


@pytest.fixture
def session(tmp_path):
    (tmp_path / "content" / "Movies").mkdir(parents=True)
    (tmp_path / "content" / "Movies" / "heat.mkv").write_text("")
    app = create_app(AppConfig.from_base_dir(tmp_path))
    return BrowserSession("http://testserver", client=TestClient(app))


def test_get_tree(session):
    tree = session.get_tree()
    assert tree.children[0].name == "Movies"
    assert tree.children[0].children[0].path == "Movies/heat.mkv"


def test_settings_round_trip(session):
    exists, settings = session.get_settings()
    assert not exists
    assert settings.default_language == "en"
    saved = session.save_settings({"serverHost": "h", "serverPort": "9000", "defaultLanguage": "spanish"})
    assert saved.default_language == "es"
    exists, settings = session.get_settings()
    assert exists
    assert settings == saved


def test_select(session):
    data = session.select("Movies/heat.mkv")
    assert data["type"] == "file"
    assert data["relPath"] == "Movies/heat.mkv"


@pytest.mark.parametrize("path, status, message", [("../x", 400, "Invalid path"), ("nope", 404, "Not found")])
def test_select_errors(session, path, status, message):
    with pytest.raises(BrowserAPIError) as exc_info:
        session.select(path)
    assert exc_info.value.status_code == status
    assert exc_info.value.message == message
