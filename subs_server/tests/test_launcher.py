import json

import psutil
import pytest
from fastapi.testclient import TestClient
from typer.testing import CliRunner

from common.config import AppConfig
from connectors.browser_connector import BrowserSession
from subs_server import launcher
from subs_server.daemon import create_app

runner = CliRunner()


class FakeProcess:
    """Stands in for a psutil.Process of the daemon."""

    def __init__(self, pid=4242, port=8585, exits=True):
        self.pid = pid
        self.port = port
        self.exits = exits
        self.terminated = False

    def wait(self, timeout=None):
        if not self.exits and not self.terminated:
            raise psutil.TimeoutExpired(timeout, self.pid)

    def terminate(self):
        self.terminated = True


def last_json(output):
    return json.loads(output.strip().splitlines()[-1])


@pytest.fixture(autouse=True)
def logfile(tmp_path, monkeypatch):
    monkeypatch.setenv("SUBGEN_BROWSER_LOGFILE", str(tmp_path / "launcher.log"))


@pytest.fixture
def config(tmp_path):
    (tmp_path / "content").mkdir()
    return AppConfig.from_base_dir(tmp_path)


@pytest.fixture
def daemon_api(config, monkeypatch):
    """Answer the launcher's HTTP calls from an in-process app."""
    app = create_app(config)
    monkeypatch.setattr(launcher, "open_session", lambda port: BrowserSession("http://testserver", client=TestClient(app)))
    monkeypatch.setattr(launcher, "listening_port", lambda proc: proc.port)
    return app


@pytest.fixture
def no_daemon(monkeypatch):
    monkeypatch.setattr(launcher, "find_daemon", lambda: None)


def test_help():
    result = runner.invoke(launcher.app, ["--help"])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_status_not_running(no_daemon):
    result = runner.invoke(launcher.app, ["status"])
    print(result.output)
    assert result.exit_code == 0
    data = last_json(result.output)
    assert data["running"] is False
    assert data["msg"] == "Daemon not running."


def test_default_command_is_status(no_daemon):
    result = runner.invoke(launcher.app, [])
    assert result.exit_code == 0
    assert last_json(result.output)["pid"] is None


def test_status_reports_daemon_health(daemon_api, monkeypatch):
    monkeypatch.setattr(launcher, "find_daemon", lambda: FakeProcess())
    result = runner.invoke(launcher.app, ["status"])
    print(result.output)
    assert result.exit_code == 0
    data = last_json(result.output)
    assert data == {
        "msg": "Daemon running with PID 4242",
        "running": True,
        "pid": 4242,
        "port": 8585,
        "content_exists": True,
        "settings_configured": False,
    }
    assert "not configured" in result.output


def test_status_after_configuring(daemon_api, monkeypatch):
    TestClient(daemon_api).post("/api/settings", json={"serverHost": "subgen.lan", "serverPort": "9000"})
    monkeypatch.setattr(launcher, "find_daemon", lambda: FakeProcess())
    result = runner.invoke(launcher.app, ["status"])
    assert last_json(result.output)["settings_configured"] is True
    assert "not configured" not in result.output


def test_status_process_without_api(monkeypatch):
    monkeypatch.setattr(launcher, "find_daemon", lambda: FakeProcess())
    monkeypatch.setattr(launcher, "listening_port", lambda proc: None)
    result = runner.invoke(launcher.app, ["status"])
    data = last_json(result.output)
    assert data["running"] is False
    assert data["pid"] == 4242
    assert "not answering" in data["msg"]


def test_stop_not_running(no_daemon):
    result = runner.invoke(launcher.app, ["stop"])
    assert result.exit_code == 1
    assert last_json(result.output)["msg"] == "Daemon not running."


def test_stop_via_shutdown(daemon_api, monkeypatch):
    proc = FakeProcess()
    monkeypatch.setattr(launcher, "find_daemon", lambda: proc)
    result = runner.invoke(launcher.app, ["stop"])
    print(result.output)
    assert result.exit_code == 0
    assert last_json(result.output)["msg"] == "Stopped daemon (PID 4242) via /shutdown"
    assert not proc.terminated


def test_stop_falls_back_to_terminate(daemon_api, monkeypatch):
    proc = FakeProcess(exits=False)
    monkeypatch.setattr(launcher, "find_daemon", lambda: proc)
    monkeypatch.setattr(launcher, "STOP_TIMEOUT", 0)
    result = runner.invoke(launcher.app, ["stop"])
    assert result.exit_code == 0
    assert proc.terminated
    assert last_json(result.output)["msg"] == "Stopped daemon (PID 4242) via SIGTERM"


def test_start_refuses_second_daemon(daemon_api, monkeypatch):
    monkeypatch.setattr(launcher, "find_daemon", lambda: FakeProcess())
    result = runner.invoke(launcher.app, ["start"])
    assert result.exit_code == 1
    data = last_json(result.output)
    assert data["msg"] == "A subgen-browser daemon is already running"
    assert data["port"] == 8585


def test_start_spawns_daemon(no_daemon, daemon_api, monkeypatch):
    calls = []

    def fake_spawn(port, base_dir):
        calls.append((port, base_dir))
        return 1234, 9999

    monkeypatch.setattr(launcher, "spawn_daemon", fake_spawn)
    monkeypatch.setattr(launcher.psutil, "Process", lambda pid: FakeProcess(pid=pid, port=9999))
    result = runner.invoke(launcher.app, ["start", "--port", "0", "--base-dir", "/srv/media"])
    print(result.output)
    assert result.exit_code == 0
    assert calls == [(0, "/srv/media")]
    data = last_json(result.output)
    assert data["msg"] == "Started daemon"
    assert (data["pid"], data["port"], data["running"]) == (1234, 9999, True)


def test_describe_without_process():
    assert launcher.describe(None)["running"] is False


def test_listening_port_of_vanished_process():
    proc = FakeProcess()

    def net_connections(kind):
        raise psutil.NoSuchProcess(proc.pid)

    proc.net_connections = net_connections
    assert launcher.listening_port(proc) is None
