"""
launcher.py
-----------
Background process management for the browser daemon (subs_server.daemon).

The daemon is located with psutil by its command line, so no PID file is
kept. Each command prints one JSON line describing the daemon; human
readable warnings go to stderr.
"""

import json
import subprocess
import sys
import time

import httpx
import psutil
import typer

from common.app_setup import print_error, setup_logging
from connectors.browser_connector import BrowserAPIError, BrowserSession

DAEMON_MODULE = "subs_server.daemon"
READY_TIMEOUT = 5.0
STOP_TIMEOUT = 3.0

app = typer.Typer(add_completion=False, help="Run the subgen-browser daemon in the background. Without a command, shows its status.")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    setup_logging(app_name="subgen-browser-launcher", daemon=False)
    if ctx.invoked_subcommand is None:
        ctx.invoke(status)


def open_session(port: int) -> BrowserSession:
    return BrowserSession(f"http://127.0.0.1:{port}", timeout=2.0)


def find_daemon() -> psutil.Process | None:
    """The running daemon process, if any."""
    for proc in psutil.process_iter(["cmdline"]):
        cmdline = proc.info["cmdline"] or []
        if "-m" in cmdline and DAEMON_MODULE in cmdline:
            return proc
    return None


def listening_port(proc: psutil.Process) -> int | None:
    try:
        for conn in proc.net_connections(kind="inet"):
            if conn.status == psutil.CONN_LISTEN:
                return conn.laddr.port
    except psutil.Error:
        pass
    return None


def read_health(port: int) -> dict | None:
    """The daemon's /status body, or None while it is not answering."""
    session = open_session(port)
    try:
        return session.status()
    except (BrowserAPIError, httpx.HTTPError):
        return None
    finally:
        session.close()


def describe(proc: psutil.Process | None) -> dict:
    """Summary of the daemon: process, port and what its /status reports."""
    if proc is None:
        return {"running": False, "pid": None, "port": None, "content_exists": None, "settings_configured": None}
    port = listening_port(proc)
    health = read_health(port) if port else None
    return {
        "running": health is not None,
        "pid": proc.pid,
        "port": port,
        "content_exists": health.get("content_exists") if health else None,
        "settings_configured": health.get("settings_configured") if health else None,
    }


def warn_about(summary: dict):
    if summary["content_exists"] is False:
        print_error("The daemon's content directory does not exist; the tree will be empty.")
    if summary["settings_configured"] is False:
        print_error("Subgen host/port not configured; run 'subgen-browser configure'.")


def _emit(summary: dict, msg: str):
    typer.echo(json.dumps({"msg": msg, **summary}))


def _wait_for_port(proc: subprocess.Popen) -> int | None:
    """Read the port the daemon announces as JSON on its stdout."""
    assert proc.stdout is not None
    for line in proc.stdout:
        try:
            event = json.loads(line)
        except ValueError:
            continue
        if event.get("event") in ("port_selected", "port_used"):
            return int(event["port"])
    return None


def _wait_until_ready(port: int) -> dict | None:
    deadline = time.monotonic() + READY_TIMEOUT
    while time.monotonic() < deadline:
        health = read_health(port)
        if health is not None:
            return health
        time.sleep(0.2)
    return None


def spawn_daemon(port: int | None, base_dir: str | None) -> tuple[int, int | None]:
    """Start the daemon in the background and return (pid, port) once it answers /status."""
    cmd = [sys.executable, "-m", DAEMON_MODULE]
    if port is not None:
        cmd += ["--port", str(port)]
    if base_dir:
        cmd += ["--base-dir", base_dir]
    proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL, text=True, close_fds=True)
    used_port = _wait_for_port(proc)
    if used_port is None or _wait_until_ready(used_port) is None:
        proc.terminate()
        print_error(f"Daemon did not come up (exit code {proc.poll()}).")
        raise typer.Exit(1)
    return proc.pid, used_port


@app.command()
def start(
    port: int | None = typer.Option(None, help="Port for the daemon (0 picks a free one; default from config)"),
    base_dir: str | None = typer.Option(None, help="Directory holding content/ and config/"),
):
    """Start the daemon unless one is already running."""
    running = find_daemon()
    if running is not None:
        _emit(describe(running), "A subgen-browser daemon is already running")
        raise typer.Exit(1)
    pid, _ = spawn_daemon(port, base_dir)
    summary = describe(psutil.Process(pid))
    warn_about(summary)
    _emit(summary, "Started daemon")


@app.command()
def stop():
    """Ask the daemon to shut down via /shutdown, terminating it if it does not."""
    proc = find_daemon()
    if proc is None:
        _emit(describe(None), "Daemon not running.")
        raise typer.Exit(1)
    port = listening_port(proc)
    how = "/shutdown"
    if port:
        session = open_session(port)
        try:
            session.shutdown()
        except (BrowserAPIError, httpx.HTTPError) as e:
            print_error(f"Graceful shutdown failed: {e}")
        finally:
            session.close()
    try:
        proc.wait(timeout=STOP_TIMEOUT)
    except psutil.TimeoutExpired:
        how = "SIGTERM"
        proc.terminate()
        try:
            proc.wait(timeout=STOP_TIMEOUT)
        except psutil.TimeoutExpired:
            _emit(describe(proc), f"Failed to stop daemon (PID {proc.pid})")
            raise typer.Exit(1)
    except psutil.NoSuchProcess:
        pass
    _emit(describe(None), f"Stopped daemon (PID {proc.pid}) via {how}")


@app.command()
def status():
    """Report whether the daemon runs, where, and whether it is ready to dispatch."""
    summary = describe(find_daemon())
    if summary["running"]:
        warn_about(summary)
        msg = f"Daemon running with PID {summary['pid']}"
    elif summary["pid"] is not None:
        msg = f"Daemon process {summary['pid']} found but its API is not answering"
    else:
        msg = "Daemon not running."
    _emit(summary, msg)


if __name__ == "__main__":
    app()
