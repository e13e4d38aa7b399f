"""
subs_server.daemon
------------------
JSON API of the content browser, using FastAPI.
It exposes the content tree, the Subgen connection settings and selection
validation for the client that dispatches subtitle generation.
"""
import json
import logging
import os
import socket
import stat
import sys
from typing import Any

import typer
import uvicorn
from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from common.app_setup import setup_logging
from common.config import AppConfig
from content_tree import InvalidPathError, build_tree, resolve_content_path
from settings_store import PersistFailedError, SettingsStore, default_settings

logger = logging.getLogger(__name__)


class SelectRequest(BaseModel):
    path: str | None = None
    type: str | None = None


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_settings_store(config: AppConfig = Depends(get_config)) -> SettingsStore:
    return SettingsStore.from_config(config)


router = APIRouter(prefix="/api")


@router.get("/tree")
def read_tree(config: AppConfig = Depends(get_config)):
    """Snapshot of the content directory, rebuilt on every call."""
    if not config.content_dir.exists():
        logger.warning(f"Content directory not found: {config.content_dir}")
        return {"exists": False, "message": "content directory not found", "tree": None}
    tree = build_tree(config.content_dir, max_depth=config.tree_max_depth)
    return {"exists": True, "tree": tree}


@router.get("/settings")
def read_settings(store: SettingsStore = Depends(get_settings_store)):
    settings = store.load()
    if settings is None:
        return {"exists": False, "settings": default_settings().to_payload()}
    return {"exists": True, "settings": settings.to_payload()}


@router.post("/settings")
def save_settings(payload: dict[str, Any] | None = Body(default=None), store: SettingsStore = Depends(get_settings_store)):
    saved = store.save(payload or {})
    return {"ok": True, "settings": saved.to_payload()}


@router.post("/select")
def select(selection: SelectRequest, config: AppConfig = Depends(get_config)):
    """Validate a selected entry and report its absolute location."""
    rel = selection.path or ""
    full = resolve_content_path(config.content_dir, rel)
    try:
        st = full.stat()
    except (OSError, ValueError):
        logger.info(f"Selected path not found: {rel!r}")
        return JSONResponse(status_code=404, content={"error": "Not found"})
    node_type = "folder" if stat.S_ISDIR(st.st_mode) else "file"
    logger.info(f"Selected {node_type}: {full}")
    return {"ok": True, "type": node_type, "relPath": rel, "absolutePath": str(full)}


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Build the FastAPI app for ``config`` (defaults to the environment)."""
    app = FastAPI(title="subgen-browser")
    app.state.config = config or AppConfig.from_env()
    app.include_router(router)

    @app.exception_handler(InvalidPathError)
    async def invalid_path_handler(request: Request, exc: InvalidPathError):
        logger.warning(f"Rejected path: {exc}")
        return JSONResponse(status_code=400, content={"error": "Invalid path"})

    @app.exception_handler(PersistFailedError)
    async def persist_failed_handler(request: Request, exc: PersistFailedError):
        return JSONResponse(status_code=500, content={"error": "Failed to save settings"})

    @app.get("/status")
    def status():
        """Health/status endpoint for the browser daemon."""
        cfg: AppConfig = app.state.config
        server = getattr(app.state, "uvicorn_server", None)
        state = "shutting_down" if server and server.should_exit else "ok"
        settings = SettingsStore.from_config(cfg).peek()
        return {
            "status": state,
            "content_exists": cfg.content_dir.exists(),
            "settings_configured": bool(settings and settings.is_configured),
        }

    @app.post("/shutdown")
    def shutdown():
        """Shutdown the server gracefully."""
        logger.info("Shutdown requested via /shutdown endpoint.")
        server = getattr(app.state, "uvicorn_server", None)
        if server:
            server.should_exit = True
        return {"message": "Server shutting down"}

    return app


app_cli = typer.Typer(add_completion=False)


def _pick_port(host: str, port: int | None) -> int:
    """Return ``port`` if it is free, or a free port chosen by the OS when port is 0/None."""
    if not port:
        # Bind to port 0 to get a free port, then close and reuse
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind((host, 0))
            port = s.getsockname()[1]
        logger.info(f"Selected port: {port}")
        print(json.dumps({"event": "port_selected", "port": port}), flush=True)
        return port
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
        except OSError:
            logger.error(f"ERROR: Port {port} is already in use.")
            sys.exit(98)  # 98 = EADDRINUSE
    logger.info(f"Using port: {port}")
    print(json.dumps({"event": "port_used", "port": port}), flush=True)
    return port


@app_cli.command()
def run(
    port: int = typer.Option(None, help="Port to run the server on (default from config, 0 for auto)"),
    host: str = typer.Option(None, help="Interface to bind (default from config)"),
    base_dir: str = typer.Option(None, help="Directory holding content/, config/ and the legacy settings file"),
):
    """Run the browser API with Uvicorn, reporting the actual port used."""
    setup_logging(app_name="subgen-browser", daemon=True)
    config = AppConfig.from_env(base_dir)
    host = host or config.host
    port = _pick_port(host, config.port if port is None else port)
    app = create_app(config)
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="info"))
    app.state.uvicorn_server = server  # Store server instance for shutdown
    logger.info(f"Serving {config.content_dir} on http://{host}:{port}")
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt in main thread")
    logger.info("Server stopped, exiting process")
    os._exit(0)


if __name__ == "__main__":
    app_cli()
