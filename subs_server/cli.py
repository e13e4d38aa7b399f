"""
This file is the entry point for the 'subgen-browser' command-line tool.
It talks to a running browser daemon and dispatches Subgen batch requests.
"""
import httpx
import typer
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from common.app_setup import print_and_log, print_error, setup_logging
from common.config import DEFAULT_PORT
from connectors.browser_connector import BrowserAPIError, BrowserSession
from connectors.subgen_connector import SubgenConnector, SubgenDispatchError, SubgenNotConfiguredError, container_directory
from content_tree.models import TreeNode
from settings_store.models import Settings, normalize_language

app = typer.Typer(add_completion=False, help="Browse content and trigger Subgen subtitle generation.")
console = Console()


def open_session(port: int) -> BrowserSession:
    return BrowserSession(f"http://127.0.0.1:{port}")


def make_subgen_connector(settings: Settings) -> SubgenConnector:
    """Connector for the Subgen server named in ``settings``."""
    return SubgenConnector.from_settings(settings)


PortOption = typer.Option(DEFAULT_PORT, "--port", "-p", help="Port of the local browser daemon")


@app.callback()
def main():
    setup_logging(app_name="subgen-browser", daemon=False)


def _render(node: TreeNode, branch: Tree):
    for child in node.children:
        name = escape(child.name)
        label = f"[bold blue]{name}/[/bold blue]" if child.is_folder else name
        _render(child, branch.add(label, highlight=False))


@app.command()
def tree(port: int = PortOption):
    """Print the content directory tree."""
    session = open_session(port)
    try:
        root = session.get_tree()
    except (BrowserAPIError, httpx.HTTPError) as e:
        print_error(f"Failed to read tree: {e}")
        raise typer.Exit(1)
    finally:
        session.close()
    if root is None:
        print_error("Content directory not found.")
        raise typer.Exit(1)
    view = Tree("[bold]content/[/bold]")
    _render(root, view)
    console.print(view)


@app.command()
def settings(port: int = PortOption):
    """Show the stored Subgen settings."""
    session = open_session(port)
    try:
        exists, current = session.get_settings()
    except (BrowserAPIError, httpx.HTTPError) as e:
        print_error(f"Failed to read settings: {e}")
        raise typer.Exit(1)
    finally:
        session.close()
    if not exists:
        print_and_log("No stored settings, showing defaults.")
    console.print_json(data=current.to_payload())


@app.command()
def configure(
    host: str = typer.Option(None, help="Subgen server host"),
    server_port: str = typer.Option(None, "--server-port", help="Subgen server port"),
    language: str = typer.Option(None, help="Default language (code or English name)"),
    port: int = PortOption,
):
    """Update the Subgen settings. Options not given keep their stored value."""
    session = open_session(port)
    try:
        _, current = session.get_settings()
        payload = current.to_payload()
        if host is not None:
            payload["serverHost"] = host
        if server_port is not None:
            payload["serverPort"] = server_port
        if language is not None:
            payload["defaultLanguage"] = language
        saved = session.save_settings(payload)
    except (BrowserAPIError, httpx.HTTPError) as e:
        print_error(f"Failed to save settings: {e}")
        raise typer.Exit(1)
    finally:
        session.close()
    if server_port is not None and not saved.server_port:
        print_error(f"Ignored invalid server port {server_port!r}.")
    print_and_log("Settings saved.")
    console.print_json(data=saved.to_payload())


@app.command()
def select(path: str = typer.Argument("", help="Path relative to the content directory"), port: int = PortOption):
    """Validate a path and show where it lives on disk."""
    session = open_session(port)
    try:
        data = session.select(path)
    except (BrowserAPIError, httpx.HTTPError) as e:
        print_error(f"Selection failed: {e}")
        raise typer.Exit(1)
    finally:
        session.close()
    console.print_json(data=data)


@app.command()
def generate(
    path: str = typer.Argument(..., help="File or folder relative to the content directory"),
    language: str = typer.Option(None, help="Override the default language"),
    port: int = PortOption,
):
    """Send a batch subtitle generation request for a file or folder to Subgen."""
    session = open_session(port)
    try:
        _, current = session.get_settings()
        selection = session.select(path)
    except (BrowserAPIError, httpx.HTTPError) as e:
        print_error(f"Selection failed: {e}")
        raise typer.Exit(1)
    finally:
        session.close()

    try:
        connector = make_subgen_connector(current)
    except SubgenNotConfiguredError as e:
        print_error(f"{e}. Run 'configure --host HOST --server-port PORT'.")
        raise typer.Exit(1)
    lang = normalize_language(language) if language else current.default_language
    try:
        connector.request_batch(selection["relPath"], lang)
    except SubgenDispatchError as e:
        print_error(str(e))
        raise typer.Exit(1)
    finally:
        connector.close()
    print_and_log(f"Generation request sent to Subgen for {container_directory(selection['relPath'])} ({lang}).")


if __name__ == "__main__":
    app()
