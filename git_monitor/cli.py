"""Git Monitor CLI - Typer entry point that serves a repository over HTTP/WebSocket."""

from pathlib import Path

import typer
import uvicorn

from git_monitor import __version__
from git_monitor.config import Settings
from git_monitor.utils.logging import setup_logging, get_logger

app = typer.Typer(
    name="git-monitor",
    help="Expose the live state of a git working tree to remote clients.",
    add_completion=False,
)

logger = get_logger(__name__)


def build_settings(repo: str, host: str, port: int, log_level: str) -> Settings:
    """Settings from the environment, overridden by command-line flags."""
    return Settings(
        repo_path=str(Path(repo).expanduser().resolve()),
        host=host,
        port=port,
        log_level=log_level.upper(),
    )


@app.command()
def serve(
    port: int = typer.Option(9090, "--port", "-p", help="Server port"),
    repo: str = typer.Option(".", "--repo", "-r", help="Git repository path"),
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
    log_level: str = typer.Option("INFO", "--log-level", help="DEBUG | INFO | WARNING | ERROR"),
) -> None:
    """Start the Git Monitor server."""
    from git_monitor.main import create_app

    app_settings = build_settings(repo, host, port, log_level)
    setup_logging(app_settings.log_level)

    repo_path = Path(app_settings.repo_path)
    if not repo_path.is_dir():
        typer.echo(f"Error: {repo_path} is not a directory", err=True)
        raise typer.Exit(code=2)

    logger.info(
        f"Git Monitor {__version__} serving {repo_path} on http://{host}:{port}",
        extra={"repository": str(repo_path), "host": host, "port": port},
    )

    uvicorn.run(
        create_app(app_settings),
        host=app_settings.host,
        port=app_settings.port,
        log_level=app_settings.log_level.lower(),
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
