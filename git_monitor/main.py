"""
FastAPI application entry point.
"""

from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from git_monitor import __version__
from git_monitor.api import git, sessions, websocket
from git_monitor.config import Settings, settings
from git_monitor.middleware.logging import RequestLoggingMiddleware
from git_monitor.services.broadcaster import EventBroadcaster
from git_monitor.services.command_runner import CommandRunner
from git_monitor.services.connection_registry import ConnectionRegistry
from git_monitor.services.file_watcher import FileWatcher
from git_monitor.services.git_repository import GitRepository
from git_monitor.utils.logging import setup_logging, get_logger
from git_monitor.utils.metrics import CommandMetrics

# Configure structured logging
setup_logging(settings.log_level)

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
DASHBOARD_POLL_INTERVAL_MS = 5000

ENDPOINTS = [
    ("GET", "/api/status", "Get repository status"),
    ("GET", "/api/diff", "Get unstaged changes"),
    ("GET", "/api/diff/staged", "Get staged changes"),
    ("GET", "/api/log?limit=20", "Get commit history"),
    ("GET", "/api/branches", "List branches"),
    ("POST", "/api/stage", "Stage files"),
    ("POST", "/api/unstage", "Unstage files"),
    ("POST", "/api/commit", "Create commit"),
    ("GET", "/api/sessions", "List WebSocket sessions"),
    ("GET", "/api/metrics", "Git command metrics"),
    ("GET", "/info", "Service information as JSON"),
    ("WS", "/ws", "WebSocket for real-time updates"),
]


def create_app(app_settings: Optional[Settings] = None, runner: Optional[CommandRunner] = None) -> FastAPI:
    """
    Build the application and its components.

    Args:
        app_settings: Settings to use (defaults to the global settings)
        runner: Command Runner to use (defaults to one bound to the repository)

    Returns:
        Configured FastAPI application
    """
    app_settings = app_settings or settings
    repo_path = Path(app_settings.repo_path)

    app = FastAPI(
        title="Git Monitor",
        description="Live git working tree status, history and change notifications",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    metrics = CommandMetrics()
    if runner is None:
        runner = CommandRunner(
            repo_path,
            git_binary=app_settings.git_binary,
            timeout_seconds=app_settings.command_timeout_seconds,
            metrics=metrics,
        )
    registry = ConnectionRegistry(
        heartbeat_interval=app_settings.heartbeat_interval_seconds,
        queue_size=app_settings.session_queue_size,
    )
    watcher = FileWatcher(repo_path, queue_size=app_settings.event_queue_size)

    app.state.settings = app_settings
    app.state.metrics = metrics
    app.state.runner = runner
    app.state.repository = GitRepository(runner)
    app.state.registry = registry
    app.state.watcher = watcher
    app.state.broadcaster = EventBroadcaster(watcher, registry)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    @app.get("/", response_class=HTMLResponse)
    async def dashboard(request: Request):
        """Browser dashboard: live status, connection count and endpoint list."""
        return templates.TemplateResponse(
            request,
            "dashboard.html",
            {
                "repository": str(repo_path),
                "port": app_settings.port,
                "active_connections": registry.count(),
                "watching": watcher.is_running,
                "endpoints": ENDPOINTS,
                "poll_interval_ms": DASHBOARD_POLL_INTERVAL_MS,
            },
        )

    @app.get("/info")
    async def service_info():
        """Service information."""
        return {
            "message": "Git Monitor Server",
            "version": __version__,
            "repository": str(repo_path),
            "active_connections": registry.count(),
            "watching": watcher.is_running,
            "endpoints": [f"{method} {path}" for method, path, _ in ENDPOINTS],
            "docs": "/docs",
        }

    # Include API routers
    app.include_router(git.router)
    app.include_router(sessions.router)
    app.include_router(websocket.router)

    @app.on_event("startup")
    async def startup_event():
        """Start the file watcher and the event broadcaster."""
        logger.info(f"Starting Git Monitor for {repo_path}")

        if not (repo_path / ".git").exists():
            logger.warning(f"{repo_path} is not a git repository")

        if watcher.start():
            app.state.broadcaster.start()
        else:
            logger.warning("File watcher not running; WebSocket clients will only get heartbeats")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Stop background work and close all sessions."""
        logger.info("Shutting down Git Monitor")

        await app.state.broadcaster.stop()
        await watcher.stop()
        await registry.close_all()
        logger.info("Git Monitor stopped")

    return app


app = create_app()
