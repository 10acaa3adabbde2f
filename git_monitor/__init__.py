"""Git Monitor - live git working tree state over HTTP and WebSocket."""

__version__ = "0.1.0"
