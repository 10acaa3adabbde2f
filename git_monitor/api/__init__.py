"""API routers for the Git Monitor service."""
