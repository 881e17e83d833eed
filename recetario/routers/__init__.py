"""API routers for recetario service."""
