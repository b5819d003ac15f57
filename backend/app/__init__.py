"""FastAPI application for resume submission and review."""
