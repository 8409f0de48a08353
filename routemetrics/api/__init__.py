"""HTTP-facing integration: plugin, ASGI middleware and metrics endpoints."""
