"""Relay to the vision-model providers: HTTP client and FastAPI server."""

from .client import RelayClient

__all__ = ["RelayClient"]
