"""
Client for the relay's /api/solve endpoint.

Sends the current settings and canvas image, returns the solution text.
One attempt per call; failures surface as RelayError.
"""

import json
import logging
import os
import time
from typing import Optional

import httpx

from ..models import Settings
from ..utils.constants import DEFAULT_RELAY_URL, DEFAULT_RELAY_TIMEOUT
from ..utils.errors import RelayError

logger = logging.getLogger(__name__)


def default_relay_url() -> str:
    """Relay base URL from SKETCHSOLVE_RELAY_URL, or the local default."""
    return os.getenv("SKETCHSOLVE_RELAY_URL", DEFAULT_RELAY_URL).rstrip("/")


class RelayClient:
    """
    Thin HTTP client for the relay.

    Usage:
        client = RelayClient()
        text = client.solve(settings, canvas.to_data_url())
    """

    SOLVE_PATH = "/api/solve"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_RELAY_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            base_url: Relay root URL. Defaults to SKETCHSOLVE_RELAY_URL.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.base_url = (base_url or default_relay_url()).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def solve(self, settings: Settings, data_url: str) -> str:
        """
        Ask the relay to solve the problem shown in an image.

        Args:
            settings: Provider, model, temperature and prompt.
            data_url: data:image/png;base64,... URL of the canvas.

        Returns:
            The model's answer (Markdown with LaTeX).

        Raises:
            RelayError: On network failure or a non-2xx response.
        """
        payload = {
            "provider": settings.provider,
            "model": settings.model,
            "temperature": settings.temperature,
            "dataUrl": data_url,
            "prompt": settings.prompt,
        }
        url = f"{self.base_url}{self.SOLVE_PATH}"

        start = time.perf_counter()
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise RelayError(
                f"The relay did not answer within {self.timeout:.0f} seconds",
                details=str(e),
            )
        except httpx.HTTPError as e:
            raise RelayError(f"Could not reach the relay at {self.base_url}", details=str(e))

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "Relay answered %d in %dms (%s, %s)",
            response.status_code,
            elapsed_ms,
            settings.provider,
            settings.model,
        )

        if response.is_error:
            error, details = _error_fields(response)
            raise RelayError(
                f"HTTP {response.status_code}: {error}",
                status_code=response.status_code,
                details=details,
            )

        try:
            data = response.json()
        except ValueError:
            return response.text

        return _content_from(data)


def _error_fields(response: httpx.Response):
    """Extract (error, details) from a relay error body."""
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or "Request failed", response.text or None

    if not isinstance(data, dict):
        return response.reason_phrase or "Request failed", json.dumps(data)
    return data.get("error") or response.reason_phrase or "Request failed", data.get("details")


def _content_from(data) -> str:
    """Answer text from {content} or a raw chat-completion body; raw JSON otherwise."""
    if isinstance(data, dict):
        content = data.get("content")
        if not content:
            try:
                content = data["choices"][0]["message"]["content"]
            except (KeyError, IndexError, TypeError):
                content = None
        if isinstance(content, str) and content:
            return content
    return json.dumps(data)
