"""
Relay server.

Forwards a prompt plus a canvas image to a vision-capable chat-completion
API and returns the answer text. API keys live only in the server's
environment; clients never send credentials.

Run with:
    sketchsolve --serve
or:
    uvicorn --factory sketchsolve.relay.server:create_app --port 3001
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import httpx
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..utils.constants import (
    PROVIDERS,
    DEFAULT_TEMPERATURE,
    DEFAULT_MAX_TOKENS,
    DEFAULT_RELAY_PORT,
    DEFAULT_RELAY_TIMEOUT,
)

logger = logging.getLogger(__name__)

OPENROUTER_HEADERS = {
    "HTTP-Referer": "http://localhost:5173",
    "X-Title": "SketchSolve",
}


@dataclass
class RelayConfig:
    """Server-side configuration, normally read from the environment."""

    openai_api_key: str = ""
    openrouter_api_key: str = ""
    host: str = "127.0.0.1"
    port: int = DEFAULT_RELAY_PORT
    timeout: float = DEFAULT_RELAY_TIMEOUT
    max_tokens: int = DEFAULT_MAX_TOKENS

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "RelayConfig":
        """Load a .env file (if present) and read the relay settings."""
        load_dotenv(dotenv_path)
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY", "").strip(),
            host=os.getenv("RELAY_HOST", "127.0.0.1"),
            port=int(os.getenv("RELAY_PORT", DEFAULT_RELAY_PORT)),
            timeout=float(os.getenv("RELAY_TIMEOUT_SECONDS", DEFAULT_RELAY_TIMEOUT)),
        )

    def api_key_for(self, provider: str) -> str:
        if provider == "openai":
            return self.openai_api_key
        if provider == "openrouter":
            return self.openrouter_api_key
        return ""

    def configured_providers(self) -> dict:
        return {name: bool(self.api_key_for(name)) for name in PROVIDERS}


class SolveBody(BaseModel):
    """Incoming /api/solve payload. Field names follow the wire format."""

    provider: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    dataUrl: Optional[str] = None
    prompt: Optional[str] = None


def build_messages(prompt: str, data_url: str) -> list:
    """One user message with the prompt text and the image inline."""
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": data_url}},
            ],
        }
    ]


def build_upstream_request(body: SolveBody, config: RelayConfig) -> dict:
    """Chat-completion JSON payload for the upstream API."""
    info = PROVIDERS[body.provider]
    return {
        "model": body.model or info["default_model"],
        "messages": build_messages(body.prompt, body.dataUrl),
        "temperature": (
            body.temperature if body.temperature is not None else DEFAULT_TEMPERATURE
        ),
        "max_tokens": config.max_tokens,
    }


def extract_content(data: dict) -> str:
    """Pull the assistant text out of a chat-completion response."""
    try:
        return data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError):
        return ""


def error_response(status: int, error: str, details: Optional[str] = None) -> JSONResponse:
    payload = {"error": error}
    if details is not None:
        payload["details"] = details
    return JSONResponse(status_code=status, content=payload)


def create_app(
    config: Optional[RelayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        config: Relay configuration. Read from the environment if None.
        transport: Optional httpx transport for upstream calls (tests use
            httpx.MockTransport).
    """
    config = config or RelayConfig.from_env()
    app = FastAPI(title="SketchSolve Relay")

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return error_response(400, "Invalid request body", str(exc.errors()))

    @app.get("/health")
    def health():
        return {"status": "ok", "providers": config.configured_providers()}

    @app.post("/api/solve")
    async def solve(body: SolveBody):
        logger.info("Solve request: provider=%s model=%s", body.provider, body.model)

        if not body.provider or not body.dataUrl or not body.prompt:
            return error_response(
                400, "Missing data: provider, dataUrl and prompt are required"
            )

        if body.provider not in PROVIDERS:
            return error_response(400, f"Unsupported provider '{body.provider}'")

        api_key = config.api_key_for(body.provider)
        if not api_key:
            env_var = PROVIDERS[body.provider]["key_env"]
            return error_response(
                500,
                f"API key not configured for {body.provider}. "
                f"Set the {env_var} environment variable on the relay.",
            )

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        if body.provider == "openrouter":
            headers.update(OPENROUTER_HEADERS)

        try:
            async with httpx.AsyncClient(
                timeout=config.timeout, transport=transport
            ) as client:
                response = await client.post(
                    PROVIDERS[body.provider]["url"],
                    headers=headers,
                    json=build_upstream_request(body, config),
                )
        except httpx.HTTPError as e:
            logger.error("Upstream request to %s failed: %s", body.provider, e)
            return error_response(500, "Internal relay error", str(e))

        if response.is_error:
            logger.error(
                "Upstream %s error: %d - %s",
                body.provider,
                response.status_code,
                response.text,
            )
            return error_response(
                response.status_code,
                f"{body.provider} API error: {response.status_code}",
                response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Upstream %s returned invalid JSON: %s", body.provider, e)
            return error_response(500, "Internal relay error", str(e))

        return {"content": extract_content(data)}

    return app


def run_server(config: Optional[RelayConfig] = None) -> None:
    """Run the relay under uvicorn (blocking)."""
    import uvicorn

    config = config or RelayConfig.from_env()
    providers = config.configured_providers()
    logger.info("Relay listening on http://%s:%d", config.host, config.port)
    logger.info(
        "Credentials loaded -> OPENAI_API_KEY: %s, OPENROUTER_API_KEY: %s",
        "yes" if providers["openai"] else "no",
        "yes" if providers["openrouter"] else "no",
    )
    uvicorn.run(create_app(config), host=config.host, port=config.port)

