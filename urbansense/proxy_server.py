"""Trusted analysis proxy.

Holds the Gemini credential server-side so deployed clients never see it.
Clients POST ``{"base64Image": ..., "prompt": ...}`` and receive
``{"text": ...}`` on success or ``{"error": ...}`` with a 4xx/5xx status.
"""

from __future__ import annotations

import argparse
import json
import logging
from contextlib import asynccontextmanager
from typing import Sequence

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import AppConfig, load_config
from .constants import MSG_PROXY_EMPTY_ANALYSIS, MSG_PROXY_INTERNAL_ERROR
from .errors import AnalysisError
from .gemini_client import GeminiClient
from .logging_utils import configure_logging

LOGGER = logging.getLogger(__name__)

ANALYZE_PATH = "/api/analyze-image"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    cfg: AppConfig | None = None, *, gemini_client: GeminiClient | None = None
) -> FastAPI:
    """Create the proxy application.

    The Gemini client is created once in the lifespan and reused across
    requests. A missing credential fails startup instead of every request.
    """

    config = cfg or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = gemini_client
        if client is None:
            if not config.has_credential:
                raise RuntimeError(
                    "GEMINI_API_KEY (or GOOGLE_API_KEY / API_KEY) environment variable is not set"
                )
            client = GeminiClient(config)
        app.state.gemini_client = client
        try:
            yield
        finally:
            app.state.gemini_client = None

    app = FastAPI(lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request):
        client = getattr(request.app.state, "gemini_client", None)
        return {"ok": True, "gemini_available": client is not None and client.available}

    @app.post(ANALYZE_PATH)
    async def analyze_image(request: Request):
        """Run one (image, prompt) analysis on behalf of a client."""

        raw = await request.body()
        try:
            body = json.loads(raw or b"{}")
        except ValueError:
            LOGGER.warning("Rejected request with invalid JSON body")
            return _error(400, "Invalid JSON format in request body.")
        if not isinstance(body, dict):
            return _error(400, "Invalid JSON format in request body.")

        base64_image = body.get("base64Image")
        prompt = body.get("prompt")
        if not base64_image or not prompt:
            return _error(400, "Request body must contain 'base64Image' and 'prompt'.")

        client: GeminiClient | None = getattr(request.app.state, "gemini_client", None)
        if client is None:
            return _error(500, MSG_PROXY_INTERNAL_ERROR)

        try:
            text, meta = await client.generate(str(base64_image), str(prompt))
        except AnalysisError as exc:
            if exc.reason == "invalid-credential":
                LOGGER.error("Proxy has no usable Gemini credential")
                return _error(500, MSG_PROXY_INTERNAL_ERROR)
            LOGGER.warning("Rejected analysis request: %s", exc.reason)
            return _error(400, "Field 'base64Image' must be valid base64 image data.")
        except Exception:  # the client only ever sees a generic message
            LOGGER.exception("Error during Gemini API call in proxy")
            return _error(500, MSG_PROXY_INTERNAL_ERROR)

        if not text:
            LOGGER.warning("Gemini returned a successful response with no text")
            return {"text": MSG_PROXY_EMPTY_ANALYSIS}
        LOGGER.info("Analysis served in %s ms", meta.get("latency_ms"))
        return {"text": text}

    return app


# uvicorn urbansense.proxy_server:app
load_dotenv()
app = create_app()


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="UrbanSense analysis proxy")
    parser.add_argument("--host", type=str, default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    load_dotenv()
    cfg = load_config()
    configure_logging(cfg.debug)
    uvicorn.run(create_app(cfg), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
