#!/usr/bin/env python3
"""HTTP surface for the stream resolver."""

import json
import logging
import os

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import Settings, load_credentials, load_settings
from engine.stream_handler import StreamHandler
from metadata.types import CONTENT_KINDS

APP_NAME = "Tube Search"
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


class SafeJSONResponse(JSONResponse):
    def render(self, content):
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")


def _setup_logging(level_name=None):
    root = logging.getLogger("")
    level = getattr(logging, str(level_name or "INFO").upper(), logging.INFO)
    root.setLevel(level)
    has_stream = any(isinstance(handler, logging.StreamHandler) for handler in root.handlers)
    if not has_stream:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        stream_handler.setLevel(level)
        root.addHandler(stream_handler)


def create_app(settings: Settings | None = None, handler: StreamHandler | None = None) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(
        title=APP_NAME,
        description="Resolves movie and episode identifiers into ranked external video links.",
        default_response_class=SafeJSONResponse,
    )
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET"], allow_headers=["*"])
    app.state.settings = settings
    app.state.handler = handler or StreamHandler(settings)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/stream/{content_type}/{content_id}.json")
    async def stream(content_type: str, content_id: str):
        if content_type not in CONTENT_KINDS:
            raise HTTPException(status_code=404, detail=f"unsupported content type: {content_type}")
        credentials = load_credentials()
        if not credentials.tmdb_api_key:
            logging.error("[SERVER] Missing TMDB_API_KEY env var")
            return SafeJSONResponse(status_code=500, content={"err": "Server missing TMDB_API_KEY."})
        streams = await app.state.handler.get_streams_async(content_type, content_id, credentials)
        return {"streams": [record.to_payload() for record in streams]}

    return app


_setup_logging(os.environ.get("LOG_LEVEL"))
app = create_app()


if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("TUBE_SEARCH_HOST", "127.0.0.1")
    port = int(os.environ.get("TUBE_SEARCH_PORT", "7000"))
    uvicorn.run("api.main:app", host=host, port=port, reload=False)
