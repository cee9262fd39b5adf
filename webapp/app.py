"""FastAPI app exposing the cry and diaper analyzers."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from typing import Any, Awaitable, Dict, Optional, TypeVar

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from core import AnalysisRequest, AnalysisResponse
from pipeline import PIPELINE_UNAVAILABLE_MESSAGE, AnalysisFailed
from utils.exceptions import ConfigurationError, IdentityError
from webapp.auth import bearer_token
from webapp.runtime import close_runtime, get_identity_resolver, get_pipeline, known_analyzers


logger = logging.getLogger(__name__)

T = TypeVar("T")

DISCONNECT_POLL_SECONDS = 0.2
CLIENT_CLOSED_STATUS = 499


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    await close_runtime()


app = FastAPI(title="babyscan analysis API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ClientDisconnected(Exception):
    """The caller went away before the analysis finished."""


async def _wait_for_disconnect(request: Request) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


async def run_until_disconnect(request: Request, work: Awaitable[T]) -> T:
    """Await ``work``; cancel it and raise ``ClientDisconnected`` if the caller leaves first."""
    task = asyncio.ensure_future(work)
    watcher = asyncio.ensure_future(_wait_for_disconnect(request))
    try:
        done, _ = await asyncio.wait({task, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        pending = [item for item in (task, watcher) if not item.done()]
        for item in pending:
            item.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    if task not in done:
        raise ClientDisconnected()
    return task.result()


async def _caller_id(authorization: Optional[str]) -> str:
    try:
        token = bearer_token(authorization)
        return await asyncio.to_thread(get_identity_resolver().resolve, token)
    except IdentityError as exc:
        raise HTTPException(status_code=401, detail="Unauthorized") from exc
    except ConfigurationError as exc:
        logger.error(f"[api] identity lookup misconfigured: {exc}")
        raise HTTPException(status_code=503, detail=PIPELINE_UNAVAILABLE_MESSAGE) from exc


@app.get("/api/v1/health")
def health() -> Dict[str, Any]:
    return {
        "ok": True,
        "analyzers": known_analyzers(),
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds"),
    }


@app.post("/api/v1/analyze/{analyzer}", response_model=AnalysisResponse)
async def analyze(
    analyzer: str,
    payload: AnalysisRequest,
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> AnalysisResponse:
    if analyzer not in known_analyzers():
        raise HTTPException(status_code=404, detail="analyzer not found")

    caller_id = await _caller_id(authorization)

    try:
        pipeline = get_pipeline(analyzer)
    except ConfigurationError as exc:
        logger.error(f"[api] {analyzer} pipeline misconfigured: {exc}")
        raise HTTPException(status_code=503, detail=PIPELINE_UNAVAILABLE_MESSAGE) from exc

    try:
        result = await run_until_disconnect(request, pipeline.analyze(payload, caller_id))
    except ClientDisconnected as exc:
        logger.info(f"[api] {analyzer}: client disconnected, analysis cancelled")
        raise HTTPException(status_code=CLIENT_CLOSED_STATUS, detail="client closed request") from exc

    if isinstance(result, AnalysisFailed):
        raise HTTPException(status_code=503, detail=PIPELINE_UNAVAILABLE_MESSAGE)
    return result.to_response()
