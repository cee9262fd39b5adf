"""CLI entrypoint: analyze a local media file or serve the HTTP API."""

from __future__ import annotations

import argparse
import asyncio
import base64
import json
import mimetypes
from pathlib import Path
from typing import Optional

from config import get_settings
from core import AnalysisRequest
from intelligence.llm import build_model_variants, get_inference_client
from pipeline import PROFILES, AnalysisPipeline, build_pipeline, get_profile
from storage import BaseResultSink, InMemoryResultSink, get_default_sink
from utils.logger import configure_service_logging


def _guess_mime(path: Path) -> Optional[str]:
    mime, _ = mimetypes.guess_type(str(path))
    return mime


def _build(analyzer: str, *, dry_run: bool) -> AnalysisPipeline:
    settings = get_settings()
    profile = get_profile(analyzer)
    table = settings.supabase.cry_table if profile.name == "cry" else settings.supabase.diaper_table
    sink: BaseResultSink = InMemoryResultSink() if dry_run else get_default_sink()
    return build_pipeline(
        profile.with_table(table),
        client=get_inference_client(),
        variants=build_model_variants(),
        sink=sink,
        settings=settings.analyzer,
    )


async def _analyze(args: argparse.Namespace) -> int:
    path = Path(args.file)
    request = AnalysisRequest(
        media_base64=base64.b64encode(path.read_bytes()).decode("ascii"),
        duration_seconds=args.duration,
        mime_type=args.mime_type or _guess_mime(path),
        context=json.loads(args.context_json or "{}"),
    )
    pipeline = _build(args.analyzer, dry_run=args.dry_run)
    try:
        result = await pipeline.analyze(request, args.user_id)
    finally:
        await pipeline.extraction.orchestrator.client.aclose()

    print(json.dumps(result.to_response().model_dump(mode="json"), ensure_ascii=False, indent=2))
    return 0 if result.to_response().accepted else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="babyscan media analysis CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze")
    analyze.add_argument("--analyzer", choices=sorted(PROFILES), required=True)
    analyze.add_argument("--file", required=True)
    analyze.add_argument("--duration", type=float, default=None)
    analyze.add_argument("--mime-type", default=None)
    analyze.add_argument("--context-json", default="{}")
    analyze.add_argument("--user-id", default="local-cli")
    analyze.add_argument("--dry-run", action="store_true")

    serve = sub.add_parser("serve")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    args = parser.parse_args()
    general = get_settings().general
    configure_service_logging(level=general.log_level, log_file=general.log_file)

    if args.command == "analyze":
        raise SystemExit(asyncio.run(_analyze(args)))

    if args.command == "serve":
        import uvicorn

        uvicorn.run("webapp.app:app", host=args.host, port=args.port)
        return


if __name__ == "__main__":
    main()
