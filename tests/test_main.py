from __future__ import annotations

import argparse
import json

import pytest

from conftest import ScriptedInferenceClient, ok
from core import PromptKind
import main as cli


def _args(path, **overrides) -> argparse.Namespace:
    values = {
        "analyzer": "cry",
        "file": str(path),
        "duration": 6.0,
        "mime_type": "audio/webm",
        "context_json": '{"baby_age_months": 2}',
        "user_id": "local-cli",
        "dry_run": True,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


class ClosingClient(ScriptedInferenceClient):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_dry_run_analyzes_local_file(monkeypatch, tmp_path, variants, capsys) -> None:
    clip = tmp_path / "cry.webm"
    clip.write_bytes(b"\x1a\x45\xdf\xa3local-clip")
    client = ClosingClient(
        validation=[ok({"label": "subject", "confidence": 94})],
        extraction=[ok({"category": "hungry", "confidence": 81, "urgency": "medium"})],
    )
    monkeypatch.setattr(cli, "get_inference_client", lambda: client)
    monkeypatch.setattr(cli, "build_model_variants", lambda: variants)

    def _no_supabase():
        raise AssertionError("dry run must not build the supabase sink")

    monkeypatch.setattr(cli, "get_default_sink", _no_supabase)

    exit_code = await cli._analyze(_args(clip))

    assert exit_code == 0
    assert client.closed is True
    assert client.calls == [(PromptKind.VALIDATION, "val-a"), (PromptKind.EXTRACTION, "ext-a")]
    assert "baby age months: 2" in client.prompts[-1]
    body = json.loads(capsys.readouterr().out)
    assert body["accepted"] is True
    assert body["verdict"]["category"] == "hungry"
    assert body["record_id"]


@pytest.mark.asyncio
async def test_dry_run_rejection_exits_nonzero(monkeypatch, tmp_path, variants, capsys) -> None:
    clip = tmp_path / "short.webm"
    clip.write_bytes(b"tiny")
    client = ClosingClient()
    monkeypatch.setattr(cli, "get_inference_client", lambda: client)
    monkeypatch.setattr(cli, "build_model_variants", lambda: variants)

    exit_code = await cli._analyze(_args(clip, duration=1.0))

    assert exit_code == 1
    assert client.calls == []
    assert client.closed is True
    assert "too short" in json.loads(capsys.readouterr().out)["rejection_reason"].lower()
