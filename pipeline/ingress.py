"""Media ingress: cheap local precondition checks before any inference call."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
import logging
import math
import re
from typing import Optional, Tuple

from core import AnalysisRequest, MediaSample
from utils.exceptions import MediaError

from .profiles import AnalyzerProfile


logger = logging.getLogger(__name__)

EMPTY_MEDIA_MESSAGE = "No media was received. Please try again."
INVALID_MEDIA_MESSAGE = "The media could not be read. Please try again."
TOO_LARGE_MESSAGE = "The media file is too large. Please send a shorter clip or a smaller photo."
WRONG_MEDIA_TYPE_MESSAGE = "This media type is not supported for this analysis."

_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")
_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w=.+-]+)*;base64,", re.IGNORECASE)


@dataclass(frozen=True)
class IngressDecision:
    """Either an admitted sample or a fixed rejection message."""

    sample: Optional[MediaSample] = None
    rejection: Optional[str] = None

    @property
    def admitted(self) -> bool:
        return self.sample is not None


def split_data_url(value: str) -> Tuple[Optional[str], str]:
    """Strip a ``data:<mime>;base64,`` prefix, returning (mime, base64 body)."""
    text = str(value or "").strip()
    match = _DATA_URL.match(text)
    if not match:
        return None, text
    mime = (match.group("mime") or "").lower() or None
    return mime, text[match.end():]


def decode_media(value: str) -> bytes:
    """Decode standard or url-safe base64, tolerating whitespace and missing padding."""
    body = re.sub(r"\s+", "", str(value or ""))
    if not body:
        raise MediaError("media payload is empty")
    body = body.translate(_URLSAFE_TO_STANDARD)
    body += "=" * (-len(body) % 4)
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MediaError("media payload is not valid base64", {"error": str(exc)}) from exc


class MediaIngress:
    """Turns an inbound request into a ``MediaSample`` or a fixed rejection."""

    def __init__(
        self,
        profile: AnalyzerProfile,
        *,
        min_duration_seconds: float = 3.0,
        max_media_bytes: int = 15 * 1024 * 1024,
    ) -> None:
        self.profile = profile
        self.min_duration_seconds = float(max(0.0, min_duration_seconds))
        self.max_media_bytes = int(max(1, max_media_bytes))

    def _reject(self, message: str, reason: str) -> IngressDecision:
        logger.info(f"[ingress:{self.profile.name}] rejected: {reason}")
        return IngressDecision(rejection=message)

    def _resolve_mime(self, declared: Optional[str], embedded: Optional[str]) -> Optional[str]:
        mime = declared or embedded or self.profile.default_mime_type
        if not mime.startswith(f"{self.profile.media_kind.value}/"):
            return None
        return mime

    def admit(self, request: AnalysisRequest) -> IngressDecision:
        if not str(request.media_base64 or "").strip():
            return self._reject(EMPTY_MEDIA_MESSAGE, "empty payload")

        if request.duration_seconds is not None:
            duration = float(request.duration_seconds)
            if not math.isfinite(duration) or duration < 0:
                return self._reject(INVALID_MEDIA_MESSAGE, f"duration {request.duration_seconds!r} is not a valid length")
            if self.profile.requires_duration and duration < self.min_duration_seconds:
                message = self.profile.too_short_message.format(seconds=self.min_duration_seconds)
                return self._reject(message, f"duration {request.duration_seconds}s < {self.min_duration_seconds}s")

        embedded_mime, body = split_data_url(request.media_base64)
        mime = self._resolve_mime(request.mime_type, embedded_mime)
        if mime is None:
            return self._reject(WRONG_MEDIA_TYPE_MESSAGE, f"mime {request.mime_type or embedded_mime}")

        # base64 inflates by 4/3; refuse before decoding
        if len(body) > (self.max_media_bytes * 4) // 3 + 4:
            return self._reject(TOO_LARGE_MESSAGE, f"encoded size {len(body)}")

        try:
            payload = decode_media(body)
        except MediaError as exc:
            return self._reject(INVALID_MEDIA_MESSAGE, str(exc))

        if not payload:
            return self._reject(EMPTY_MEDIA_MESSAGE, "decoded payload empty")
        if len(payload) > self.max_media_bytes:
            return self._reject(TOO_LARGE_MESSAGE, f"decoded size {len(payload)}")

        sample = MediaSample(
            payload=payload,
            mime_type=mime,
            duration_seconds=request.duration_seconds,
            context=dict(request.context or {}),
        )
        logger.debug(f"[ingress:{self.profile.name}] admitted {sample.size_bytes} bytes as {mime}")
        return IngressDecision(sample=sample)
