"""
Model output parsing.

The inference provider is asked for strict JSON but is not trusted to return
only that. Every parser here has exactly two paths: a strict structured parse
of the first well-formed JSON object in the text, and one well-defined
fallback. Neither path raises on malformed model output.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from core import AdmissibilityLabel, AdmissibilityVerdict, ClassificationVerdict

from .profiles import AnalyzerProfile


logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Return the first balanced ``{...}`` block that decodes to a dict."""
    raw = str(text or "").strip()
    if not raw:
        return None

    candidates = [raw]
    candidates.extend(match.group(1).strip() for match in _FENCE.finditer(raw))
    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed

    starts = [idx for idx, ch in enumerate(raw) if ch == "{"]
    for start in starts:
        depth = 0
        in_string = False
        escaped = False
        for end in range(start, len(raw)):
            ch = raw[end]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    try:
                        parsed = json.loads(raw[start : end + 1])
                    except ValueError:
                        break
                    if isinstance(parsed, dict):
                        return parsed
                    break
    return None


def normalize_label(value: Any) -> str:
    text = str(value or "").strip().lower()
    return re.sub(r"[\s\-/]+", "_", text)


def coerce_confidence(value: Any) -> int:
    """Accept 82, 82.4, "82", "82%"; clamp to 0-100; anything else is 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _NUMBER.search(str(value or ""))
        if not match:
            return 0
        number = float(match.group())
    return int(round(max(0.0, min(100.0, number))))


def _first(data: Mapping[str, Any], keys) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _as_text_list(value: Any, limit: int = 5) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    items = [str(item).strip() for item in value if str(item or "").strip()]
    return items[:limit]


# -- validation ---------------------------------------------------------------

_LABEL_LOOKUP = {label.value: label for label in AdmissibilityLabel}
_LABEL_LOOKUP.update(
    {
        "real_instance_of_subject": AdmissibilityLabel.SUBJECT,
        "real_subject": AdmissibilityLabel.SUBJECT,
        "wrong": AdmissibilityLabel.WRONG_SUBJECT,
        "synthetic": AdmissibilityLabel.SYNTHETIC_MEDIA,
        "synthetic_recorded_media": AdmissibilityLabel.SYNTHETIC_MEDIA,
        "recorded_media": AdmissibilityLabel.SYNTHETIC_MEDIA,
        "empty": AdmissibilityLabel.EMPTY_AMBIENT,
        "ambient": AdmissibilityLabel.EMPTY_AMBIENT,
    }
)


def _label_from_text(text: str) -> Optional[AdmissibilityLabel]:
    # a bare answer must be the label itself, optionally quoted
    bare = str(text or "").strip().strip("`'\".:;!").strip()
    return _LABEL_LOOKUP.get(normalize_label(bare))


def parse_admissibility(text: str, profile: AnalyzerProfile) -> AdmissibilityVerdict:
    """Map validation output onto the closed label set; fail closed."""
    data = extract_json_object(text)
    label: Optional[AdmissibilityLabel] = None
    subject = ""
    confidence = 0

    if data is not None:
        label = _LABEL_LOOKUP.get(normalize_label(_first(data, ("label", "category", "classification"))))
        subject = str(_first(data, ("subject", "description")) or "").strip()
        confidence = coerce_confidence(_first(data, ("confidence",)))
    else:
        label = _label_from_text(text)

    if label is None:
        logger.warning(f"[validation:{profile.name}] unrecognized validation output, failing closed")
        return AdmissibilityVerdict(
            is_admissible=False,
            subject_category=AdmissibilityLabel.UNRECOGNIZED.value,
            confidence=confidence,
            rejection_message=profile.unverified_message,
        )

    if label == AdmissibilityLabel.SUBJECT:
        return AdmissibilityVerdict(
            is_admissible=True,
            subject_category=subject or label.value,
            confidence=confidence,
        )

    return AdmissibilityVerdict(
        is_admissible=False,
        subject_category=label.value,
        confidence=confidence,
        rejection_message=profile.rejection_message(label),
    )


# -- extraction ---------------------------------------------------------------

@dataclass(frozen=True)
class VerdictParseResult:
    verdict: ClassificationVerdict
    recovered: bool


class VerdictParser:
    """Strict structured parse, else the profile's conservative default verdict."""

    def __init__(self, profile: AnalyzerProfile) -> None:
        self.profile = profile

    def parse(self, text: str) -> VerdictParseResult:
        verdict = self._parse_strict(text)
        if verdict is None:
            logger.warning(f"[extraction:{self.profile.name}] unparseable model output, using default verdict")
            return VerdictParseResult(verdict=self.profile.default_verdict(), recovered=True)
        return VerdictParseResult(verdict=verdict, recovered=False)

    def _parse_strict(self, text: str) -> Optional[ClassificationVerdict]:
        profile = self.profile
        data = extract_json_object(text)
        if data is None:
            return None

        category = profile.canonical_category(normalize_label(_first(data, profile.category_keys)))
        if not profile.known_category(category):
            logger.warning(f"[extraction:{profile.name}] unknown category {category!r}")
            return None

        concern = normalize_label(_first(data, profile.concern_keys))
        if concern not in profile.concern_levels:
            concern = profile.lowest_concern

        details = profile.parse_details(data)
        if category in profile.urgent_categories:
            concern = profile.highest_concern
            if "should_see_doctor" in details:
                details["should_see_doctor"] = True
            if details.get("doctor_urgency") in ("none", "soon"):
                details["doctor_urgency"] = "today"
        if profile.normal_categories and "is_normal" in details:
            details["is_normal"] = category in profile.normal_categories and concern == profile.lowest_concern

        return ClassificationVerdict(
            category=category,
            confidence=coerce_confidence(_first(data, ("confidence", "confidence_score"))),
            explanation=str(_first(data, ("explanation", "reason")) or "").strip(),
            recommendations=_as_text_list(_first(data, ("recommendations", "tips"))),
            concern_level=concern,
            is_positive_detection=profile.is_positive(category),
            details=details,
        )
