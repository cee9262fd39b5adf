"""Persistence gate: one write per accepted positive verdict, never retried."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Optional

from core import ClassificationVerdict, MediaSample, PersistedVerdictRecord
from storage import BaseResultSink
from utils.exceptions import StorageError

from .profiles import AnalyzerProfile


logger = logging.getLogger(__name__)

PERSIST_FAILED_WARNING = "The result could not be saved to your history."


@dataclass(frozen=True)
class PersistOutcome:
    persisted: bool
    record_id: Optional[str] = None
    warning: Optional[str] = None


class PersistenceGate:
    """Writes through the sink iff the verdict is a positive detection."""

    def __init__(self, profile: AnalyzerProfile, sink: BaseResultSink) -> None:
        self.profile = profile
        self.sink = sink

    async def maybe_persist(
        self,
        caller_id: str,
        verdict: ClassificationVerdict,
        sample: Optional[MediaSample] = None,
    ) -> PersistOutcome:
        if not verdict.is_positive_detection:
            logger.info(f"[persist:{self.profile.name}] skipped: {verdict.category} is not a detection")
            return PersistOutcome(persisted=False)

        record = PersistedVerdictRecord(
            caller_id=caller_id,
            analyzer=self.profile.name,
            duration_seconds=sample.duration_seconds if sample is not None else None,
            verdict=verdict,
        )
        row = self.profile.build_row(record)
        try:
            await asyncio.to_thread(self.sink.insert, self.profile.table, row)
        except StorageError as exc:
            logger.error(f"[persist:{self.profile.name}] {self.sink.name} write failed: {exc}")
            return PersistOutcome(persisted=False, warning=PERSIST_FAILED_WARNING)

        logger.info(f"[persist:{self.profile.name}] stored {record.id} in {self.profile.table}")
        return PersistOutcome(persisted=True, record_id=record.id)
