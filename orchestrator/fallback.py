"""Ordered model fallback over a single inference client."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from core import InferencePrompt, MediaSample, ModelVariant, PromptKind
from intelligence.llm import (
    BaseInferenceClient,
    FatalFailure,
    InferenceOutcome,
    InferenceSuccess,
    RetryableFailure,
)
from utils.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


class FallbackState(str, Enum):
    """States of one fallback chain walk."""

    TRYING = "trying"
    RETRY = "retry"
    SUCCESS = "success"
    FATAL = "fatal"
    EXHAUSTED = "exhausted"


TERMINAL_STATES = {FallbackState.SUCCESS, FallbackState.FATAL, FallbackState.EXHAUSTED}


@dataclass
class FallbackAttempt:
    """One call made while walking the chain."""

    index: int
    model: str
    state: FallbackState
    reason: str = ""


@dataclass
class FallbackTrace:
    """Every attempt of one invocation plus the terminal state."""

    prompt_kind: PromptKind
    attempts: List[FallbackAttempt] = field(default_factory=list)
    final_state: Optional[FallbackState] = None

    @property
    def models_tried(self) -> List[str]:
        return [item.model for item in self.attempts]


class FallbackOrchestrator:
    """Walks an injected, ordered variant list until one call settles the outcome."""

    def __init__(self, client: BaseInferenceClient, variants: Sequence[ModelVariant]) -> None:
        variants = list(variants or [])
        if not variants:
            raise ConfigurationError("fallback orchestrator needs at least one model variant")
        self.client = client
        self._variants: Dict[PromptKind, tuple] = {}
        for kind in PromptKind:
            self._variants[kind] = tuple(v for v in variants if v.prompt_kind == kind)

    def variants_for(self, kind: PromptKind) -> tuple:
        return self._variants.get(kind, ())

    async def invoke(self, prompt: InferencePrompt, sample: MediaSample) -> InferenceOutcome:
        outcome, _ = await self.invoke_traced(prompt, sample)
        return outcome

    async def invoke_traced(self, prompt: InferencePrompt, sample: MediaSample) -> Tuple[InferenceOutcome, FallbackTrace]:
        """
        Try each variant configured for ``prompt.kind`` in order.

        Retryable failures advance to the next variant; a fatal failure or a
        success ends the walk. Exhausting the list yields a synthetic
        ``FatalFailure(exhausted=True)``.
        """
        variants = self.variants_for(prompt.kind)
        if not variants:
            raise ConfigurationError(
                "no model variants configured",
                {"prompt_kind": prompt.kind.value},
            )

        trace = FallbackTrace(prompt_kind=prompt.kind)
        index = 0
        state = FallbackState.TRYING
        outcome: Optional[InferenceOutcome] = None
        last_reason = ""

        while state not in TERMINAL_STATES:
            if index >= len(variants):
                state = FallbackState.EXHAUSTED
                break

            variant = variants[index]
            logger.info(f"[fallback] {prompt.kind.value}: trying {variant.identifier} ({index + 1}/{len(variants)})")
            outcome = await self.client.agenerate(variant, sample, prompt)

            if isinstance(outcome, InferenceSuccess):
                state = FallbackState.SUCCESS
            elif isinstance(outcome, RetryableFailure):
                state = FallbackState.RETRY
                last_reason = outcome.reason
                logger.warning(f"[fallback] {variant.identifier} retryable failure: {outcome.reason}")
            else:
                state = FallbackState.FATAL
                logger.error(f"[fallback] {variant.identifier} fatal failure: {outcome.reason}")

            trace.attempts.append(
                FallbackAttempt(
                    index=index,
                    model=variant.identifier,
                    state=state,
                    reason="" if state == FallbackState.SUCCESS else getattr(outcome, "reason", ""),
                )
            )

            if state == FallbackState.RETRY:
                index += 1
                state = FallbackState.TRYING

        trace.final_state = state
        if state == FallbackState.EXHAUSTED:
            logger.error(f"[fallback] {prompt.kind.value}: all {len(variants)} variants exhausted ({last_reason})")
            return FatalFailure(reason="exhausted", exhausted=True), trace

        logger.info(f"[fallback] {prompt.kind.value}: settled as {state.value} after {len(trace.attempts)} call(s)")
        return outcome, trace
