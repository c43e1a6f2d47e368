"""Idea processing pipeline — one idea in, a complete SaaS blueprint out.

Flow (strictly sequential, each stage sees the previous stage's raw text):
  1. Validate project id            (no I/O on failure)
  2. Upsert the idea record         (committed immediately)
  3. business analysis   → completion
  4. market validation   → completion (context: business analysis)
  5. feature generation  → completion (context: business analysis)
  6. tech stack          → completion (context: feature generation)
  7. Parse all four      (unparseable text → stage fallback, never an error)
  8. Persist validation, features, tech stack (one commit)
  9. Aggregate confidence + metrics

Runs for the same project are serialised by a per-project lock held from
step 2 through the final commit.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from ...constants import (
    STEP_BUSINESS_ANALYSIS,
    STEP_FEATURE_GENERATION,
    STEP_IDEA_SAVED,
    STEP_MARKET_VALIDATION,
    STEP_RESULTS_PARSED,
    STEP_RESULTS_SAVED,
    STEP_TECH_STACK,
)
from ...models.project import is_valid_object_id
from ...schemas.idea_processing_schema import (
    IdeaProcessingRequest,
    ProcessedIdeaResult,
    ProcessingMetrics,
)
from ...services.idea_service import upsert_idea
from . import parsers, prompts
from .persistence import save_features, save_tech_stack, save_validation
from .scoring import calculate_overall_confidence
from .timing import StepTimer

logger = logging.getLogger(__name__)


class IdeaProcessingError(Exception):
    """Raised when an idea cannot be processed end to end."""


class InvalidProjectIdError(IdeaProcessingError):
    """Raised for a malformed project id, before any I/O."""


@dataclass(frozen=True)
class StageSpec:
    name: str
    step: str
    build_system: Callable[[str], str]
    build_prompt: Callable[[IdeaProcessingRequest, str], str]
    max_tokens: int
    temperature: float
    context_from: Optional[str]
    parse: Callable[[str], Tuple[Any, bool]]


STAGES: Tuple[StageSpec, ...] = (
    StageSpec(
        name="business_analysis",
        step=STEP_BUSINESS_ANALYSIS,
        build_system=prompts.build_business_analysis_system,
        build_prompt=prompts.build_business_analysis_prompt,
        max_tokens=1500,
        temperature=0.3,
        context_from=None,
        parse=parsers.parse_business_analysis,
    ),
    StageSpec(
        name="market_validation",
        step=STEP_MARKET_VALIDATION,
        build_system=prompts.build_market_validation_system,
        build_prompt=prompts.build_market_validation_prompt,
        max_tokens=1800,
        temperature=0.4,
        context_from="business_analysis",
        parse=parsers.parse_market_validation,
    ),
    StageSpec(
        name="feature_generation",
        step=STEP_FEATURE_GENERATION,
        build_system=prompts.build_feature_generation_system,
        build_prompt=prompts.build_feature_generation_prompt,
        max_tokens=2000,
        temperature=0.5,
        context_from="business_analysis",
        parse=parsers.parse_feature_generation,
    ),
    StageSpec(
        name="tech_stack",
        step=STEP_TECH_STACK,
        build_system=prompts.build_tech_stack_system,
        build_prompt=prompts.build_tech_stack_prompt,
        max_tokens=1800,
        temperature=0.3,
        context_from="feature_generation",
        parse=parsers.parse_tech_stack,
    ),
)


@dataclass(frozen=True)
class UsageTotals:
    """Running cost/token/step totals of one run. Folded, never mutated."""

    cost: float = 0.0
    tokens: int = 0
    steps: Tuple[str, ...] = ()

    def mark(self, step: str) -> "UsageTotals":
        return replace(self, steps=self.steps + (step,))

    def add(self, completion, step: str) -> "UsageTotals":
        return UsageTotals(
            cost=self.cost + completion.cost_usd,
            tokens=self.tokens + completion.tokens_used,
            steps=self.steps + (step,),
        )


class IdeaProcessingService:
    """Runs the four-stage pipeline against an injected completion client.

    The client needs one coroutine:
      complete(prompt, *, system_message, max_tokens, temperature) -> CompletionResult
    """

    def __init__(self, completion_client):
        self.completion_client = completion_client
        # project id -> (lock, number of runs holding or waiting on it)
        self._project_locks: Dict[str, Tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def _project_lock(self, project_id: str):
        """Hold the project's lock; the entry is dropped once no run needs it."""
        lock, users = self._project_locks.get(project_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._project_locks[project_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._project_locks[project_id]
            if users == 1:
                del self._project_locks[project_id]
            else:
                self._project_locks[project_id] = (lock, users - 1)

    async def process_idea(self, db: Session, request: IdeaProcessingRequest) -> ProcessedIdeaResult:
        """Process one idea end to end.

        Raises
        ------
        InvalidProjectIdError
            If the project id is not a 24-character hex string.
        IdeaProcessingError
            On any provider, persistence or record-constraint failure.
        """
        if not is_valid_object_id(request.project_id):
            raise InvalidProjectIdError(f"Invalid project ID: {request.project_id!r}")
        project_id = request.project_id.lower()

        async with self._project_lock(project_id):
            try:
                return await self._run(db, request, project_id)
            except Exception as exc:
                db.rollback()
                logger.error("❌ [PIPELINE] Processing failed for project=%s: %s", project_id, exc)
                raise IdeaProcessingError(f"Idea processing failed: {exc}") from exc

    async def _run(self, db: Session, request: IdeaProcessingRequest, project_id: str) -> ProcessedIdeaResult:
        logger.info("🚀 [PIPELINE] Starting idea processing for project=%s", project_id)
        timer = StepTimer("pipeline")

        idea = upsert_idea(db, request)
        idea_id = idea.id
        totals = UsageTotals().mark(STEP_IDEA_SAVED)
        logger.info("✅ [PIPELINE] Step %s (idea=%s)", STEP_IDEA_SAVED, idea_id)

        # ── Completions ───────────────────────────────────────
        raw: Dict[str, str] = {}
        for stage in STAGES:
            context = raw.get(stage.context_from, "") if stage.context_from else ""
            async with timer.async_step(stage.name):
                completion = await self.completion_client.complete(
                    stage.build_prompt(request, context),
                    system_message=stage.build_system(context),
                    max_tokens=stage.max_tokens,
                    temperature=stage.temperature,
                )
            raw[stage.name] = completion.content
            totals = totals.add(completion, stage.step)
            logger.info(
                "✅ [PIPELINE] Step %s (%d tokens, $%.4f)",
                stage.step,
                completion.tokens_used,
                completion.cost_usd,
            )

        # ── Parse ─────────────────────────────────────────────
        results: Dict[str, Any] = {}
        fallback_stages = []
        for stage in STAGES:
            result, used_fallback = stage.parse(raw[stage.name])
            results[stage.name] = result
            if used_fallback:
                fallback_stages.append(stage.name)
                logger.warning("⚠️  [PIPELINE] %s output unparseable, fallback used", stage.name)
        totals = totals.mark(STEP_RESULTS_PARSED)

        business = results["business_analysis"]
        market = results["market_validation"]
        features = results["feature_generation"]
        tech = results["tech_stack"]

        # ── Persist ───────────────────────────────────────────
        save_validation(db, idea_id, business, market)
        save_features(db, idea_id, features)
        save_tech_stack(db, project_id, tech)
        db.commit()
        totals = totals.mark(STEP_RESULTS_SAVED)

        confidence = calculate_overall_confidence(business.confidence_score, market.validation_score)
        total_ms = timer.summary()
        logger.info(
            "🏁 [PIPELINE] Completed project=%s in %dms: $%.4f, %d tokens, confidence=%d, fallbacks=%s",
            project_id,
            total_ms,
            totals.cost,
            totals.tokens,
            confidence,
            fallback_stages or "none",
        )

        return ProcessedIdeaResult(
            idea_id=idea_id,
            business_analysis=business,
            market_validation=market,
            features=features,
            tech_stack=tech,
            processing_metrics=ProcessingMetrics(
                total_processing_time=total_ms,
                ai_cost=totals.cost,
                tokens_used=totals.tokens,
                steps_completed=list(totals.steps),
                confidence_score=confidence,
                fallback_stages=fallback_stages,
                stage_timings=dict(timer.steps),
            ),
        )
