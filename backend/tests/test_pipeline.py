"""Idea processing pipeline — end-to-end scenarios against a scripted completion client."""

import asyncio

import pytest
from conftest import OTHER_PROJECT_ID, PROJECT_ID, ScriptedCompletionClient, make_request, stage_texts

from saas_blueprint.agents.idea_processing import (
    IdeaProcessingError,
    IdeaProcessingService,
    InvalidProjectIdError,
    UsageTotals,
)
from saas_blueprint.models import Feature, IdeaValidation, SaasIdea, TechStackRecommendation

STEPS = [
    "idea_saved",
    "business_analysis",
    "market_validation",
    "feature_generation",
    "tech_stack_recommendation",
    "results_parsed",
    "results_saved",
]


def _run(service, db, request):
    return asyncio.run(service.process_idea(db, request))


class TestHappyPath:
    def test_documented_scenario(self, db):
        client = ScriptedCompletionClient(stage_texts())
        result = _run(IdeaProcessingService(client), db, make_request())

        assert len(result.features.mvp_features) == 2
        assert result.tech_stack.backend.primary == "Node.js"
        assert "$6.7B" in result.market_validation.market_size.tam

    def test_metrics(self, db):
        client = ScriptedCompletionClient(stage_texts(), cost=0.02, tokens=250)
        metrics = _run(IdeaProcessingService(client), db, make_request()).processing_metrics

        assert metrics.steps_completed == STEPS
        assert metrics.confidence_score == 85
        assert metrics.tokens_used == 1000
        assert metrics.ai_cost == pytest.approx(0.08)
        assert metrics.fallback_stages == []
        assert set(metrics.stage_timings) == {"business_analysis", "market_validation", "feature_generation", "tech_stack"}

    def test_stage_parameters_and_context(self, db):
        client = ScriptedCompletionClient(stage_texts())
        _run(IdeaProcessingService(client), db, make_request())

        assert [(c["temperature"], c["max_tokens"]) for c in client.calls] == [
            (0.3, 1500),
            (0.4, 1800),
            (0.5, 2000),
            (0.3, 1800),
        ]
        business_text, _, feature_text, _ = stage_texts()
        # market validation and feature generation both read the business analysis
        assert business_text[:300] in client.calls[1]["prompt"]
        assert business_text[:300] in client.calls[2]["prompt"]
        assert feature_text[:400] in client.calls[3]["prompt"]
        assert "React, Node.js" in client.calls[3]["prompt"]

    def test_results_persisted(self, db):
        client = ScriptedCompletionClient(stage_texts())
        result = _run(IdeaProcessingService(client), db, make_request())

        assert db.query(IdeaValidation).filter(IdeaValidation.idea_id == result.idea_id).count() == 1
        assert db.query(Feature).filter(Feature.project_id == PROJECT_ID).count() == 4
        assert db.query(TechStackRecommendation).filter(TechStackRecommendation.project_id == PROJECT_ID).count() == 1

    def test_camel_case_output(self, db):
        client = ScriptedCompletionClient(stage_texts())
        payload = _run(IdeaProcessingService(client), db, make_request()).model_dump(by_alias=True)

        assert payload["businessAnalysis"]["businessModelType"] == "B2B"
        assert payload["processingMetrics"]["stepsCompleted"] == STEPS


class TestResilience:
    def test_all_prose_still_completes(self, db):
        client = ScriptedCompletionClient(["The model could not produce structured output today."])
        result = _run(IdeaProcessingService(client), db, make_request())

        assert result.business_analysis.business_model_type == "B2B"
        assert result.business_analysis.viability_score == 50
        assert result.market_validation.validation_score == 50
        assert len(result.features.mvp_features) == 1
        assert result.tech_stack.frontend.primary == "React"
        assert result.processing_metrics.confidence_score == 50
        assert result.processing_metrics.fallback_stages == [
            "business_analysis",
            "market_validation",
            "feature_generation",
            "tech_stack",
        ]
        assert result.processing_metrics.steps_completed == STEPS

    def test_cost_counted_for_fallback_stages(self, db):
        client = ScriptedCompletionClient(["no json here"], cost=0.05, tokens=10)
        metrics = _run(IdeaProcessingService(client), db, make_request()).processing_metrics
        assert metrics.ai_cost == pytest.approx(0.2)
        assert metrics.tokens_used == 40


class TestIdempotency:
    def test_same_project_keeps_one_idea(self, db):
        service = IdeaProcessingService(ScriptedCompletionClient(stage_texts()))
        first = _run(service, db, make_request())
        second = _run(service, db, make_request(description="A second take on the collaborative tool for remote engineering teams."))

        assert first.idea_id == second.idea_id
        assert db.query(SaasIdea).filter(SaasIdea.project_id == PROJECT_ID).count() == 1

    def test_features_replaced_not_merged(self, db):
        _run(IdeaProcessingService(ScriptedCompletionClient(stage_texts())), db, make_request())
        prose = ["still no json"]
        _run(IdeaProcessingService(ScriptedCompletionClient(prose)), db, make_request())

        stored = db.query(Feature).filter(Feature.project_id == PROJECT_ID).all()
        assert [f.name for f in stored] == ["Core Functionality"]


class TestFailures:
    def test_invalid_project_id_makes_no_calls(self, db):
        client = ScriptedCompletionClient(stage_texts())
        with pytest.raises(InvalidProjectIdError):
            _run(IdeaProcessingService(client), db, make_request(project_id="not-an-id"))
        assert client.calls == []
        assert db.query(SaasIdea).count() == 0

    @pytest.mark.parametrize(
        "project_id",
        [
            "0x7f1f77bcf86cd799439011",
            "+07f1f77bcf86cd799439011",
            "507f_f77bcf86cd799439011",
            " 07f1f77bcf86cd799439011",
            "507f1f77bcf86cd79943901g",
        ],
    )
    def test_non_hex_ids_fail_before_any_call(self, db, project_id):
        assert len(project_id) == 24
        client = ScriptedCompletionClient(stage_texts())
        with pytest.raises(InvalidProjectIdError):
            _run(IdeaProcessingService(client), db, make_request(project_id=project_id))
        assert client.calls == []
        assert db.query(SaasIdea).count() == 0

    def test_invalid_id_is_a_processing_error(self):
        assert issubclass(InvalidProjectIdError, IdeaProcessingError)

    def test_provider_failure_aborts(self, db):
        client = ScriptedCompletionClient(stage_texts(), fail_on=1)
        with pytest.raises(IdeaProcessingError) as excinfo:
            _run(IdeaProcessingService(client), db, make_request())

        assert str(excinfo.value).startswith("Idea processing failed:")
        assert "upstream unavailable" in str(excinfo.value)
        assert len(client.calls) == 2
        # the idea is saved up front, nothing downstream is
        assert db.query(SaasIdea).count() == 1
        assert db.query(IdeaValidation).count() == 0
        assert db.query(Feature).count() == 0
        assert db.query(TechStackRecommendation).count() == 0


class TestConcurrency:
    def test_same_project_runs_are_serialised(self, session_factory, db):
        client = ScriptedCompletionClient(stage_texts(), delay=0.01)
        service = IdeaProcessingService(client)
        first_db, second_db = session_factory(), session_factory()

        async def both():
            return await asyncio.gather(
                service.process_idea(first_db, make_request()),
                service.process_idea(second_db, make_request()),
            )

        try:
            first, second = asyncio.run(both())
        finally:
            first_db.close()
            second_db.close()

        assert client.max_in_flight == 1
        assert first.idea_id == second.idea_id
        assert service._project_locks == {}
        assert db.query(Feature).filter(Feature.project_id == PROJECT_ID).count() == 4

    def test_different_projects_run_in_parallel(self, session_factory, db):
        client = ScriptedCompletionClient(stage_texts(), delay=0.01)
        service = IdeaProcessingService(client)
        first_db, second_db = session_factory(), session_factory()

        async def both():
            return await asyncio.gather(
                service.process_idea(first_db, make_request()),
                service.process_idea(second_db, make_request(project_id=OTHER_PROJECT_ID)),
            )

        try:
            first, second = asyncio.run(both())
        finally:
            first_db.close()
            second_db.close()

        assert client.max_in_flight == 2
        assert first.idea_id != second.idea_id
        assert service._project_locks == {}


class TestUsageTotals:
    def test_fold_is_immutable(self):
        start = UsageTotals()
        marked = start.mark("idea_saved")
        assert start.steps == ()
        assert marked.steps == ("idea_saved",)


class TestLockRegistry:
    def test_lock_released_after_failure(self, db):
        service = IdeaProcessingService(ScriptedCompletionClient(stage_texts(), fail_on=0))
        with pytest.raises(IdeaProcessingError):
            _run(service, db, make_request())
        assert service._project_locks == {}

    def test_no_entry_kept_per_processed_project(self, db):
        service = IdeaProcessingService(ScriptedCompletionClient(stage_texts()))
        _run(service, db, make_request())
        _run(service, db, make_request(project_id=OTHER_PROJECT_ID))
        assert service._project_locks == {}
