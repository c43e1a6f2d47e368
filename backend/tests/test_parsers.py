"""Stage parsers — fallbacks on unparseable text, field-level defaults otherwise."""

import json

import pytest

from conftest import BUSINESS_ANALYSIS, FEATURE_GENERATION, MARKET_VALIDATION, TECH_STACK

from saas_blueprint.agents.idea_processing.parsers import (
    parse_business_analysis,
    parse_feature_generation,
    parse_market_validation,
    parse_tech_stack,
)

PROSE = "I'm sorry, I can't provide that analysis in JSON right now."


class TestBusinessAnalysis:
    def test_well_formed(self):
        result, used_fallback = parse_business_analysis(json.dumps(BUSINESS_ANALYSIS))
        assert not used_fallback
        assert result.viability_score == 78
        assert result.competitive_landscape.competition_level == "High"
        assert result.competitive_landscape.differentiation[0] == "AI task prioritisation"

    def test_prose_uses_fallback(self):
        result, used_fallback = parse_business_analysis(PROSE)
        assert used_fallback
        assert result.business_model_type == "B2B"
        assert result.revenue_model == "Subscription"
        assert result.viability_score == 50
        assert result.confidence_score == 50
        assert result.competitive_landscape.differentiation == ["AI-powered features", "User-friendly interface"]

    def test_fenced_json_with_prose(self):
        raw = "Here is the analysis:\n```json\n" + json.dumps(BUSINESS_ANALYSIS) + "\n```\nHope it helps!"
        result, used_fallback = parse_business_analysis(raw)
        assert not used_fallback
        assert result.confidence_score == 88

    def test_partial_object_degrades_per_field(self):
        raw = json.dumps({"businessModelType": "Franchise", "viabilityScore": "71", "competitiveLandscape": {}})
        result, used_fallback = parse_business_analysis(raw)
        assert not used_fallback
        assert result.business_model_type == "B2B"
        assert result.viability_score == 71
        assert result.scalability_score == 0
        assert result.competitive_landscape.competition_level == "Medium"
        assert result.competitive_landscape.market_saturation == 50
        assert result.competitive_landscape.differentiation == []

    def test_scores_are_clamped(self):
        raw = json.dumps({"viabilityScore": 140, "scalabilityScore": -10, "confidenceScore": 66.5})
        result, _ = parse_business_analysis(raw)
        assert result.viability_score == 100
        assert result.scalability_score == 0
        assert result.confidence_score == 67

    def test_array_or_unrelated_object_uses_fallback(self):
        assert parse_business_analysis("[1, 2, 3]")[1]
        assert parse_business_analysis('{"answer": "maybe"}')[1]


class TestMarketValidation:
    def test_well_formed(self):
        result, used_fallback = parse_market_validation(json.dumps(MARKET_VALIDATION))
        assert not used_fallback
        assert "project management" in result.market_size.tam
        assert result.risk_assessment.competitive_risks == ["Incumbents bundling features"]

    def test_prose_uses_fallback(self):
        result, used_fallback = parse_market_validation(PROSE)
        assert used_fallback
        assert result.validation_score == 50
        assert result.market_size.tam == "Market size analysis unavailable"
        assert result.target_audience_analysis.primary_segment == "Business professionals"
        assert result.risk_assessment.financial_risks == ["Funding requirements"]

    def test_missing_fields_take_defaults(self):
        result, used_fallback = parse_market_validation(json.dumps({"validationScore": 61}))
        assert not used_fallback
        assert result.market_size.sam == "Not determined"
        assert result.target_audience_analysis.primary_segment == "Not specified"
        assert result.target_audience_analysis.willingness_to_pay == "Not determined"
        assert result.target_audience_analysis.pain_points == []


class TestFeatureGeneration:
    def test_well_formed(self):
        result, used_fallback = parse_feature_generation(json.dumps(FEATURE_GENERATION))
        assert not used_fallback
        assert [f.name for f in result.mvp_features] == ["Task Board", "Time Tracking"]
        assert result.advanced_features[0].effort == "XL"
        assert result.feature_roadmap.phase2 == ["Slack Integration"]

    def test_prose_uses_single_mvp_feature(self):
        result, used_fallback = parse_feature_generation(PROSE)
        assert used_fallback
        assert len(result.mvp_features) == 1
        assert result.mvp_features[0].name == "Core Functionality"
        assert result.mvp_features[0].priority == 10
        assert result.growth_features == []
        assert result.feature_roadmap.phase1 == ["Core Functionality"]

    def test_item_defaults_and_drops(self):
        raw = json.dumps(
            {
                "mvpFeatures": [
                    {"name": "Login", "priority": 42, "effort": "huge"},
                    {"description": "no name"},
                    "not an object",
                    {"name": "Search", "priority": "high"},
                ]
            }
        )
        result, _ = parse_feature_generation(raw)
        assert [f.name for f in result.mvp_features] == ["Login", "Search"]
        login, search = result.mvp_features
        assert login.priority == 10
        assert login.effort == "M"
        assert search.priority == 5

    @pytest.mark.parametrize("priority", ["NaN", "Infinity", "-Infinity", "1e999"])
    def test_non_finite_priority_string_takes_default(self, priority):
        raw = json.dumps({"mvpFeatures": [{"name": "Export", "priority": priority}]})
        result, used_fallback = parse_feature_generation(raw)
        assert not used_fallback
        assert result.mvp_features[0].priority == 5

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity", "1e999"])
    def test_non_finite_priority_literal_takes_default(self, literal):
        raw = '{"mvpFeatures": [{"name": "Export", "priority": ' + literal + "}]}"
        result, _ = parse_feature_generation(raw)
        assert result.mvp_features[0].priority == 5

    def test_non_finite_scores_take_defaults(self):
        raw = '{"viabilityScore": NaN, "confidenceScore": Infinity, "competitiveLandscape": {"marketSaturation": "NaN"}}'
        result, used_fallback = parse_business_analysis(raw)
        assert not used_fallback
        assert result.viability_score == 0
        assert result.confidence_score == 0
        assert result.competitive_landscape.market_saturation == 50


class TestTechStack:
    def test_well_formed(self):
        result, used_fallback = parse_tech_stack(json.dumps(TECH_STACK))
        assert not used_fallback
        assert result.backend.primary == "Node.js"
        assert result.third_party_services.primary == "Stripe"

    def test_prose_uses_fallback(self):
        result, used_fallback = parse_tech_stack(PROSE)
        assert used_fallback
        assert result.frontend.primary == "React"
        assert result.third_party_services.primary == "Auth0"
        assert result.estimated_costs.development == "$50,000 - $150,000 for MVP"

    def test_missing_component_is_blank(self):
        result, _ = parse_tech_stack(json.dumps({"frontend": {"primary": "Svelte"}}))
        assert result.frontend.primary == "Svelte"
        assert result.backend.primary == ""
        assert result.estimated_costs.monthly == "Not estimated"

    def test_fallbacks_are_fresh_objects(self):
        first, _ = parse_tech_stack(PROSE)
        first.frontend.alternatives.append("Mutated")
        second, _ = parse_tech_stack(PROSE)
        assert second.frontend.alternatives == ["Vue.js", "Angular"]
