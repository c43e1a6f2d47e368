"""Shared fixtures: scripted completion client, sample stage responses, test database."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("APP_ENV", "test")

import asyncio
import json

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from saas_blueprint.database import Base
from saas_blueprint.models import Project
from saas_blueprint.schemas.idea_processing_schema import IdeaProcessingRequest
from saas_blueprint.services.openai_client import CompletionError, CompletionResult

PROJECT_ID = "507f1f77bcf86cd799439011"
OTHER_PROJECT_ID = "507f1f77bcf86cd799439022"

# ---------------------------------------------------------------------------
# Sample stage responses (the documented JSON shapes)
# ---------------------------------------------------------------------------
BUSINESS_ANALYSIS = {
    "businessModelType": "B2B",
    "revenueModel": "Subscription",
    "viabilityScore": 78,
    "scalabilityScore": 82,
    "competitiveLandscape": {
        "competitionLevel": "High",
        "marketSaturation": 65,
        "differentiation": ["AI task prioritisation", "Native time tracking", "Flat pricing"],
    },
    "confidenceScore": 88,
    "reasoning": {"businessModelJustification": "Teams buy collaboration tools."},
}

MARKET_VALIDATION = {
    "marketSize": {
        "tam": "$6.7B global project management software market",
        "sam": "$1.2B SMB segment",
        "som": "$24M in 3 years",
    },
    "targetAudienceAnalysis": {
        "primarySegment": "Remote software teams of 5-50 people",
        "secondarySegments": ["Agencies", "Freelancers"],
        "painPoints": ["Scattered tasks", "Missed deadlines"],
        "willingnessToPay": "$8-15 per seat per month",
        "acquisitionChannels": ["Content marketing", "Product Hunt"],
    },
    "riskAssessment": {
        "marketRisks": ["Crowded market"],
        "technicalRisks": ["Realtime sync complexity"],
        "financialRisks": ["Long payback period"],
        "competitiveRisks": ["Incumbents bundling features"],
    },
    "validationScore": 82,
}

FEATURE_GENERATION = {
    "mvpFeatures": [
        {
            "name": "Task Board",
            "description": "Kanban board for team tasks",
            "userStory": "As a team lead, I want a board so that I can see progress",
            "priority": 10,
            "effort": "L",
            "dependencies": [],
            "successMetrics": ["Weekly active boards"],
        },
        {
            "name": "Time Tracking",
            "description": "Per-task timers",
            "userStory": "As a developer, I want timers so that I can log hours",
            "priority": 7,
            "effort": "M",
            "dependencies": ["Task Board"],
            "successMetrics": ["Hours logged"],
        },
    ],
    "growthFeatures": [
        {
            "name": "Slack Integration",
            "description": "Notifications in Slack",
            "userStory": "As a member, I want Slack alerts so that I stay informed",
            "priority": 5,
            "effort": "S",
            "dependencies": [],
            "successMetrics": ["Connected workspaces"],
        }
    ],
    "advancedFeatures": [
        {
            "name": "AI Planning",
            "description": "Suggests sprint plans",
            "userStory": "As a lead, I want suggested sprints so that planning is faster",
            "priority": 3,
            "effort": "XL",
            "dependencies": ["Task Board"],
            "successMetrics": ["Plans accepted"],
        }
    ],
    "featureRoadmap": {
        "phase1": ["Task Board", "Time Tracking"],
        "phase2": ["Slack Integration"],
        "phase3": ["AI Planning"],
    },
}

TECH_STACK = {
    "frontend": {
        "primary": "React",
        "alternatives": ["Vue.js", "Svelte"],
        "reasoning": "Requested by the team",
        "pros": ["Ecosystem"],
        "cons": ["Boilerplate"],
    },
    "backend": {
        "primary": "Node.js",
        "alternatives": ["Go", "Python"],
        "reasoning": "Shared language with the frontend",
        "pros": ["Realtime support"],
        "cons": ["CPU-bound work"],
    },
    "database": {
        "primary": "PostgreSQL",
        "alternatives": ["MySQL"],
        "reasoning": "Relational task data",
        "pros": ["ACID"],
        "cons": ["Ops overhead"],
    },
    "infrastructure": {
        "primary": "AWS",
        "alternatives": ["GCP"],
        "reasoning": "Managed services",
        "pros": ["Breadth"],
        "cons": ["Cost complexity"],
    },
    "thirdPartyServices": {
        "primary": "Stripe",
        "alternatives": ["Paddle"],
        "reasoning": "Billing",
        "pros": ["Developer experience"],
        "cons": ["Fees"],
    },
    "estimatedCosts": {
        "development": "$80,000 over 4 months",
        "monthly": "$900",
        "scaling": "$6,000 at 100x users",
    },
}


def stage_texts():
    """Raw completion text for the four stages, in pipeline order."""
    return [json.dumps(doc) for doc in (BUSINESS_ANALYSIS, MARKET_VALIDATION, FEATURE_GENERATION, TECH_STACK)]


# ---------------------------------------------------------------------------
# Scripted completion client
# ---------------------------------------------------------------------------
class ScriptedCompletionClient:
    """Returns canned texts in order and records every call."""

    def __init__(self, responses, fail_on=None, delay=0.0, cost=0.01, tokens=100):
        self.responses = list(responses)
        self.fail_on = fail_on
        self.delay = delay
        self.cost = cost
        self.tokens = tokens
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def complete(self, prompt, *, system_message=None, max_tokens=None, temperature=None, model=None):
        index = len(self.calls)
        self.calls.append(
            {
                "prompt": prompt,
                "system_message": system_message,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_on is not None and index == self.fail_on:
                raise CompletionError("api_error", "HTTP 500: upstream unavailable", can_retry=True)
        finally:
            self.in_flight -= 1
        return CompletionResult(
            content=self.responses[index % len(self.responses)],
            cost_usd=self.cost,
            tokens_used=self.tokens,
            processing_time_ms=1,
            model="gpt-3.5-turbo",
        )


def make_request(project_id=PROJECT_ID, **overrides):
    fields = {
        "project_id": project_id,
        "description": "A collaborative project management tool for remote software teams with time tracking.",
        "target_audience": "Remote software teams of 5-50 people",
        "problem_statement": "Remote teams lose track of tasks and deadlines across scattered tools.",
        "desired_features": ["A", "B"],
        "technical_preferences": ["React", "Node.js"],
    }
    fields.update(overrides)
    return IdeaProcessingRequest(**fields)


# ---------------------------------------------------------------------------
# Test database
# ---------------------------------------------------------------------------
TEST_DATABASE_URL = "sqlite:///./test_saas_blueprint.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session_factory():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    for project_id, name in ((PROJECT_ID, "TaskFlow"), (OTHER_PROJECT_ID, "Other")):
        session.add(Project(id=project_id, name=name, status="planning"))
    session.commit()
    try:
        yield session
    finally:
        session.close()
