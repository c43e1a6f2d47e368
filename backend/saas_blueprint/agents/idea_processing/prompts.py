"""Prompt templates for the four idea-processing stages.

Each stage has a fixed system instruction (role + exact JSON output
schema) and a user-prompt builder that embeds the idea fields plus a
truncated excerpt of the previous stage's raw output.
"""

from __future__ import annotations

from typing import List, Optional

from ...constants import NOT_SPECIFIED
from ...schemas.idea_processing_schema import IdeaProcessingRequest


def join_or_not_specified(items: Optional[List[str]]) -> str:
    """Render an optional list for a prompt; missing or empty → "Not specified"."""
    if not items:
        return NOT_SPECIFIED
    return ", ".join(items)


# ── Stage 1: business analysis ───────────────────────────────────────────

BUSINESS_ANALYSIS_SYSTEM = """\
You are an expert business strategist and SaaS consultant with 15+ years of experience analyzing technology startups. Your task is to perform a comprehensive business model analysis.

Analyze the business model considering:
1. Business Model Type (B2B, B2C, B2B2C, Marketplace, Platform)
2. Revenue Model (Subscription, Freemium, Usage-Based, One-Time, Hybrid)
3. Viability Score (0-100 based on market demand, execution complexity, revenue potential)
4. Scalability Score (0-100 based on technical scalability and business model scaling)
5. Competitive Landscape (competition level, market saturation, differentiation opportunities)

Provide response in this exact JSON format:
{
  "businessModelType": "B2B|B2C|B2B2C|Marketplace|Platform",
  "revenueModel": "Subscription|Freemium|Usage-Based|One-Time|Hybrid",
  "viabilityScore": number,
  "scalabilityScore": number,
  "competitiveLandscape": {
    "competitionLevel": "Low|Medium|High",
    "marketSaturation": number,
    "differentiation": ["point1", "point2", "point3"]
  },
  "confidenceScore": number,
  "reasoning": {
    "businessModelJustification": "detailed explanation",
    "revenueModelRationale": "detailed explanation",
    "viabilityFactors": ["factor1", "factor2", "factor3"],
    "scalabilityFactors": ["factor1", "factor2", "factor3"],
    "competitiveAdvantages": ["advantage1", "advantage2"],
    "potentialChallenges": ["challenge1", "challenge2"]
  }
}"""


def build_business_analysis_system(context: str) -> str:
    return BUSINESS_ANALYSIS_SYSTEM


def build_business_analysis_prompt(request: IdeaProcessingRequest, context: str) -> str:
    return f"""Analyze this SaaS business idea:

**Description:** {request.description}

**Target Audience:** {request.target_audience}

**Problem Statement:** {request.problem_statement}

**Desired Features:** {join_or_not_specified(request.desired_features)}

**Technical Preferences:** {join_or_not_specified(request.technical_preferences)}

Provide a comprehensive business model analysis with confidence scores and detailed reasoning."""


# ── Stage 2: market validation ───────────────────────────────────────────

def build_market_validation_system(context: str) -> str:
    return f"""\
You are a senior market research analyst and venture capital partner specializing in SaaS market validation. Your expertise includes market sizing, competitive analysis, and customer segmentation.

Perform comprehensive market validation including:
1. Market Size Analysis (TAM, SAM, SOM estimates)
2. Target Audience Deep Dive (segments, pain points, willingness to pay)
3. Risk Assessment (market, technical, financial, competitive risks)
4. Validation Score (0-100 based on market opportunity and execution feasibility)

Consider the business analysis context: {context[:500]}

Provide response in this exact JSON format:
{{
  "marketSize": {{
    "tam": "Total Addressable Market estimate",
    "sam": "Serviceable Addressable Market estimate",
    "som": "Serviceable Obtainable Market estimate"
  }},
  "targetAudienceAnalysis": {{
    "primarySegment": "detailed description",
    "secondarySegments": ["segment1", "segment2"],
    "painPoints": ["pain1", "pain2", "pain3"],
    "willingnessToPay": "price range and justification",
    "acquisitionChannels": ["channel1", "channel2", "channel3"]
  }},
  "riskAssessment": {{
    "marketRisks": ["risk1", "risk2"],
    "technicalRisks": ["risk1", "risk2"],
    "financialRisks": ["risk1", "risk2"],
    "competitiveRisks": ["risk1", "risk2"]
  }},
  "validationScore": number,
  "keyInsights": ["insight1", "insight2", "insight3"],
  "recommendations": ["recommendation1", "recommendation2", "recommendation3"]
}}"""


def build_market_validation_prompt(request: IdeaProcessingRequest, context: str) -> str:
    return f"""Validate the market opportunity for this SaaS idea:

**Description:** {request.description}

**Target Audience:** {request.target_audience}

**Problem Statement:** {request.problem_statement}

**Desired Features:** {join_or_not_specified(request.desired_features)}

**Business Context:** {context[:300]}

Provide comprehensive market validation with specific data points and actionable insights."""


# ── Stage 3: feature generation ──────────────────────────────────────────

def build_feature_generation_system(context: str) -> str:
    return f"""\
You are a senior product manager with extensive experience in SaaS product development and feature prioritization. You excel at breaking down complex ideas into actionable feature sets.

Generate a comprehensive feature roadmap with:
1. MVP Features (essential for initial launch)
2. Growth Features (drive user acquisition and retention)
3. Advanced Features (market leadership and differentiation)
4. Feature Roadmap (phased implementation timeline)

For each feature include: name, description, user story, priority (1-10), effort (S/M/L/XL), dependencies, success metrics.

Consider business context: {context[:400]}

Provide response in this exact JSON format:
{{
  "mvpFeatures": [
    {{
      "name": "feature name",
      "description": "detailed description",
      "userStory": "As a [user], I want [goal] so that [benefit]",
      "priority": number,
      "effort": "S|M|L|XL",
      "dependencies": ["dependency1", "dependency2"],
      "successMetrics": ["metric1", "metric2"]
    }}
  ],
  "growthFeatures": [...],
  "advancedFeatures": [...],
  "featureRoadmap": {{
    "phase1": ["MVP feature names for 0-3 months"],
    "phase2": ["Growth feature names for 3-12 months"],
    "phase3": ["Advanced feature names for 12+ months"]
  }},
  "developmentGuidance": {{
    "mvpTimeline": "estimated timeline",
    "keyMilestones": ["milestone1", "milestone2"],
    "riskFactors": ["risk1", "risk2"],
    "successCriteria": ["criteria1", "criteria2"]
  }}
}}"""


def build_feature_generation_prompt(request: IdeaProcessingRequest, context: str) -> str:
    return f"""Generate features for this SaaS idea:

**Description:** {request.description}

**Target Audience:** {request.target_audience}

**Problem Statement:** {request.problem_statement}

**Desired Features:** {join_or_not_specified(request.desired_features)}

**Business Context:** {context[:300]}

Create a comprehensive feature roadmap with clear priorities and implementation guidance."""


# ── Stage 4: tech stack ──────────────────────────────────────────────────

def build_tech_stack_system(context: str) -> str:
    return f"""\
You are a senior technical architect and CTO with 15+ years of experience building scalable SaaS platforms. You specialize in technology selection, architecture design, and cost optimization.

Recommend a comprehensive tech stack considering:
1. Frontend Technologies (framework, UI libraries, state management)
2. Backend Technologies (runtime, framework, databases, APIs)
3. Infrastructure (hosting, CDN, monitoring, security)
4. Third-party Services (auth, payments, analytics, communication)
5. Cost Estimates (development, monthly operations, scaling costs)

Consider features context: {context[:400]}

Provide response in this exact JSON format:
{{
  "frontend": {{
    "primary": "main technology",
    "alternatives": ["alt1", "alt2"],
    "reasoning": "detailed explanation",
    "pros": ["pro1", "pro2"],
    "cons": ["con1", "con2"]
  }},
  "backend": {{...}},
  "database": {{...}},
  "infrastructure": {{...}},
  "thirdPartyServices": {{...}},
  "estimatedCosts": {{
    "development": "cost range and timeline",
    "monthly": "monthly operational costs",
    "scaling": "costs at scale (10x, 100x users)"
  }},
  "architectureRecommendations": {{
    "scalabilityConsiderations": ["consideration1", "consideration2"],
    "securityRequirements": ["requirement1", "requirement2"],
    "performanceOptimizations": ["optimization1", "optimization2"],
    "futureProofing": ["strategy1", "strategy2"]
  }}
}}"""


def build_tech_stack_prompt(request: IdeaProcessingRequest, context: str) -> str:
    return f"""Recommend a tech stack for this SaaS idea:

**Description:** {request.description}

**Target Audience:** {request.target_audience}

**Technical Preferences:** {join_or_not_specified(request.technical_preferences)}

**Key Features Context:** {context[:400]}

Provide detailed technology recommendations with cost analysis and architecture guidance."""
