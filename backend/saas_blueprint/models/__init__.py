from .feature import Feature
from .idea_validation import IdeaValidation
from .project import Project
from .saas_idea import SaasIdea
from .tech_stack import TechStackRecommendation

__all__ = ["Feature", "IdeaValidation", "Project", "SaasIdea", "TechStackRecommendation"]
