from .idea_service import get_idea_for_project, upsert_idea
from .openai_client import CompletionError, CompletionResult, OpenAIClient, load_ai_settings

__all__ = [
    "get_idea_for_project",
    "upsert_idea",
    "CompletionError",
    "CompletionResult",
    "OpenAIClient",
    "load_ai_settings",
]
