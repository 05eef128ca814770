"""
LLM services for Ledge: the completion client, relevance scoring,
article synthesis and interest extraction.
"""

from .client import LLMClient, CompletionClient, get_llm_client
from .relevance import RelevanceEngine, combine_goal, parse_quick_score, get_relevance_engine
from .synthesis import SynthesisService, repair_json

__all__ = [
    "LLMClient",
    "CompletionClient",
    "get_llm_client",
    "RelevanceEngine",
    "combine_goal",
    "parse_quick_score",
    "get_relevance_engine",
    "SynthesisService",
    "repair_json",
]
