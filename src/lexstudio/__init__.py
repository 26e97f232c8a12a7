"""
Drafting assistant for labour-law practices: petitions from case documents,
social-media posts with generated images and long-form legal queries.
"""

from .llm import GeminiClient, GenerationClient, StaticGenerationClient
from .petitions import PetitionService
from .posts import PostService
from .queries import QueryService

__version__ = "0.1.0"

__all__ = [
    "GeminiClient",
    "GenerationClient",
    "StaticGenerationClient",
    "PetitionService",
    "PostService",
    "QueryService",
]
