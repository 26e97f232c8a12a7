from .generator import PostService
from .schema import PostContent, PostResult

__all__ = ["PostService", "PostContent", "PostResult"]
