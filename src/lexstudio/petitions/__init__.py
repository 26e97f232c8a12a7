"""
Petition drafting (prompt composition + generation + QA).
"""

from .generator import PetitionDraft, PetitionService, default_petition_title
from .prompts import PromptPlan, SkeletonPlan, TemplatePlan, compose_petition_prompt, plan_petition

__all__ = [
    "PetitionDraft",
    "PetitionService",
    "default_petition_title",
    "PromptPlan",
    "SkeletonPlan",
    "TemplatePlan",
    "compose_petition_prompt",
    "plan_petition",
]
