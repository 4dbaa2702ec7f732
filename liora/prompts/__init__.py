"""
AI prompt templates for Liora

Contains structured prompts for:
- Question polishing and closing remarks
- Investment memo prose
"""

from liora.prompts.interviewer import InterviewerPrompts
from liora.prompts.memo import MemoPrompts

__all__ = [
    "InterviewerPrompts",
    "MemoPrompts",
]
