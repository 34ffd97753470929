"""Interview continuation policy."""

from catalai.interview.controller import (
    InterviewController,
    InterviewPolicy,
    decide_interview_continuation,
)
from catalai.interview.state import InterviewDecision, InterviewState

__all__ = [
    "InterviewController",
    "InterviewDecision",
    "InterviewPolicy",
    "InterviewState",
    "decide_interview_continuation",
]
