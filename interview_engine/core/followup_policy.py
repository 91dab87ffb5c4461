"""
Follow-up policy.

Forwards the evaluator's follow-up signal through a probabilistic gate so
follow-up frequency stays bounded. The orchestrator accepts any object
with a compatible ``decide`` method.
"""

import logging
import random
from typing import Protocol

from interview_engine.models.evaluation import AnswerEvaluation
from interview_engine.models.question import FollowUpDecision

logger = logging.getLogger(__name__)


class FollowUpGate(Protocol):
    def decide(self, evaluation: AnswerEvaluation | None) -> FollowUpDecision: ...


class FollowUpPolicy:
    """Evaluator signal gated by a configurable random draw."""

    def __init__(self, probability: float = 0.3, rng: random.Random | None = None):
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"Follow-up probability must be within [0, 1], got {probability}")
        self.probability = probability
        self.rng = rng or random.Random()

    def decide(self, evaluation: AnswerEvaluation | None) -> FollowUpDecision:
        """
        Decide whether the answer just evaluated deserves a follow-up.

        Skipped questions (no AI evaluation) never do.
        """
        if evaluation is None or evaluation.is_synthetic or not evaluation.should_ask_follow_up:
            return FollowUpDecision(should_follow_up=False)

        if self.rng.random() >= self.probability:
            logger.debug("Evaluator requested a follow-up but the gate declined")
            return FollowUpDecision(should_follow_up=False)

        return FollowUpDecision(
            should_follow_up=True,
            reason=evaluation.follow_up_reason,
        )
