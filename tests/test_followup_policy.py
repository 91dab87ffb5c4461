"""
Unit tests for the follow-up policy.
"""
import random
from unittest.mock import MagicMock

import pytest

from interview_engine.core.followup_policy import FollowUpPolicy
from interview_engine.models.evaluation import AnswerEvaluation


def _evaluation(should_follow_up=True, reason="Vague about caching"):
    return AnswerEvaluation(
        score=60,
        should_ask_follow_up=should_follow_up,
        follow_up_reason=reason,
        ai_model="gpt-4o",
    )


class TestFollowUpPolicy:
    """Tests for FollowUpPolicy.decide."""

    def test_rejects_out_of_range_probability(self):
        with pytest.raises(ValueError):
            FollowUpPolicy(probability=1.5)
        with pytest.raises(ValueError):
            FollowUpPolicy(probability=-0.1)

    def test_no_signal_never_follows_up(self):
        policy = FollowUpPolicy(probability=1.0)
        decision = policy.decide(_evaluation(should_follow_up=False))
        assert decision.should_follow_up is False

    def test_missing_evaluation_never_follows_up(self):
        assert FollowUpPolicy(probability=1.0).decide(None).should_follow_up is False

    def test_skipped_evaluation_never_follows_up(self):
        skipped = AnswerEvaluation.skipped()
        skipped.should_ask_follow_up = True
        assert FollowUpPolicy(probability=1.0).decide(skipped).should_follow_up is False

    def test_certain_gate_passes_reason_through(self):
        decision = FollowUpPolicy(probability=1.0).decide(_evaluation())
        assert decision.should_follow_up is True
        assert decision.reason == "Vague about caching"

    def test_closed_gate_blocks_signal(self):
        decision = FollowUpPolicy(probability=0.0).decide(_evaluation())
        assert decision.should_follow_up is False

    def test_gate_uses_random_draw(self):
        rng = MagicMock()
        rng.random.side_effect = [0.1, 0.5]
        policy = FollowUpPolicy(probability=0.3, rng=rng)

        assert policy.decide(_evaluation()).should_follow_up is True
        assert policy.decide(_evaluation()).should_follow_up is False

    def test_follow_up_rate_is_bounded(self):
        policy = FollowUpPolicy(probability=0.3, rng=random.Random(1234))
        hits = sum(policy.decide(_evaluation()).should_follow_up for _ in range(2000))
        assert 450 < hits < 750
