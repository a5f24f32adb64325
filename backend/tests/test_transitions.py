import pytest

from app.interview.transitions import TransitionPolicy, should_advance


@pytest.mark.parametrize(
    "utterance, reply",
    [
        ("Can we move on?", ""),
        ("NEXT QUESTION please", ""),
        ("I’m done with this one", ""),
        ("let's SKIP this", "Sure."),
        ("", "Great job, well done!"),
        ("", "That is the OPTIMAL SOLUTION."),
    ],
)
def test_should_advance_fires_on_either_trigger_set(utterance, reply):
    assert should_advance(utterance, reply) is True


def test_should_advance_ignores_ordinary_turns():
    assert should_advance("I like arrays", "Let's continue") is False
    assert should_advance("I would use a hash map to solve this in O(n) time", "What is the space complexity?") is False


def test_trigger_sets_are_not_swapped():
    # praise from the candidate does not count, a skip from the interviewer does not count
    assert should_advance("well done me", "") is False
    assert should_advance("", "we could skip the sorting step") is False


def test_custom_policy_replaces_phrase_sets():
    policy = TransitionPolicy(candidate_phrases=("pass",), interviewer_phrases=())
    assert policy.should_advance("I'll pass on this", "") is True
    assert policy.should_advance("next question", "great job") is False
