"""Decides when an interview should move on to a new question.

Plain substring matching over two fixed phrase sets. This is a heuristic:
praise words such as "perfect" inside an otherwise ongoing explanation will
also fire a transition. Swap ``DEFAULT_TRANSITION_POLICY`` for a classifier
without touching the turn pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass

CANDIDATE_TRIGGERS = (
    "next question",
    "move on",
    "next problem",
    "different question",
    "another question",
    "skip",
    "done with this",
    "let's move on",
    "i'm done",
    "finished",
)

INTERVIEWER_TRIGGERS = (
    "great job",
    "correct solution",
    "well done",
    "perfect",
    "optimal solution",
)


def _normalize(text: str) -> str:
    return str(text or "").replace("’", "'").replace("‘", "'").lower()


@dataclass(frozen=True)
class TransitionPolicy:
    candidate_phrases: tuple[str, ...] = CANDIDATE_TRIGGERS
    interviewer_phrases: tuple[str, ...] = INTERVIEWER_TRIGGERS

    def should_advance(self, user_utterance: str, assistant_reply: str) -> bool:
        said = _normalize(user_utterance)
        replied = _normalize(assistant_reply)
        if any(phrase in said for phrase in self.candidate_phrases):
            return True
        return any(phrase in replied for phrase in self.interviewer_phrases)


DEFAULT_TRANSITION_POLICY = TransitionPolicy()


def should_advance(user_utterance: str, assistant_reply: str) -> bool:
    return DEFAULT_TRANSITION_POLICY.should_advance(user_utterance, assistant_reply)
