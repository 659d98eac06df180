"""Onboarding session state machine and in-memory registry."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator, Optional

from modules.onboarding.questions import QUESTIONS, QuestionSpec, question_at
from modules.onboarding.validators import sanitize_input

log = logging.getLogger("learnerbot.onboarding.sessions")

UNKNOWN_CHANNEL = "Unknown"


def utc_now() -> datetime:
    """Return the current UTC timestamp."""

    return datetime.now(timezone.utc)


class SessionState(enum.Enum):
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    CLOSED = "closed"


_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.CREATED: frozenset({SessionState.IN_PROGRESS, SessionState.CLOSED}),
    SessionState.IN_PROGRESS: frozenset(
        {SessionState.IN_PROGRESS, SessionState.COMPLETE, SessionState.CLOSED}
    ),
    SessionState.COMPLETE: frozenset({SessionState.CLOSED}),
    SessionState.CLOSED: frozenset(),
}


class InvalidTransition(RuntimeError):
    def __init__(self, current: SessionState, target: SessionState) -> None:
        super().__init__(f"illegal session transition {current.value} -> {target.value}")
        self.current = current
        self.target = target


@dataclass
class OnboardingSession:
    user_id: int
    username: str
    guild_id: int
    channel_name: str = UNKNOWN_CHANNEL
    channel_id: Optional[int] = None
    step_index: int = 0
    data: Dict[str, str] = field(default_factory=dict)
    state: SessionState = SessionState.CREATED
    created_at: datetime = field(default_factory=utc_now)

    @property
    def started(self) -> bool:
        return self.state is not SessionState.CREATED

    @property
    def current_question(self) -> QuestionSpec | None:
        return question_at(self.step_index)

    def transition(self, target: SessionState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransition(self.state, target)
        self.state = target


@dataclass(frozen=True)
class StepOutcome:
    """Result of feeding one DM into a session.

    ``reply`` is the text to send back (``None`` means stay silent).
    """

    reply: Optional[str] = None
    accepted: bool = False
    completed: bool = False


IGNORED = StepOutcome()


def start(session: OnboardingSession) -> str:
    """Move a fresh session into the question loop and return the first prompt."""

    # IN_PROGRESS -> IN_PROGRESS is an answer edge, not a second start.
    if session.state is not SessionState.CREATED:
        raise InvalidTransition(session.state, SessionState.IN_PROGRESS)
    session.transition(SessionState.IN_PROGRESS)
    question = session.current_question
    assert question is not None
    return question.prompt


def advance(session: OnboardingSession, raw_text: str) -> StepOutcome:
    """Validate ``raw_text`` against the current question and move forward.

    Messages arriving before the start button, or after the last answer, are
    ignored without touching the session.
    """

    if session.state is not SessionState.IN_PROGRESS:
        return IGNORED
    question = session.current_question
    if question is None:
        return IGNORED

    value = sanitize_input(raw_text)
    if not question.validator(value):
        return StepOutcome(reply=question.error)

    session.data[question.key] = value
    session.step_index += 1
    log.debug("answer accepted", extra={"user_id": session.user_id, "field": question.key})

    following = session.current_question
    if following is not None:
        session.transition(SessionState.IN_PROGRESS)
        return StepOutcome(reply=following.prompt, accepted=True)

    session.transition(SessionState.COMPLETE)
    return StepOutcome(accepted=True, completed=True)


class SessionStore:
    """In-memory registry of in-flight onboarding sessions keyed by user id."""

    def __init__(self) -> None:
        self._sessions: Dict[int, OnboardingSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions

    def __iter__(self) -> Iterator[OnboardingSession]:
        return iter(list(self._sessions.values()))

    def get(self, user_id: int) -> OnboardingSession | None:
        return self._sessions.get(user_id)

    def create(
        self,
        *,
        user_id: int,
        username: str,
        guild_id: int,
        channel_name: str = UNKNOWN_CHANNEL,
        channel_id: Optional[int] = None,
    ) -> OnboardingSession:
        """Create a session, replacing any earlier one for the same user."""

        previous = self._sessions.get(user_id)
        if previous is not None:
            log.info("replacing existing onboarding session", extra={"user_id": user_id})
        session = OnboardingSession(
            user_id=user_id,
            username=username,
            guild_id=guild_id,
            channel_name=channel_name or UNKNOWN_CHANNEL,
            channel_id=channel_id,
        )
        self._sessions[user_id] = session
        return session

    def discard(
        self, user_id: int, *, expected: OnboardingSession | None = None
    ) -> OnboardingSession | None:
        """Remove the session for ``user_id`` and mark it closed.

        With ``expected``, only that exact session is closed; a newer session
        registered for the same user in the meantime stays in the store.
        """

        if expected is not None and self._sessions.get(user_id) is not expected:
            session: OnboardingSession | None = expected
        else:
            session = self._sessions.pop(user_id, None)
        if session is not None and session.state is not SessionState.CLOSED:
            session.transition(SessionState.CLOSED)
        return session

    def expire(self, older_than: timedelta, *, now: datetime | None = None) -> list[OnboardingSession]:
        """Drop sessions created more than ``older_than`` ago."""

        cutoff = (now or utc_now()) - older_than
        stale = [s.user_id for s in self._sessions.values() if s.created_at < cutoff]
        return [session for uid in stale if (session := self.discard(uid)) is not None]


__all__ = [
    "IGNORED",
    "InvalidTransition",
    "OnboardingSession",
    "QUESTIONS",
    "SessionState",
    "SessionStore",
    "StepOutcome",
    "UNKNOWN_CHANNEL",
    "advance",
    "start",
    "utc_now",
]
