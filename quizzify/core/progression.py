"""Gamification rules applied to the user profile after each attempt."""

from __future__ import annotations

from dataclasses import replace
import logging

from quizzify.constants.quiz_constants import XP_PER_LEVEL, XP_PER_MARK
from quizzify.core.models import QuizAttempt, UserProfile
from quizzify.core.services.record_store import RecordStore

logger = logging.getLogger(__name__)


def level_for_xp(xp: int) -> int:
    return xp // XP_PER_LEVEL + 1


def progress_profile(profile: UserProfile, score: int) -> UserProfile:
    """Return a copy of ``profile`` with the rewards for ``score`` applied.

    The streak always grows by one; there is no calendar-based decay.
    """
    xp = profile.xp + score * XP_PER_MARK
    return replace(
        profile,
        xp=xp,
        level=level_for_xp(xp),
        streak=profile.streak + 1,
        badges=list(profile.badges),
    )


class ProfileProgressionUpdater:
    """Applies and persists progression for a completed attempt."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def apply(self, attempt: QuizAttempt) -> UserProfile:
        current = self._store.load_user()
        updated = progress_profile(current, attempt.score)
        self._store.save_user(updated)
        logger.info(
            "Profile %s progressed to %d XP (level %d, streak %d)",
            updated.id,
            updated.xp,
            updated.level,
            updated.streak,
        )
        return updated
