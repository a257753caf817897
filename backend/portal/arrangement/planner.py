from __future__ import annotations

import math
from dataclasses import dataclass

from portal.core.exceptions import ArrangementValidationError


@dataclass(frozen=True)
class SessionRequirement:
    """How a course's class hours split into weekly sessions.

    All weeks carry `per_session` lessons except the chronologically last one,
    which carries `last_week_count` (the remainder, when there is one).
    """

    total: int
    per_session: int
    full_weeks: int
    remainder: int

    @property
    def required_weeks(self) -> int:
        return self.full_weeks + (1 if self.remainder > 0 else 0)

    @property
    def last_week_count(self) -> int:
        return self.remainder if self.remainder > 0 else self.per_session

    def target_for(self, position: int, selected_count: int) -> int:
        """Lesson target for the week at `position` among `selected_count` sorted weeks."""
        if self.remainder > 0 and position == selected_count - 1:
            return self.remainder
        return self.per_session


def plan_sessions(total_class_hours: int, per_session: int) -> SessionRequirement:
    if total_class_hours is None or total_class_hours <= 0:
        raise ArrangementValidationError("Total class hours must be a positive integer")
    if per_session is None or per_session <= 0:
        raise ArrangementValidationError("Lessons per session must be a positive integer")
    full_weeks = total_class_hours // per_session
    return SessionRequirement(
        total=total_class_hours,
        per_session=per_session,
        full_weeks=full_weeks,
        remainder=total_class_hours - full_weeks * per_session,
    )


def required_exam_capacity(headcount: int, multiplier: int) -> int:
    return max(0, headcount) * multiplier


def seats_per_room(capacity: int, multiplier: int) -> int:
    """Students seated in one exam room: every `multiplier`-th seat, rounded up."""
    if capacity <= 0:
        return 0
    return math.ceil(capacity / multiplier)
