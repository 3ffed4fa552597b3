from __future__ import annotations

"""
User x course interaction matrix for collaborative filtering.

The matrix is a derived snapshot: :func:`build_interaction_matrix` is a
pure function of the users and courses it is given, so it can be rebuilt
per request (or cached by the caller with its own invalidation policy)
without any hidden shared state.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from .config import MAX_INTERACTION_WEIGHT
from .models import Course, LearningHistoryEntry, UserProfile


def interaction_weight(entry: Optional[LearningHistoryEntry]) -> float:
    """Weight in ``[0, 2]`` for one history entry (0 when there is none).

    completed -> 1, in-progress -> progress/100, then scaled by
    rating/5 and by ``min(time_spent / 3600, 2)``.  The time factor is
    applied to the stored minute count as-is.
    """
    if entry is None:
        return 0.0
    weight = 0.0
    if entry.status == "completed":
        weight = 1.0
    elif entry.status == "in-progress":
        weight = entry.progress / 100.0
    if entry.rating:
        weight *= entry.rating / 5.0
    if entry.time_spent > 0:
        weight *= min(entry.time_spent / 3600.0, 2.0)
    return min(max(weight, 0.0), MAX_INTERACTION_WEIGHT)


@dataclass(frozen=True)
class InteractionMatrix:
    values: np.ndarray
    user_ids: List[str]
    course_ids: List[str]
    _user_pos: Dict[str, int] = field(default_factory=dict, repr=False, compare=False)

    @property
    def shape(self):
        return self.values.shape

    def user_index(self, user_id: str) -> Optional[int]:
        return self._user_pos.get(user_id)

    def row(self, user_id: str) -> Optional[np.ndarray]:
        idx = self.user_index(user_id)
        return None if idx is None else self.values[idx]


def build_interaction_matrix(users: Sequence[UserProfile], courses: Sequence[Course]) -> InteractionMatrix:
    course_pos = {c.id: j for j, c in enumerate(courses)}
    values = np.zeros((len(users), len(courses)), dtype="float64")
    for i, user in enumerate(users):
        for entry in user.learning_history:
            j = course_pos.get(entry.course_id)
            if j is not None:
                values[i, j] = interaction_weight(entry)
    user_ids = [u.id for u in users]
    return InteractionMatrix(
        values=values,
        user_ids=user_ids,
        course_ids=[c.id for c in courses],
        _user_pos={uid: i for i, uid in enumerate(user_ids)},
    )
