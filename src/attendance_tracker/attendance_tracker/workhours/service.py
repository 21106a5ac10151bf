from __future__ import annotations

import logging
from typing import Optional

from ..users.department_repository import DepartmentRepository
from ..users.repository import UserRepository
from .model import WorkHours

logger = logging.getLogger(__name__)


class WorkHoursResolver:
    """Resolve the cutoffs that apply to a user.

    A department may override either boundary; whatever it leaves unset falls
    back to the configured defaults.
    """

    def __init__(
        self,
        users: UserRepository,
        departments: DepartmentRepository,
        *,
        default: Optional[WorkHours] = None,
    ):
        self._users = users
        self._departments = departments
        self._default = default or WorkHours()

    @property
    def default(self) -> WorkHours:
        return self._default

    def for_user(self, user_id: int) -> WorkHours:
        user = self._users.get_by_id(user_id)
        if not user or not user.dept_id:
            return self._default

        dept = self._departments.get_by_id(user.dept_id)
        if not dept:
            logger.warning("User %s points at missing department %s", user_id, user.dept_id)
            return self._default

        return WorkHours(
            start_time=dept.start_time or self._default.start_time,
            end_time=dept.end_time or self._default.end_time,
        )
