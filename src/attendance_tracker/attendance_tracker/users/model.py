from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object; no DB access lives here.
    """

    user_id: int
    full_name: str
    email: str
    password_hash: str
    role: Role
    dept_id: Optional[int]
    registration_id: Optional[str] = None
    is_active: bool = True
