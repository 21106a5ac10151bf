from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional


@dataclass(frozen=True)
class Department:
    dept_id: int
    name: str
    start_time: Optional[time] = None
    end_time: Optional[time] = None
