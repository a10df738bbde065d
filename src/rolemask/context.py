from __future__ import annotations

from contextvars import ContextVar
from typing import Optional


user_id_var: ContextVar[Optional[int]] = ContextVar("user_id", default=None)
