"""
Audit Service
Best-effort trail of role changes: always logged, optionally persisted.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rolemask.config import get_settings
from rolemask.context import user_id_var
from rolemask.models.audit import AuditLog

audit_logger = logging.getLogger("rolemask_audit")
logger = logging.getLogger(__name__)


class AuditService:
    def __init__(self, session: Session, persist: Optional[bool] = None):
        self.session = session
        self.persist = get_settings().AUDIT_ENABLED if persist is None else persist

    def write(self, action: str, remark: str, *, category: str = "Role") -> None:
        """
        Record one auditable action.

        A failure to persist the row is logged and never reaches the caller.
        """
        user_id = user_id_var.get()
        entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "user_id": user_id,
            "category": category,
            "action": action,
            "remark": remark,
        }
        audit_logger.info(f"[AUDIT] {entry}")

        if not self.persist:
            return

        try:
            with self.session.begin_nested():
                self.session.add(
                    AuditLog(
                        user_id=user_id,
                        category=category,
                        action=action,
                        remark=remark,
                    )
                )
        except SQLAlchemyError as exc:
            logger.warning(f"Audit entry for {category}.{action} not persisted: {exc}")
