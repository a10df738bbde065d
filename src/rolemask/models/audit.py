from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from rolemask.models.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user_id = Column(Integer, nullable=True, index=True)

    category = Column(String(50), nullable=False, index=True)
    action = Column(String(50), nullable=False)
    remark = Column(Text, nullable=True)
