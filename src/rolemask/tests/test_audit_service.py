from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from rolemask.context import user_id_var
from rolemask.models.audit import AuditLog
from rolemask.models.base import Base
from rolemask.services.audit_service import AuditService


@pytest.fixture()
def session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine, tables=[AuditLog.__table__])
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def test_write_persists_entry_with_actor(session):
    token = user_id_var.set(42)
    try:
        AuditService(session, persist=True).write("delete", "Editors")
    finally:
        user_id_var.reset(token)

    entry = session.query(AuditLog).one()
    assert entry.category == "Role"
    assert entry.action == "delete"
    assert entry.remark == "Editors"
    assert entry.user_id == 42


def test_write_logs_without_persisting(session, caplog):
    with caplog.at_level(logging.INFO, logger="rolemask_audit"):
        AuditService(session, persist=False).write("create", "Editors")

    assert session.query(AuditLog).count() == 0
    assert "[AUDIT]" in caplog.text
    assert "Editors" in caplog.text


def test_write_survives_database_failure(caplog):
    session = MagicMock()
    session.begin_nested.side_effect = OperationalError("SAVEPOINT", {}, Exception("locked"))

    with caplog.at_level(logging.WARNING):
        AuditService(session, persist=True).write("update", "Editors")

    assert "not persisted" in caplog.text
