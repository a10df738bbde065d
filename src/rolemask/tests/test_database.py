from __future__ import annotations

import pytest
from sqlalchemy import inspect

from rolemask.config import Settings, get_settings
from rolemask.database import REQUIRED_TABLES, create_db_engine, get_db_session, init_db
from rolemask.exceptions import ConfigurationError
from rolemask.security.rbac.consistency import initialize_roles
from rolemask.security.rbac.registry import DatabaseResourceRegistry
from rolemask.security.rbac.service import RoleService


@pytest.fixture()
def settings_env(monkeypatch):
    def _apply(**values):
        for key, value in values.items():
            monkeypatch.setenv(f"ROLEMASK_{key}", value)
        get_settings.cache_clear()

    yield _apply
    get_settings.cache_clear()


def test_settings_read_prefixed_environment(settings_env):
    settings_env(DEFAULT_ROLE_NAME="Root", NECESSARY_RESOURCE_IDS="3, 4,x,")

    settings = get_settings()

    assert settings.DEFAULT_ROLE_NAME == "Root"
    assert settings.necessary_resource_ids() == {3, 4}


def test_settings_defaults():
    settings = Settings(_env_file=None)

    assert settings.DEFAULT_ROLE_NAME == "Administrator"
    assert settings.SCHEMA_MODE == "create_all"
    assert settings.necessary_resource_ids() == set()


def test_init_db_creates_tables(settings_env):
    settings_env(SCHEMA_MODE="create_all")
    engine = create_db_engine("sqlite:///:memory:")

    init_db(create_tables=True, bind_engine=engine)

    assert set(REQUIRED_TABLES) <= set(inspect(engine).get_table_names())


def test_init_db_in_migrations_mode_refuses_empty_database(settings_env):
    settings_env(SCHEMA_MODE="migrations")
    engine = create_db_engine("sqlite:///:memory:")

    with pytest.raises(ConfigurationError, match="rbac_roles"):
        init_db(create_tables=True, bind_engine=engine)

    assert inspect(engine).get_table_names() == []


@pytest.mark.requires_db
def test_initialize_roles_against_configured_database():
    init_db(create_tables=True)
    with get_db_session() as session:
        service = RoleService(session)
        report = initialize_roles(service, DatabaseResourceRegistry(session))
        roles = service.find_all()

    assert any(r.is_system for r in roles)
    assert report.system_role is not None
