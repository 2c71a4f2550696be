"""
Engine installation and session_scope.
"""

import pytest
from sqlalchemy import select

from asset_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from asset_kernel.domain.lifecycle import LifecycleState
from asset_kernel.models.asset import Asset
from asset_kernel.services.lifecycle_engine import LifecycleEngine

ACTOR = "test-tech"


@pytest.fixture
def installed_engine(tmp_path):
    engine = init_engine_from_url(f"sqlite:///{tmp_path / 'scope.db'}")
    create_tables(engine)
    yield engine
    reset_engine()


def _tags() -> list[str]:
    with session_scope() as sess:
        return list(sess.execute(select(Asset.asset_tag).order_by(Asset.asset_tag)).scalars())


def test_not_initialized():
    reset_engine()
    with pytest.raises(RuntimeError):
        get_engine()
    with pytest.raises(RuntimeError):
        get_session()


def test_scope_commits(installed_engine):
    assert get_engine() is installed_engine
    with session_scope() as sess:
        assert LifecycleEngine(sess).register_asset("SC-1", actor=ACTOR).is_success

    assert _tags() == ["SC-1"]


def test_scope_rolls_back_on_error(installed_engine):
    with pytest.raises(RuntimeError, match="boom"):
        with session_scope() as sess:
            LifecycleEngine(sess).register_asset("SC-2", actor=ACTOR)
            raise RuntimeError("boom")

    assert _tags() == []


def test_savepoints_work_on_sqlite_files(installed_engine):
    with session_scope() as sess:
        engine = LifecycleEngine(sess)
        engine.register_asset("SC-3", actor=ACTOR)
        rejected = engine.transition_to_state("SC-3", LifecycleState.IN_TRANSIT, actor=ACTOR)
        assert not rejected.is_success
        assert engine.deploy_asset("SC-3", "2F-1", actor=ACTOR).is_success

    with session_scope() as sess:
        assert LifecycleEngine(sess).get_asset("SC-3").lifecycle_state == LifecycleState.DEPLOYED


def test_reinit_replaces_engine(installed_engine, tmp_path):
    second = init_engine_from_url(f"sqlite:///{tmp_path / 'other.db'}")
    assert get_engine() is second
    assert second is not installed_engine
