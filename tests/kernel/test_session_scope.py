"""session_scope(): commit on success, rollback on error."""

import pytest
from sqlalchemy import select

from delivery_kernel.db.engine import session_scope
from delivery_kernel.models import CustomerModel


def _names(factory) -> list[str]:
    session = factory()
    try:
        return list(session.scalars(select(CustomerModel.name).order_by(CustomerModel.name)))
    finally:
        session.close()


def test_commits_on_success(committed_session_factory, test_actor_id):
    with session_scope() as session:
        session.add(CustomerModel(name="Thandi Nkosi", created_by_id=test_actor_id))

    assert _names(committed_session_factory) == ["Thandi Nkosi"]


def test_rolls_back_and_reraises(committed_session_factory, test_actor_id, captured_logs):
    with pytest.raises(RuntimeError, match="boom"):
        with session_scope() as session:
            session.add(CustomerModel(name="Never Saved", created_by_id=test_actor_id))
            session.flush()
            raise RuntimeError("boom")

    assert _names(committed_session_factory) == []
    assert any(r["message"] == "transaction_rolled_back" for r in captured_logs())
