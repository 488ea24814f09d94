"""
Flask CLI command tests (run through app.test_cli_runner()).
"""

from datetime import timedelta

import pytest

from hotelbook.models import HotelApplication, RoomType, SessionToken, User
from hotelbook.time_utils import utcnow


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


def test_users_create_and_list(runner, db_session):
    result = runner.invoke(args=[
        "users", "create",
        "--username", "ops", "--email", "ops@example.com", "--password", "secret9", "--admin",
    ])
    assert result.exit_code == 0, result.output
    assert db_session.query(User).filter_by(username="ops").one().is_admin is True

    listed = runner.invoke(args=["users", "list"])
    assert "ops@example.com" in listed.output


def test_users_create_duplicate_fails(runner, merchant):
    result = runner.invoke(args=[
        "users", "create",
        "--username", merchant.username, "--email", "x@example.com", "--password", "secret9",
    ])
    assert result.exit_code != 0
    assert "already exists" in result.output


def test_applications_pending_and_decide(runner, db_session, pending_application):
    listed = runner.invoke(args=["applications", "pending"])
    assert "Mountain View Inn" in listed.output

    result = runner.invoke(args=["applications", "decide", str(pending_application.id), "reject",
                                 "--remark", "Incomplete"])
    assert result.exit_code == 0, result.output

    application = db_session.get(HotelApplication, pending_application.id)
    assert application.status == "rejected"
    assert application.admin_remark == "Incomplete"

    again = runner.invoke(args=["applications", "decide", str(pending_application.id), "approve"])
    assert again.exit_code != 0


def test_catalog_add_room_type(runner, db_session, hotel):
    result = runner.invoke(args=[
        "catalog", "add-room-type", str(hotel.id), "--name", "Deluxe King", "--price", "399.00",
    ])
    assert result.exit_code == 0, result.output
    room_type = db_session.query(RoomType).filter_by(hotel_id=hotel.id).one()
    assert room_type.name == "Deluxe King"
    assert room_type.capacity == 2


def test_catalog_add_room_type_unknown_hotel(runner, db_session):
    result = runner.invoke(args=["catalog", "add-room-type", "999999", "--name", "X", "--price", "1"])
    assert result.exit_code != 0


def test_cleanup_sessions(runner, db_session, merchant):
    now = utcnow()
    old = now - timedelta(days=60)
    db_session.add_all([
        SessionToken(user_id=merchant.id, token_hash="expired", created_at=old,
                     last_used_at=old, expires_at=old + timedelta(hours=24)),
        SessionToken(user_id=merchant.id, token_hash="live", created_at=now,
                     last_used_at=now, expires_at=now + timedelta(hours=24)),
    ])
    db_session.commit()

    result = runner.invoke(args=["maintenance", "cleanup-sessions", "--retention-days", "30"])

    assert result.exit_code == 0, result.output
    assert [s.token_hash for s in db_session.query(SessionToken).all()] == ["live"]


def test_system_init_db_is_idempotent(runner, db_session, merchant):
    result = runner.invoke(args=["system", "init-db"])
    assert result.exit_code == 0, result.output
    assert db_session.query(User).count() == 1
