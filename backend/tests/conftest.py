"""
Pytest fixtures for hotelbook backend tests.

Provides test database setup, user/hotel/room type factories, and test client.
"""

from datetime import date
from decimal import Decimal

import pytest
from hotelbook import create_app
from hotelbook.extensions import db
from hotelbook.models import Hotel, HotelApplication, RoomType, User
from hotelbook.services.auth_service import hash_password
from hotelbook.validation import DateRange


DEFAULT_PASSWORD = "secret1"
OPERATING_PERIOD = DateRange(start=date(2024, 1, 1), end=date(2025, 1, 1))


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_user(db_session):
    """Factory: make_user("alice", is_admin=False) -> committed User."""
    def _make(username: str, *, is_admin: bool = False, password: str = DEFAULT_PASSWORD) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(password),
            is_admin=is_admin,
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def merchant(make_user):
    return make_user("merchant")


@pytest.fixture(scope='function')
def admin(make_user):
    return make_user("admin", is_admin=True)


@pytest.fixture(scope='function')
def make_hotel(db_session):
    """Factory for live catalog hotels (bypasses the review workflow)."""
    def _make(owner: User | None = None, **fields) -> Hotel:
        period = fields.pop("operating_period", OPERATING_PERIOD)
        values = {
            "name_zh": "海景酒店",
            "name_en": "Seaview Hotel",
            "address": "1 Beach Road, Sanya",
            "star_rating": 4,
            "active": True,
        }
        values.update(fields)
        hotel = Hotel(user_id=owner.id if owner else None, **values)
        hotel.operating_period = period
        db_session.add(hotel)
        db_session.commit()
        return hotel
    return _make


@pytest.fixture(scope='function')
def hotel(make_hotel, merchant):
    return make_hotel(merchant)


@pytest.fixture(scope='function')
def make_room_type(db_session):
    def _make(hotel: Hotel, name: str = "Standard Twin", base_price: str = "100.00") -> RoomType:
        room_type = RoomType(hotel_id=hotel.id, name=name, base_price=Decimal(base_price))
        db_session.add(room_type)
        db_session.commit()
        return room_type
    return _make


@pytest.fixture(scope='function')
def room_type(make_room_type, hotel):
    return make_room_type(hotel)


@pytest.fixture(scope='function')
def application_payload():
    return {
        "name_zh": "山景酒店",
        "name_en": "Mountain View Inn",
        "address": "88 Ridge Lane, Guilin",
        "star_rating": 3,
        "operating_period": "[2024-01-01,2025-01-01)",
        "description": "Quiet rooms facing the karst hills",
    }


@pytest.fixture(scope='function')
def pending_application(db_session, merchant, application_payload):
    from hotelbook.services.application_service import ApplicationDraft, ApplicationReviewService

    application_id = ApplicationReviewService(db_session).submit(
        merchant.id, ApplicationDraft.from_payload(application_payload)
    )
    return db_session.get(HotelApplication, application_id)


def get_auth_token(client, username: str, password: str = DEFAULT_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def merchant_headers(client, merchant):
    return auth_headers(get_auth_token(client, merchant.username))


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, admin.username))
