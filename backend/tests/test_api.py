"""
HTTP API tests.

Verifies:
- Unauthenticated requests return 401, non-admins get 403 on admin routes
- Identity always comes from the bearer token, never the request body
- Decision and order errors map to their documented status codes
"""

import pytest

from hotelbook.models import HotelApplication, Order, User

from conftest import DEFAULT_PASSWORD, auth_headers, get_auth_token


# =============================================================================
# UNAUTHENTICATED ACCESS: 401
# =============================================================================


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/me"),
            ("POST", "/api/logout"),
            ("POST", "/api/applications"),
            ("GET", "/api/applications/mine"),
            ("GET", "/api/admin/applications/pending"),
            ("POST", "/api/admin/applications/1/decision"),
            ("GET", "/api/admin/hotels"),
            ("PUT", "/api/admin/hotels/1"),
            ("GET", "/api/hotels/mine"),
            ("POST", "/api/hotels/1/room_types"),
            ("POST", "/api/orders"),
            ("POST", "/api/orders/quote"),
            ("GET", "/api/my_orders"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["success"] is False

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/me", headers=auth_headers("not-a-real-token"))
        assert resp.status_code == 401


# =============================================================================
# AUTH
# =============================================================================


class TestAuth:

    def test_register_login_me_logout(self, client, db_session):
        resp = client.post("/api/register", json={
            "username": "traveller",
            "password": "hunter22",
            "email": "traveller@example.com",
        })
        assert resp.status_code == 201

        token = get_auth_token(client, "traveller", "hunter22")
        assert token

        me = client.get("/api/me", headers=auth_headers(token))
        assert me.status_code == 200
        assert me.json["user"]["user_name"] == "traveller"
        assert me.json["user"]["isAdmin"] is False

        assert client.post("/api/logout", headers=auth_headers(token)).status_code == 200
        assert client.get("/api/me", headers=auth_headers(token)).status_code == 401

    def test_duplicate_username(self, client, merchant):
        resp = client.post("/api/register", json={
            "username": merchant.username,
            "password": "hunter22",
            "email": "new@example.com",
        })
        assert resp.status_code == 409

    def test_admin_registration_needs_code(self, client, db_session):
        body = {"username": "boss", "password": "hunter22", "email": "boss@example.com", "role": "admin"}

        resp = client.post("/api/register", json={**body, "adminCode": "0000"})
        assert resp.status_code == 403

        resp = client.post("/api/register", json={**body, "adminCode": "6666"})
        assert resp.status_code == 201
        assert db_session.query(User).filter_by(username="boss").one().is_admin is True

    def test_short_password(self, client, db_session):
        resp = client.post("/api/register", json={
            "username": "shorty", "password": "123", "email": "shorty@example.com",
        })
        assert resp.status_code == 400
        assert resp.json["field"] == "password"

    def test_wrong_password(self, client, merchant):
        resp = client.post("/api/login", json={"username": merchant.username, "password": "wrong-one"})
        assert resp.status_code == 401

    def test_login_non_object_body(self, client, merchant):
        resp = client.post("/api/login", json=[merchant.username, DEFAULT_PASSWORD])
        assert resp.status_code == 400
        assert resp.json["error"] == "ValidationError"

    def test_login_returns_flat_user_fields(self, client, admin):
        resp = client.post("/api/login", json={"username": admin.username, "password": DEFAULT_PASSWORD})
        assert resp.status_code == 200
        assert resp.json["isAdmin"] is True
        assert resp.json["user_id"] == admin.id

    def test_update_profile(self, client, merchant_headers):
        resp = client.patch("/api/me/profile", json={"nickname": "Mer"}, headers=merchant_headers)
        assert resp.status_code == 200
        assert resp.json["user"]["nickname"] == "Mer"

        resp = client.patch("/api/me/profile", json={"is_admin": True}, headers=merchant_headers)
        assert resp.status_code == 400


# =============================================================================
# APPLICATIONS
# =============================================================================


class TestApplications:

    def test_submit_ignores_body_user_id(self, client, db_session, merchant, admin, merchant_headers,
                                         application_payload):
        application_payload["user_id"] = admin.id

        resp = client.post("/api/applications", json=application_payload, headers=merchant_headers)

        assert resp.status_code == 201
        application_id = resp.json["data"]["application_id"]
        assert db_session.get(HotelApplication, application_id).user_id == merchant.id

    def test_submit_validation_error(self, client, merchant_headers, application_payload):
        application_payload["operating_period"] = "[2024-05-01,2024-04-01)"
        resp = client.post("/api/applications", json=application_payload, headers=merchant_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "ValidationError"
        assert resp.json["field"] == "operating_period"

    def test_non_admin_cannot_review(self, client, merchant_headers, pending_application):
        assert client.get("/api/admin/applications/pending", headers=merchant_headers).status_code == 403
        resp = client.post(
            f"/api/admin/applications/{pending_application.id}/decision",
            json={"action": "approve"},
            headers=merchant_headers,
        )
        assert resp.status_code == 403

    def test_review_flow(self, client, db_session, admin_headers, merchant_headers, pending_application):
        queue = client.get("/api/admin/applications/pending", headers=admin_headers)
        assert queue.status_code == 200
        assert [a["id"] for a in queue.json["data"]] == [pending_application.id]
        assert queue.json["pagination"]["total"] == 1

        url = f"/api/admin/applications/{pending_application.id}/decision"
        resp = client.post(url, json={"action": "approve", "admin_remark": "ok"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["outcome"] == "approved"
        hotel_id = resp.json["data"]["hotel_id"]

        again = client.post(url, json={"action": "reject"}, headers=admin_headers)
        assert again.status_code == 404
        assert again.json["error"] == "NotFoundOrAlreadyProcessed"

        mine = client.get("/api/hotels/mine", headers=merchant_headers)
        assert [h["id"] for h in mine.json["data"]] == [hotel_id]

        detail = client.get(f"/api/hotels/{hotel_id}")
        assert detail.json["data"]["hotel"]["operating_period"] == "[2024-01-01,2025-01-01)"

    def test_bad_action(self, client, admin_headers, pending_application):
        resp = client.post(
            f"/api/admin/applications/{pending_application.id}/decision",
            json={"action": "maybe"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_decision_body_does_not_edit_hotel(self, client, admin_headers, pending_application):
        resp = client.post(
            f"/api/admin/applications/{pending_application.id}/decision",
            json={
                "action": "approve",
                "name_zh": "伪造酒店",
                "name_en": "Forged Name",
                "address": "Elsewhere",
                "star_rating": 1,
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200

        hotel = client.get(f"/api/hotels/{resp.json['data']['hotel_id']}").json["data"]["hotel"]
        assert hotel["name_zh"] == "山景酒店"
        assert hotel["name_en"] == "Mountain View Inn"
        assert hotel["address"] == "88 Ridge Lane, Guilin"
        assert hotel["star_rating"] == 3

    def test_decision_non_object_body(self, client, db_session, admin_headers, pending_application):
        resp = client.post(
            f"/api/admin/applications/{pending_application.id}/decision",
            json=["approve"],
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"] == "ValidationError"
        assert db_session.get(HotelApplication, pending_application.id).status == "pending"

    def test_decision_oversized_id(self, client, admin_headers):
        resp = client.post(
            "/api/admin/applications/" + "9" * 25 + "/decision",
            json={"action": "approve"},
            headers=admin_headers,
        )
        assert resp.status_code == 404
        assert resp.json["error"] == "NotFoundOrAlreadyProcessed"

    def test_my_applications(self, client, merchant_headers, pending_application):
        resp = client.get("/api/applications/mine", headers=merchant_headers)
        assert resp.status_code == 200
        assert resp.json["data"][0]["status"] == "pending"


# =============================================================================
# CATALOG
# =============================================================================


class TestCatalog:

    def test_search_is_public(self, client, hotel, room_type):
        resp = client.get("/api/hotels?keyword=seaview&pageSize=5")
        assert resp.status_code == 200
        assert [h["id"] for h in resp.json["data"]] == [hotel.id]
        assert resp.json["pagination"] == {"total": 1, "page": 1, "pageSize": 5, "totalPages": 1}

    def test_search_bad_filter(self, client, db_session):
        resp = client.get("/api/hotels?star=9")
        assert resp.status_code == 400

    def test_detail(self, client, hotel, room_type):
        resp = client.get(f"/api/hotels/{hotel.id}")
        assert resp.status_code == 200
        assert resp.json["data"]["roomTypes"][0]["base_price"] == "100.00"

    def test_detail_not_found(self, client, db_session):
        resp = client.get("/api/hotels/424242")
        assert resp.status_code == 404
        assert resp.json["error"] == "HotelNotFound"

    def test_detail_oversized_id(self, client, db_session):
        resp = client.get("/api/hotels/" + "9" * 25)
        assert resp.status_code == 404
        assert resp.json["error"] == "HotelNotFound"

    @pytest.mark.parametrize("page", ["9" * 25, "1000001"])
    def test_search_page_too_large(self, client, db_session, page):
        resp = client.get(f"/api/hotels?page={page}")
        assert resp.status_code == 400
        assert resp.json["field"] == "page"

    def test_admin_list_includes_inactive(self, client, admin_headers, merchant_headers, make_hotel):
        visible = make_hotel()
        hidden = make_hotel(active=False)

        resp = client.get("/api/admin/hotels", headers=admin_headers)
        assert resp.status_code == 200
        assert [h["id"] for h in resp.json["data"]] == [visible.id, hidden.id]

        assert client.get("/api/admin/hotels", headers=merchant_headers).status_code == 403

    def test_admin_edit(self, client, admin_headers, hotel):
        resp = client.put(f"/api/admin/hotels/{hotel.id}", json={"star_rating": 5}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["star_rating"] == 5

    def test_add_room_type_as_owner(self, client, merchant_headers, hotel):
        resp = client.post(
            f"/api/hotels/{hotel.id}/room_types",
            json={"name": "Deluxe King", "base_price": "399.00"},
            headers=merchant_headers,
        )
        assert resp.status_code == 201
        assert resp.json["data"]["name"] == "Deluxe King"


# =============================================================================
# ORDERS
# =============================================================================


class TestOrders:

    def test_create_order(self, client, db_session, merchant, merchant_headers, admin, hotel, room_type):
        resp = client.post("/api/orders", headers=merchant_headers, json={
            "user_id": admin.id,
            "hotel_id": hotel.id,
            "room_type_id": room_type.id,
            "check_in_date": "2024-01-01",
            "check_out_date": "2024-01-03",
            "num_rooms": 2,
            "total_price": "0.01",
        })

        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["total_price"] == "400.00"
        assert data["status"] == "pending_payment"
        assert db_session.get(Order, data["id"]).user_id == merchant.id

        orders = client.get("/api/my_orders", headers=merchant_headers)
        assert [o["id"] for o in orders.json["data"]] == [data["id"]]
        assert orders.json["data"][0]["hotel_name_en"] == "Seaview Hotel"

    def test_quote(self, client, db_session, merchant_headers, hotel, room_type):
        resp = client.post("/api/orders/quote", headers=merchant_headers, json={
            "hotel_id": hotel.id,
            "room_type_id": room_type.id,
            "check_in_date": "2024-01-01",
            "check_out_date": "2024-01-02",
        })
        assert resp.status_code == 200
        assert resp.json["data"]["nights"] == 1
        assert resp.json["data"]["total_price"] == "100.00"
        assert db_session.query(Order).count() == 0

    def test_quote_keeps_local_calendar_date(self, client, merchant_headers, hotel, room_type):
        resp = client.post("/api/orders/quote", headers=merchant_headers, json={
            "hotel_id": hotel.id,
            "room_type_id": room_type.id,
            "check_in_date": "2024-01-02T00:30:00+08:00",
            "check_out_date": "2024-01-03T00:30:00+08:00",
        })
        assert resp.status_code == 200
        assert resp.json["data"]["check_in_date"] == "2024-01-02"
        assert resp.json["data"]["check_out_date"] == "2024-01-03"
        assert resp.json["data"]["nights"] == 1

    @pytest.mark.parametrize("overrides,status,error", [
        ({"hotel_id": None}, 400, "MissingOrInvalidField"),
        ({"check_in_date": "2024-13-01"}, 400, "InvalidDate"),
        ({"check_out_date": "2024-01-01"}, 400, "InvalidDateRange"),
        ({"hotel_id": "9" * 25}, 400, "MissingOrInvalidField"),
        ({"room_type_id": 2**63}, 400, "MissingOrInvalidField"),
        ({"num_rooms": 10**12}, 400, "MissingOrInvalidField"),
        ({"room_type_id": 999999}, 404, "RoomTypeNotFound"),
    ])
    def test_order_errors(self, client, merchant_headers, hotel, room_type, overrides, status, error):
        body = {
            "hotel_id": hotel.id,
            "room_type_id": room_type.id,
            "check_in_date": "2024-01-01",
            "check_out_date": "2024-01-03",
        }
        body.update(overrides)
        resp = client.post("/api/orders", json=body, headers=merchant_headers)
        assert resp.status_code == status
        assert resp.json["error"] == error


def test_health(client, db_session):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json["status"] == "ok"
