"""HTTP and WebSocket tests through the FastAPI app (TestClient, in-memory SQLite)."""

import unittest

from fastapi.testclient import TestClient

from escrowswap.core.config import get_settings
from escrowswap.core.database import SessionLocal
from escrowswap.main import app
from escrowswap.models import UserSession
from tests.support import ADMIN_EMAIL, ADMIN_PASSWORD, reset_database

COOKIE = get_settings().SESSION_COOKIE_NAME


class ApiTestCase(unittest.TestCase):
    """Each test gets fresh tables and a client whose lifespan has run (admin seeded)."""

    def setUp(self) -> None:
        reset_database()
        self.client = TestClient(app)
        self.client.__enter__()

    def tearDown(self) -> None:
        self.client.__exit__(None, None, None)

    def register(self, email: str, password: str = "password-123", client: TestClient | None = None):
        return (client or self.client).post(
            "/register", json={"email": email, "password": password}
        )

    def login(self, email: str, password: str = "password-123", client: TestClient | None = None):
        return (client or self.client).post("/login", json={"email": email, "password": password})

    def session_count(self) -> int:
        db = SessionLocal()
        try:
            return db.query(UserSession).count()
        finally:
            db.close()


class TestRegistration(ApiTestCase):
    def test_register_then_duplicate_rejected(self) -> None:
        r = self.register("dup@example.com")
        self.assertEqual(r.status_code, 201)
        self.assertTrue(r.json()["success"])
        self.assertIsInstance(r.json()["user_id"], int)

        r = self.register("DUP@example.com")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json(), {"success": False, "message": "Email already exists."})

    def test_signup_alias_and_missing_fields(self) -> None:
        r = self.client.post("/signup", json={"email": "alias@example.com"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["message"], "Missing fields.")
        r = self.client.post(
            "/signup", json={"email": "alias@example.com", "password": "password-123", "phone": "0712"}
        )
        self.assertEqual(r.status_code, 201)

    def test_form_register_redirects_to_login(self) -> None:
        r = self.client.post(
            "/register",
            data={"email": "form@example.com", "password": "password-123"},
            follow_redirects=False,
        )
        self.assertEqual(r.status_code, 303)
        self.assertTrue(r.headers["location"].startswith("/login"))

    def test_form_register_error_rerenders_page(self) -> None:
        self.register("taken@example.com")
        r = self.client.post(
            "/register", data={"email": "taken@example.com", "password": "password-123"}
        )
        self.assertEqual(r.status_code, 409)
        self.assertIn("Email already exists.", r.text)
        self.assertIn("<form", r.text)

    def test_unsupported_content_type(self) -> None:
        r = self.client.post("/login", content=b"email=x", headers={"content-type": "text/plain"})
        self.assertEqual(r.status_code, 415)

    def test_undecodable_json_body_rejected(self) -> None:
        r = self.client.post(
            "/register",
            content=b'{"email":"\xff"}',
            headers={"content-type": "application/json"},
        )
        self.assertEqual(r.status_code, 400)
        self.assertFalse(r.json()["success"])

    def test_boolean_field_values_ignored(self) -> None:
        r = self.client.post("/register", json={"email": "bool@example.com", "password": True})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["message"], "Missing fields.")
        self.assertFalse(r.json()["success"])


class TestLogin(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.register("trader@example.com")

    def test_correct_password_sets_session(self) -> None:
        r = self.login("trader@example.com")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"success": True, "role": "user"})
        self.assertIn(COOKIE, r.cookies)
        self.assertEqual(self.session_count(), 1)

        page = self.client.get("/dashboard")
        self.assertEqual(page.status_code, 200)
        self.assertIn("Create order", page.text)

    def test_wrong_password_fails_without_session(self) -> None:
        r = self.login("trader@example.com", "not-the-password")
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json(), {"success": False, "message": "Incorrect password."})
        self.assertNotIn(COOKIE, r.cookies)
        self.assertEqual(self.session_count(), 0)
        self.assertEqual(self.client.get("/dashboard", follow_redirects=False).status_code, 303)

    def test_unknown_email(self) -> None:
        r = self.login("stranger@example.com")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["message"], "Email not found.")

    def test_form_login_redirects_to_dashboard(self) -> None:
        r = self.client.post(
            "/login",
            data={"email": "trader@example.com", "password": "password-123"},
            follow_redirects=False,
        )
        self.assertEqual(r.status_code, 303)
        self.assertEqual(r.headers["location"], "/dashboard")
        self.assertIn(COOKIE, r.cookies)

    def test_form_login_error_rerenders_page(self) -> None:
        r = self.client.post(
            "/login", data={"email": "trader@example.com", "password": "bad-password"}
        )
        self.assertEqual(r.status_code, 401)
        self.assertIn("Incorrect password.", r.text)

    def test_logout_ends_session(self) -> None:
        self.login("trader@example.com")
        r = self.client.get("/logout", follow_redirects=False)
        self.assertEqual(r.status_code, 303)
        self.assertEqual(r.headers["location"], "/login")
        self.assertEqual(self.session_count(), 0)
        self.client.cookies.clear()
        self.assertEqual(self.client.get("/dashboard", follow_redirects=False).status_code, 303)


class TestGating(ApiTestCase):
    def test_gated_pages_redirect_to_login(self) -> None:
        for path in ("/dashboard", "/admin", "/"):
            r = self.client.get(path, follow_redirects=False)
            self.assertEqual(r.status_code, 303, path)
        self.assertEqual(self.client.get("/dashboard", follow_redirects=False).headers["location"], "/login")

    def test_login_page_renders(self) -> None:
        r = self.client.get("/login")
        self.assertEqual(r.status_code, 200)
        self.assertIn('name="password"', r.text)

    def test_apis_answer_401_json(self) -> None:
        r = self.client.post("/api/create-order", json={"type": "buy"})
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json(), {"success": False, "message": "Not authenticated."})
        self.assertEqual(self.client.post("/api/order/ABCDEFGH/mark-paid").status_code, 401)

    def test_forged_cookie_is_ignored(self) -> None:
        self.client.cookies.set(COOKIE, "forged-value")
        self.assertEqual(self.client.get("/dashboard", follow_redirects=False).status_code, 303)

    def test_admin_page_denied_for_regular_user(self) -> None:
        self.register("plain@example.com")
        self.login("plain@example.com")
        r = self.client.get("/admin")
        self.assertEqual(r.status_code, 403)
        self.assertEqual(r.text, "ACCESS DENIED")
        self.assertEqual(self.client.get("/api/users").status_code, 403)

    def test_seeded_admin_sees_users(self) -> None:
        self.register("plain@example.com")
        r = self.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        self.assertEqual(r.json()["role"], "admin")
        page = self.client.get("/admin")
        self.assertEqual(page.status_code, 200)
        self.assertIn("plain@example.com", page.text)
        users = self.client.get("/api/users").json()["users"]
        self.assertEqual([u["email"] for u in users], [ADMIN_EMAIL, "plain@example.com"])


class TestVerifyEmail(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.register("me@example.com")
        self.register("you@example.com")
        self.login("me@example.com")

    def test_own_email(self) -> None:
        r = self.client.post("/verify-email", json={"email": "me@example.com"})
        self.assertEqual(r.json(), {"success": True})

    def test_someone_elses_email_forbidden(self) -> None:
        r = self.client.post("/verify-email", json={"email": "you@example.com"})
        self.assertEqual(r.status_code, 403)
        self.assertFalse(r.json()["success"])


class TestOrdersApi(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.register("buyer@example.com")
        self.login("buyer@example.com")

    def test_create_order(self) -> None:
        r = self.client.post("/api/create-order", json={"type": "buy"})
        self.assertEqual(r.status_code, 201)
        body = r.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["type"], "buy")
        self.assertEqual(body["status"], "open")
        self.assertEqual(body["payment_address"], get_settings().DEFAULT_PAYMENT_ADDRESS)
        self.assertEqual(len(body["code"]), get_settings().ORDER_CODE_LENGTH)

        fetched = self.client.get(f"/api/order/{body['code'].lower()}").json()
        self.assertEqual(fetched["code"], body["code"])

    def test_invalid_type_is_reported_in_envelope(self) -> None:
        r = self.client.post("/api/create-order", json={"type": "hold"})
        self.assertEqual(r.status_code, 422)
        self.assertEqual(r.json(), {"success": False, "message": "Missing or invalid fields."})

    def test_unknown_order(self) -> None:
        r = self.client.post("/api/order/ZZZZZZZZ/refund")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json(), {"success": False, "message": "Order not found."})

    def test_status_changes_are_announced_to_the_room(self) -> None:
        code = self.client.post("/api/create-order", json={"type": "sell"}).json()["code"]
        with self.client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "join", "data": {"code": code.lower(), "name": "Seller"}})
            self.assertEqual(ws.receive_json(), {"event": "joined", "data": {"code": code}})

            r = self.client.post(f"/api/order/{code}/mark-paid")
            self.assertEqual(r.json(), {"success": True, "code": code, "status": "paid"})
            self.assertEqual(
                ws.receive_json(),
                {"event": "order-updated", "data": {"code": code, "status": "paid"}},
            )

            r = self.client.post(f"/api/order/{code}/refund")
            self.assertEqual(r.json()["status"], "refund_requested")
            self.assertEqual(ws.receive_json()["data"]["status"], "refund_requested")


class TestRelaySocket(ApiTestCase):
    def test_two_participants_exchange_messages(self) -> None:
        with self.client.websocket_connect("/ws") as alice, self.client.websocket_connect("/ws") as bob:
            alice.send_json({"event": "join", "data": {"code": "ROOM2345", "name": "Alice"}})
            self.assertEqual(alice.receive_json()["event"], "joined")
            bob.send_json({"event": "join", "data": {"code": "ROOM2345", "name": "Bob"}})
            self.assertEqual(bob.receive_json()["event"], "joined")
            self.assertEqual(
                alice.receive_json(),
                {"event": "system", "data": {"message": "Bob joined the room."}},
            )

            alice.send_json({"event": "msg", "data": {"code": "ROOM2345", "text": "ready?"}})
            self.assertEqual(
                bob.receive_json(),
                {"event": "msg", "data": {"code": "ROOM2345", "from": "Alice", "text": "ready?"}},
            )
            bob.send_json({"event": "msg", "data": {"code": "ROOM2345", "text": "sent it"}})
            self.assertEqual(alice.receive_json()["data"]["text"], "sent it")

    def test_bad_frames_get_system_notice(self) -> None:
        with self.client.websocket_connect("/ws") as ws:
            ws.send_text("not json")
            self.assertEqual(ws.receive_json()["event"], "system")
            ws.send_json({"event": "dance", "data": {}})
            self.assertIn("Unknown event", ws.receive_json()["data"]["message"])
            ws.send_json({"event": "msg", "data": {"code": "ROOM2345", "text": "hi"}})
            self.assertIn("Join room ROOM2345", ws.receive_json()["data"]["message"])

    def assert_still_joins(self, ws) -> None:
        ws.send_json({"event": "join", "data": {"code": "ROOM2345", "name": "Alice"}})
        self.assertEqual(ws.receive_json()["event"], "joined")

    def test_binary_frame_gets_notice_and_socket_survives(self) -> None:
        with self.client.websocket_connect("/ws") as ws:
            ws.send_bytes(b"\x00\x01")
            frame = ws.receive_json()
            self.assertEqual(frame["event"], "system")
            self.assertIn("Malformed frame", frame["data"]["message"])
            self.assert_still_joins(ws)

    def test_non_object_data_is_malformed(self) -> None:
        with self.client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "join", "data": [1]})
            self.assertIn("Malformed frame", ws.receive_json()["data"]["message"])
            self.assert_still_joins(ws)

    def test_wrongly_typed_join_payload(self) -> None:
        with self.client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "join", "data": {"code": 5}})
            self.assertEqual(
                ws.receive_json(),
                {"event": "system", "data": {"message": "Invalid payload for 'join'."}},
            )
            self.assert_still_joins(ws)


class TestHealth(ApiTestCase):
    def test_health(self) -> None:
        r = self.client.get("/api/health")
        self.assertEqual(r.json(), {"status": "ok", "environment": "dev", "database": "connected"})


if __name__ == "__main__":
    unittest.main()
