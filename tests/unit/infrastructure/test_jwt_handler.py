"""
Unit tests for JWTHandler.
"""
import jwt
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from clayx_relay.infrastructure.security import JWTHandler


class TestJWTHandler:

    def test_round_trip_subject(self, jwt_handler):
        """Test the subject of a created token is the caller."""
        user_id = uuid4()
        token = jwt_handler.create_access_token(user_id)

        payload = jwt_handler.verify_token(token)

        assert payload.user_id == user_id
        assert payload.type == "access"
        assert payload.exp > payload.iat

    def test_legacy_user_id_claim(self, jwt_handler):
        """Test tokens carrying `userId` instead of `sub` are accepted."""
        user_id = uuid4()
        token = jwt_handler.create_access_token(user_id, legacy_claim=True)

        assert jwt_handler.get_user_id(token) == user_id

    def test_wrong_secret(self, jwt_handler):
        token = JWTHandler("other-secret").create_access_token(uuid4())

        assert jwt_handler.verify_token(token) is None

    def test_expired(self, jwt_handler):
        token = jwt.encode(
            {"sub": str(uuid4()), "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
            "test-secret",
            algorithm="HS256",
        )

        assert jwt_handler.get_user_id(token) is None

    def test_garbage(self, jwt_handler):
        assert jwt_handler.get_user_id("not.a.token") is None

    def test_missing_subject(self, jwt_handler):
        token = jwt.encode({"type": "access"}, "test-secret", algorithm="HS256")

        assert jwt_handler.verify_token(token) is None

    def test_non_uuid_subject(self, jwt_handler):
        """Test a token whose subject is not a user id authenticates nobody."""
        token = jwt.encode({"sub": "admin"}, "test-secret", algorithm="HS256")

        assert jwt_handler.verify_token(token) is not None
        assert jwt_handler.get_user_id(token) is None

    def test_audience_and_issuer(self):
        handler = JWTHandler("test-secret", issuer="clayx", audience="clayx-app")
        token = handler.create_access_token(uuid4())

        assert handler.verify_token(token) is not None
        assert JWTHandler("test-secret", audience="someone-else").verify_token(token) is None
