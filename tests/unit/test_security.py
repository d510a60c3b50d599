"""Unit tests for token decoding and typed users."""

from datetime import timedelta

from app.core.security import create_access_token, decode_access_token, user_from_claims
from app.services.models import Observer, StationAdmin, StationAgent, SuperAdmin, station_bound


class TestTokens:
    """Test JWT round trips."""

    def test_decode_valid_token(self):
        token = create_access_token({"sub": "u1", "name": "root", "role": "Super Admin"})

        payload = decode_access_token(token)

        assert payload["sub"] == "u1"
        assert "exp" in payload

    def test_expired_token(self):
        token = create_access_token({"sub": "u1"}, expires_delta=timedelta(seconds=-10))

        assert decode_access_token(token) is None

    def test_garbage_token(self):
        assert decode_access_token("not-a-jwt") is None


class TestUserFromClaims:
    """Test the role-discriminated user types."""

    def test_super_admin(self):
        user = user_from_claims({"sub": "u1", "name": "root", "role": "Super Admin"})

        assert isinstance(user, SuperAdmin)
        assert user.id == "u1"
        assert station_bound(user) is None

    def test_station_admin(self):
        user = user_from_claims(
            {"sub": "u2", "name": "admin", "role": "Admin", "polling_station_id": "ps-1"}
        )

        assert isinstance(user, StationAdmin)
        assert station_bound(user) == "ps-1"

    def test_station_agent_null_election(self):
        user = user_from_claims(
            {
                "sub": "u3",
                "name": "agent",
                "role": "Bureau de Vote",
                "polling_station_id": "ps-2",
                "election_id": None,
            }
        )

        assert isinstance(user, StationAgent)
        assert user.election_id is None

    def test_observer(self):
        user = user_from_claims({"sub": "u4", "name": "obs", "role": "Observateur"})

        assert isinstance(user, Observer)

    def test_station_admin_requires_station(self):
        assert user_from_claims({"sub": "u2", "name": "admin", "role": "Admin"}) is None

    def test_unknown_role(self):
        assert user_from_claims({"sub": "u5", "name": "x", "role": "Root"}) is None

    def test_missing_subject(self):
        assert user_from_claims({"name": "root", "role": "Super Admin"}) is None
