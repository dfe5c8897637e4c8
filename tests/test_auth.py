"""Tests for JWT bearer authentication."""

import pytest
from datetime import datetime, timedelta

import jwt
from fastapi.testclient import TestClient

from studydash.auth import jwt as auth_jwt
from studydash.auth.jwt import create_access_token, decode_access_token, get_user_id_from_token


@pytest.fixture
def unauthenticated_client(db_session):
    """Client with only the database overridden, so real token checks run."""
    from studydash.api.app import app
    from studydash.database.database import get_db

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


class TestTokens:
    def test_round_trip(self):
        token = create_access_token("user-1")
        assert get_user_id_from_token(token) == "user-1"

    def test_expired_token_is_rejected(self):
        payload = {"sub": "user-1", "exp": datetime.utcnow() - timedelta(minutes=1), "iat": datetime.utcnow()}
        token = jwt.encode(payload, auth_jwt.JWT_SECRET_KEY, algorithm=auth_jwt.JWT_ALGORITHM)
        assert decode_access_token(token) is None

    def test_wrong_signature_is_rejected(self):
        token = jwt.encode({"sub": "user-1"}, "another-secret-key-of-enough-length", algorithm="HS256")
        assert get_user_id_from_token(token) is None

    def test_garbage_is_rejected(self):
        assert get_user_id_from_token("not-a-token") is None


class TestBearerDependency:
    def test_missing_token(self, unauthenticated_client):
        response = unauthenticated_client.get("/recurring-patterns")
        assert response.status_code == 401

    def test_invalid_token(self, unauthenticated_client):
        response = unauthenticated_client.get("/recurring-patterns", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_token_for_unknown_user(self, unauthenticated_client):
        token = create_access_token("ghost")
        response = unauthenticated_client.get("/recurring-patterns", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_valid_token(self, unauthenticated_client, test_user_id):
        token = create_access_token(test_user_id)
        response = unauthenticated_client.get("/recurring-patterns", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json() == {"patterns": []}

    def test_health_needs_no_token(self, unauthenticated_client):
        assert unauthenticated_client.get("/health").status_code == 200
