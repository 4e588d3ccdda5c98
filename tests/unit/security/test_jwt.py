"""Tests for JWT helpers."""

import uuid
from datetime import timedelta

import pytest

from noteledger.config import Settings
from noteledger.security.jwt import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    get_user_id_from_token,
)


@pytest.fixture
def settings():
    return Settings(secret_key="access-secret", refresh_secret_key="refresh-secret")


def test_access_token_round_trip(settings):
    user_id = uuid.uuid4()
    token = create_access_token({"sub": str(user_id)}, settings=settings)

    payload = decode_access_token(token, settings)

    assert payload["sub"] == str(user_id)
    assert payload["type"] == "access"
    assert "jti" in payload
    assert get_user_id_from_token(token, settings) == user_id


def test_expired_token_is_rejected(settings):
    token = create_access_token(
        {"sub": str(uuid.uuid4())}, expires_delta=timedelta(seconds=-1), settings=settings
    )

    assert decode_access_token(token, settings) is None


def test_refresh_token_is_not_an_access_token(settings):
    user_id = uuid.uuid4()
    refresh = create_refresh_token(user_id, settings)

    assert decode_access_token(refresh, settings) is None
    assert decode_refresh_token(refresh, settings)["sub"] == str(user_id)


def test_wrong_secret(settings):
    token = create_access_token({"sub": str(uuid.uuid4())}, settings=settings)
    other = Settings(secret_key="another-secret")

    assert get_user_id_from_token(token, other) is None


def test_non_uuid_subject(settings):
    token = create_access_token({"sub": "not-a-uuid"}, settings=settings)

    assert get_user_id_from_token(token, settings) is None


def test_garbage_token(settings):
    assert get_user_id_from_token("not.a.jwt", settings) is None
