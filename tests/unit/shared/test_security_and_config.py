from dataclasses import replace
from datetime import timedelta
from decimal import Decimal

import pytest

from src.shared.config import Settings
from src.shared.exceptions import AuthenticationError
from src.shared.security import create_access_token, decode_token
from src.shared.utils.ids import is_object_id, new_object_id


def test_jwt_claims_shape(settings):
    payload = decode_token(create_access_token("librarian-1", roles=["LIBRARIAN"]))
    for k in ("sub", "roles", "iat", "exp", "typ"):
        assert k in payload
    assert payload["sub"] == "librarian-1"


def test_expired_token_rejected(settings):
    token = create_access_token("librarian-1", expires_delta=timedelta(seconds=-5))
    with pytest.raises(AuthenticationError) as exc:
        decode_token(token)
    assert exc.value.code == "expired_token"


def test_tampered_token_rejected(settings):
    token = create_access_token("librarian-1")
    with pytest.raises(AuthenticationError):
        decode_token(token[:-2] + ("AA" if not token.endswith("AA") else "BB"))


def test_settings_defaults_and_validation(settings):
    assert settings.loan_period_days == 7
    assert settings.fine_per_day == Decimal("10")
    assert str(settings.tzinfo) == "Asia/Manila"
    assert "test-secret" not in str(settings.safe_dict())
    with pytest.raises(ValueError):
        replace(settings, database_url="mysql://nope")
    with pytest.raises(ValueError):
        replace(settings, library_timezone="Mars/Olympus_Mons")
    with pytest.raises(ValueError):
        Settings(database_url="sqlite+aiosqlite:///x.db", secret_key="")


def test_object_ids():
    a, b = new_object_id(), new_object_id()
    assert is_object_id(a) and is_object_id(b)
    assert a != b
    assert not is_object_id("2024-0001")
