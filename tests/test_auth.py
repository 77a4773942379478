import time
import uuid

import jwt
import pytest
from fastapi import HTTPException

from dependencies.caller import Caller
from routers.auth.helpers import AuthHelpers
from conftest import JWT_SECRET, token_for

helpers = AuthHelpers()


def test_valid_token_yields_an_authenticated_caller():
    user_id = uuid.uuid4()

    caller = helpers.verify_token(token_for(Caller.authenticated(user_id, email="ravi@example.com")))

    assert caller.user_id == user_id
    assert caller.email == "ravi@example.com"
    assert caller.role == "authenticated"


def test_expired_token_is_rejected():
    token = token_for(Caller.authenticated(uuid.uuid4()), expires_in=-60)

    with pytest.raises(HTTPException) as exc:
        helpers.verify_token(token)

    assert exc.value.status_code == 401
    assert exc.value.detail == "Token expired"


def test_token_signed_with_another_key_is_rejected():
    now = int(time.time())
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "iat": now, "exp": now + 60},
        "some-other-secret-that-is-also-long-enough",
        algorithm="HS256",
    )

    with pytest.raises(HTTPException) as exc:
        helpers.verify_token(token)

    assert exc.value.status_code == 401


def test_anon_key_maps_to_the_anonymous_caller():
    now = int(time.time())
    token = jwt.encode({"role": "anon", "iat": now, "exp": now + 60}, JWT_SECRET, algorithm="HS256")

    caller = helpers.verify_token(token)

    assert caller.is_anonymous
    assert caller.user_id is None


@pytest.mark.parametrize("sub", [None, "not-a-uuid"])
def test_token_without_a_usable_subject_is_rejected(sub):
    now = int(time.time())
    payload = {"role": "authenticated", "iat": now, "exp": now + 60}
    if sub is not None:
        payload["sub"] = sub
    token = jwt.encode(payload, JWT_SECRET, algorithm="HS256")

    with pytest.raises(HTTPException) as exc:
        helpers.verify_token(token)

    assert exc.value.status_code == 401


def test_caller_roles_are_validated():
    with pytest.raises(ValueError):
        Caller(role="admin")
    with pytest.raises(ValueError):
        Caller(role="authenticated")
    with pytest.raises(ValueError):
        Caller(role="anon", user_id=uuid.uuid4())


def test_service_caller():
    caller = Caller.service()

    assert caller.is_service
    assert str(caller) == "service_role"
