# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for session_service."""

import base64
import string
import uuid
from datetime import UTC, datetime, timedelta

import jwt
import pytest

from ems.config import Settings
from ems.errors import ConfigurationFault
from ems.services import session_service

TEST_KEY = "test-secret-key-for-testing-only-32chars!"  # nosec - test-only secret  # noqa: S105
BASE64URL_ALPHABET = string.ascii_letters + string.digits + "-_"


def issue(settings, username="clerk", permissions=None, **kwargs):
    return session_service.issue_session(
        settings,
        user_id=str(uuid.uuid4()),
        username=username,
        role_id=str(uuid.uuid4()),
        role_name="Clerk",
        permissions=permissions if permissions is not None else ["dashboard:view"],
        **kwargs,
    )


def test_round_trip_returns_issued_snapshot(settings):
    issued = issue(settings, permissions=["dashboard:view", "employee:export"])

    verified = session_service.verify_session_token(settings, issued.token)

    assert verified == issued.user
    assert verified.username == "clerk"
    assert verified.role.name == "Clerk"
    assert verified.permissions == ["dashboard:view", "employee:export"]
    assert verified.expires_at - verified.issued_at == timedelta(days=7)


def test_issue_session_token_returns_only_the_token(settings):
    token = session_service.issue_session_token(
        settings,
        user_id="u-1",
        username="clerk",
        role_id="r-1",
        role_name="Clerk",
        permissions=[],
    )
    assert isinstance(token, str)
    assert session_service.verify_session_token(settings, token).id == "u-1"


def test_token_carries_expected_claims(settings):
    issued = issue(settings)
    claims = jwt.decode(issued.token, TEST_KEY, algorithms=["HS256"], issuer="ems")

    assert set(claims) == {"iss", "sub", "username", "role", "permissions", "iat", "exp"}
    assert claims["role"] == {"id": issued.user.role.id, "name": "Clerk"}


@pytest.mark.parametrize("token", [None, "", "not-a-token", "a.b.c"])
def test_malformed_tokens_are_rejected(settings, token):
    assert session_service.verify_session_token(settings, token) is None


def test_token_signed_with_other_key_is_rejected(settings):
    other = Settings(secret_key="a-completely-different-signing-key!!")  # noqa: S106
    issued = issue(other)
    assert session_service.verify_session_token(settings, issued.token) is None


def test_tampered_payload_is_rejected(settings):
    clerk = issue(settings, username="clerk").token
    boss = issue(settings, username="boss", permissions=["employee:delete_action"]).token

    header, _, signature = clerk.split(".")
    forged = ".".join([header, boss.split(".")[1], signature])

    assert session_service.verify_session_token(settings, forged) is None


def _decode_segments(token):
    return [
        base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
        for segment in token.split(".")
    ]


def _flip(token, index):
    """Replace one character so the decoded bytes actually change."""
    original = _decode_segments(token)
    for candidate in BASE64URL_ALPHABET:
        if candidate == token[index]:
            continue
        forged = token[:index] + candidate + token[index + 1 :]
        # Trailing padding bits of a segment can change without changing its bytes
        if _decode_segments(forged) != original:
            return forged
    raise AssertionError(f"no byte-changing replacement at position {index}")


def test_any_single_character_change_is_rejected(settings):
    token = issue(settings).token
    assert session_service.verify_session_token(settings, token) is not None

    for index, char in enumerate(token):
        if char == ".":
            continue
        forged = _flip(token, index)
        assert session_service.verify_session_token(settings, forged) is None, index


def test_expired_token_is_rejected(settings):
    issued = issue(settings, now=datetime.now(tz=UTC) - timedelta(days=8))
    assert session_service.verify_session_token(settings, issued.token) is None


def test_custom_ttl_is_honoured(settings):
    issued = issue(settings, ttl=timedelta(hours=1))
    assert issued.user.expires_at - issued.user.issued_at == timedelta(hours=1)


def test_wrong_issuer_is_rejected(settings):
    foreign = Settings(secret_key=TEST_KEY, token_issuer="someone-else")
    issued = issue(foreign)
    assert session_service.verify_session_token(settings, issued.token) is None


def test_missing_required_claim_is_rejected(settings):
    token = jwt.encode({"iss": "ems", "sub": "u-1", "username": "x"}, TEST_KEY, algorithm="HS256")
    assert session_service.verify_session_token(settings, token) is None


def test_malformed_role_claim_is_rejected(settings):
    now = int(datetime.now(tz=UTC).timestamp())
    token = jwt.encode(
        {
            "iss": "ems",
            "sub": "u-1",
            "username": "x",
            "role": "Admin",
            "permissions": [],
            "iat": now,
            "exp": now + 60,
        },
        TEST_KEY,
        algorithm="HS256",
    )
    assert session_service.verify_session_token(settings, token) is None


def test_require_signing_key_fails_closed():
    with pytest.raises(ConfigurationFault) as exc_info:
        session_service.require_signing_key(Settings(secret_key=""))
    assert exc_info.value.status_code == 500
    assert exc_info.value.code == "CONFIGURATION_ERROR"


def test_issue_without_key_fails_closed():
    with pytest.raises(ConfigurationFault):
        issue(Settings(secret_key=""))
