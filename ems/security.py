# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Password hashing helpers."""

import bcrypt

BCRYPT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
PASSWORD_MAX_BYTES = 72

# Checked against when the principal does not exist, so a miss costs the same
# as a wrong password.
_DUMMY_HASH = bcrypt.hashpw(b"ems-timing-equalizer", bcrypt.gensalt(BCRYPT_ROUNDS))


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > PASSWORD_MAX_BYTES


def get_password_hash(password: str) -> str:
    """Hash a password with a fresh per-record salt.

    Raises ValueError for passwords longer than ``PASSWORD_MAX_BYTES``.
    """
    if password_too_long(password):
        raise ValueError(f"Password cannot be longer than {PASSWORD_MAX_BYTES} bytes.")
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a password against a stored bcrypt hash.

    A missing hash, a malformed hash and an over-long password all return False
    the same way.
    """
    candidate = hashed_password.encode("utf-8") if hashed_password else _DUMMY_HASH
    try:
        matched = bcrypt.checkpw(plain_password.encode("utf-8"), candidate)
    except ValueError:
        return False
    return matched and bool(hashed_password)
