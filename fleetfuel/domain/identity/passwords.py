from __future__ import annotations

import base64
import hashlib
import hmac
import os

PBKDF2_ALG = "sha256"
PBKDF2_ITERATIONS = 210_000
SALT_BYTES = 16
DKLEN = 32


def hash_password(password: str, *, iterations: int = PBKDF2_ITERATIONS) -> str:
    salt = os.urandom(SALT_BYTES)
    dk = hashlib.pbkdf2_hmac(PBKDF2_ALG, password.encode("utf-8"), salt, iterations, dklen=DKLEN)
    return "pbkdf2_sha256${}${}${}".format(
        iterations,
        base64.urlsafe_b64encode(salt).decode("ascii").rstrip("="),
        base64.urlsafe_b64encode(dk).decode("ascii").rstrip("="),
    )


def _b64decode_nopad(value: str) -> bytes:
    pad = "=" * ((4 - (len(value) % 4)) % 4)
    return base64.urlsafe_b64decode((value + pad).encode("ascii"))


def verify_password(password: str, stored: str) -> bool:
    try:
        scheme, iters_s, salt_s, hash_s = stored.split("$", 3)
        iters = int(iters_s)
        salt = _b64decode_nopad(salt_s)
        expected = _b64decode_nopad(hash_s)
    except ValueError:
        return False
    if scheme != "pbkdf2_sha256":
        return False

    dk = hashlib.pbkdf2_hmac(PBKDF2_ALG, password.encode("utf-8"), salt, iters, dklen=len(expected))
    return hmac.compare_digest(dk, expected)
