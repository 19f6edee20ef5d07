"""Issuing and reading signed session tokens."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from storefront.models import BAD_INIT_SECRET_KEY, TOKEN_ERROR, TOKEN_ERROR_DESCR

FIELD_NAME_ID = "id"
FIELD_NAME_TIME = "exp"
TOKEN_LIFETIME = timedelta(hours=72)
ALGORITHM = "HS256"

_MAX_ID = 2**64 - 1
_DIGITS = re.compile(r"[0-9]+")


class TokenError(Exception):
    """Raised when a request carries no usable token."""

    code = TOKEN_ERROR

    def __init__(self, message: str = TOKEN_ERROR_DESCR) -> None:
        super().__init__(message)


class TokenManager:
    """Signs user tokens with a shared secret and reads the user id back."""

    def __init__(self, secret_key: str) -> None:
        if not secret_key:
            raise ValueError(BAD_INIT_SECRET_KEY)
        self._secret_key = secret_key

    def get_token(self, user_id: int, name: str) -> str:
        """Return a signed token for the user that expires in 72 hours."""
        expires = datetime.now(timezone.utc) + TOKEN_LIFETIME
        claims = {FIELD_NAME_ID: str(user_id), FIELD_NAME_TIME: int(expires.timestamp())}
        return jwt.encode(claims, self._secret_key, algorithm=ALGORITHM)

    def parse_token_from_context(self, ctx: Mapping[str, Any]) -> int:
        """Return the user id from the request context's "token" entry.

        The entry may hold verified claims or an encoded token string.
        """
        token = ctx.get("token") if isinstance(ctx, Mapping) else None
        if isinstance(token, str):
            try:
                claims = jwt.decode(token, self._secret_key, algorithms=[ALGORITHM])
            except jwt.PyJWTError as exc:
                raise TokenError() from exc
        elif isinstance(token, Mapping):
            claims = token
        else:
            raise TokenError()

        id_text = claims.get(FIELD_NAME_ID)
        if not isinstance(id_text, str) or not _DIGITS.fullmatch(id_text):
            raise TokenError()
        user_id = int(id_text)
        if user_id > _MAX_ID:
            raise TokenError()
        return user_id