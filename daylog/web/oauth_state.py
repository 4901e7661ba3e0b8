"""Signed OAuth state blob carrying a nonce and the origin to return to."""

import uuid
from typing import Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer
from pydantic import BaseModel, ValidationError

STATE_MAX_AGE = 10 * 60
_SALT = "daylog.linear.oauth-state"


class OAuthState(BaseModel):
    id: str
    return_to: str


class InvalidStateError(ValueError):
    """State blob is missing, tampered with, expired or malformed."""


def _serializer(secret_key: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key, salt=_SALT)


def encode_state(
    secret_key: str, return_to: str, state_id: Optional[str] = None
) -> tuple[OAuthState, str]:
    """Return the state and its signed, URL-safe encoding."""
    state = OAuthState(id=state_id or str(uuid.uuid4()), return_to=return_to)
    token = _serializer(secret_key).dumps({"id": state.id, "returnTo": state.return_to})
    return state, token


def decode_state(secret_key: str, token: str, max_age: int = STATE_MAX_AGE) -> OAuthState:
    """Verify signature and age, then parse. Raises InvalidStateError."""
    try:
        data = _serializer(secret_key).loads(token, max_age=max_age)
    except BadSignature as e:
        # SignatureExpired is a BadSignature subclass
        raise InvalidStateError("Invalid state.") from e
    if not isinstance(data, dict):
        raise InvalidStateError("Invalid state.")
    try:
        state = OAuthState(id=data.get("id"), return_to=data.get("returnTo") or "")
    except ValidationError as e:
        raise InvalidStateError("Invalid state.") from e
    if not state.return_to:
        raise InvalidStateError("Missing return URL in state.")
    return state
