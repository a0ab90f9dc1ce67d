from __future__ import annotations

import secrets
from dataclasses import dataclass
from enum import Enum

from fastapi import Request

GATEWAY_TOKEN_HEADER = "X-Gateway-Token"
USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"
USER_EMAIL_HEADER = "X-User-Email"
USER_NAME_HEADER = "X-User-Name"

MAX_USER_ID_LENGTH = 128


class ViewerRole(str, Enum):
    INSTRUCTOR = "INSTRUCTOR"
    STUDENT = "STUDENT"


class IdentityError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class Viewer:
    user_id: str
    role: ViewerRole
    email: str | None = None
    display_name: str | None = None

    @property
    def is_instructor(self) -> bool:
        return self.role is ViewerRole.INSTRUCTOR

    @property
    def is_student(self) -> bool:
        return self.role is ViewerRole.STUDENT


def is_valid_gateway_token(*, expected_token: str, received_token: str | None) -> bool:
    if not expected_token or not received_token:
        return False
    return secrets.compare_digest(expected_token, received_token)


def _header(request: Request, name: str) -> str | None:
    value = request.headers.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_role(raw: str | None) -> ViewerRole:
    try:
        return ViewerRole((raw or "").strip().upper())
    except ValueError as exc:
        raise IdentityError(f"unsupported role {raw!r}") from exc


def resolve_viewer(request: Request, *, expected_token: str) -> Viewer:
    """Trusts identity headers only when the gateway token matches."""
    if not is_valid_gateway_token(
        expected_token=expected_token,
        received_token=request.headers.get(GATEWAY_TOKEN_HEADER),
    ):
        raise IdentityError("invalid gateway token")

    user_id = _header(request, USER_ID_HEADER)
    if user_id is None or len(user_id) > MAX_USER_ID_LENGTH:
        raise IdentityError("missing user id")

    return Viewer(
        user_id=user_id,
        role=parse_role(_header(request, USER_ROLE_HEADER)),
        email=_header(request, USER_EMAIL_HEADER),
        display_name=_header(request, USER_NAME_HEADER),
    )
