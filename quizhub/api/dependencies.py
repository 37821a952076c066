"""Request dependencies: the calling principal and the server container."""

from typing import Optional

from fastapi import Header, Request

from ..constants import ERROR_AUTH_REQUIRED, ROLE_STUDENT, ROLES
from ..server import QuizHubServer
from ..services.base import Principal
from ..utils.errors import AuthenticationError


def get_server(request: Request) -> QuizHubServer:
    return request.app.state.server


def get_principal(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Principal:
    """The caller as identified by the upstream auth layer.

    Raises:
        AuthenticationError: If no user id header is present
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError(ERROR_AUTH_REQUIRED)
    role = x_user_role if x_user_role in ROLES else ROLE_STUDENT
    return Principal(user_id=x_user_id.strip(), role=role)
