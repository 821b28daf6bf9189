# dashboard/auth.py
import logging
from typing import Any, Mapping, Optional

from fastapi import Request
from itsdangerous import BadSignature
from pydantic import ValidationError
from sqlalchemy.orm import Session

from . import models, utils
from .schemas import Credentials

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"


class AuthError(Exception):
    """Sign-in failure; `type` says which kind (CredentialsSignin, CallbackRouteError, ...)."""

    def __init__(self, type: str, message: str = ""):
        super().__init__(message or type)
        self.type = type


class LoginRequired(Exception):
    def __init__(self, next_path: str):
        super().__init__(next_path)
        self.next_path = next_path


def sign_in(db_session: Session, form: Mapping[str, Any]) -> models.User:
    """
    Check email/password against the users table.
    Bad or unknown credentials raise AuthError("CredentialsSignin").
    """
    try:
        creds = Credentials(email=form.get("email"), password=form.get("password"))
    except ValidationError:
        raise AuthError("CredentialsSignin", "credentials failed validation")

    user = db_session.query(models.User).filter(models.User.email == creds.email).first()
    if not user:
        raise AuthError("CredentialsSignin", "unknown user")

    try:
        matches = utils.verify_password(creds.password, user.password)
    except ValueError as e:
        logger.error("Stored password hash for user %s is unusable: %s", user.id, e)
        raise AuthError("CallbackRouteError", "password hash could not be checked") from e
    if not matches:
        raise AuthError("CredentialsSignin", "password mismatch")
    return user


def create_session_token(user: models.User) -> str:
    return utils.sign_payload({"user_id": user.id})


def session_user_id(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    try:
        payload = utils.unsign_payload(token)
    except BadSignature:
        return None
    return payload.get("user_id")


def require_user(request: Request) -> str:
    """Dependency for dashboard routes; unauthenticated requests go to /login."""
    user_id = session_user_id(request.cookies.get(SESSION_COOKIE))
    if not user_id:
        next_path = request.url.path
        if request.url.query:
            next_path += "?" + request.url.query
        raise LoginRequired(next_path)
    return user_id


def safe_redirect_target(target: Optional[str], default: str = "/dashboard") -> str:
    # same-site paths only; "//host" would leave the site
    if not target or not target.startswith("/") or target.startswith("//"):
        return default
    return target
