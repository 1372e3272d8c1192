# backend/lineup/auth.py

import json
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional
from urllib.parse import urlencode

import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lineup import config, models
from lineup.db import get_db
from lineup.errors import (
    AuthenticationError,
    OAuthExchangeError,
    StoreError,
    UnsupportedProviderError,
)
from lineup.schemas import SessionUser
from lineup.store import RosterStore

logger = logging.getLogger(__name__)

# Bearer token is optional; browsers use the session cookie instead
bearer_scheme = HTTPBearer(auto_error=False)

# -----------------------------
# OAuth providers
# -----------------------------
PROVIDERS = {
    "google": {
        "authorize_url": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_url": "https://oauth2.googleapis.com/token",
        "scope": "openid email profile",
        "extra_params": {},
    },
    "apple": {
        "authorize_url": "https://appleid.apple.com/auth/authorize",
        "token_url": "https://appleid.apple.com/auth/token",
        "scope": "name email",
        # Apple only returns name/email when the callback is a form POST
        "extra_params": {"response_mode": "form_post"},
    },
}


def _client_credentials(provider: str):
    if provider not in PROVIDERS:
        raise UnsupportedProviderError(f"Unsupported sign-in provider: {provider}")
    if provider == "google":
        client_id, client_secret = config.GOOGLE_CLIENT_ID, config.GOOGLE_CLIENT_SECRET
    else:
        client_id, client_secret = config.APPLE_CLIENT_ID, config.APPLE_CLIENT_SECRET
    if not client_id:
        raise UnsupportedProviderError(f"{provider.title()} sign-in is not configured")
    return client_id, client_secret


def redirect_uri(provider: str) -> str:
    return f"{config.PUBLIC_BASE_URL}/auth/callback/{provider}"


# -----------------------------
# JWT utilities
# -----------------------------
def _secret_key() -> str:
    if not config.SECRET_KEY:
        raise RuntimeError("SECRET_KEY is not set in environment variables")
    return config.SECRET_KEY


def new_oauth_nonce() -> str:
    return secrets.token_urlsafe(16)


def create_oauth_state(provider: str, nonce: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=config.OAUTH_STATE_EXPIRE_MINUTES)
    to_encode = {"provider": provider, "nonce": nonce, "exp": expire}
    return jwt.encode(to_encode, _secret_key(), algorithm=config.ALGORITHM)


def verify_oauth_state(state: str, provider: str, nonce: Optional[str]) -> None:
    """
    Check a callback's state against the nonce cookie set when sign-in started.

    The nonce ties the state to the browser that began the flow.
    """
    try:
        payload = jwt.decode(state, _secret_key(), algorithms=[config.ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid or expired sign-in state")
    if payload.get("provider") != provider:
        raise AuthenticationError("Sign-in state does not match provider")
    expected = payload.get("nonce")
    if not nonce or not expected or not secrets.compare_digest(str(expected), nonce):
        raise AuthenticationError("Sign-in was not started from this browser")


def create_session_token(user: SessionUser, expires_delta: timedelta = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.SESSION_EXPIRE_MINUTES))
    to_encode = {
        "sub": user.id,
        "email": user.email,
        "name": user.full_name,
        "provider": user.provider,
        "jti": uuid.uuid4().hex,
        "exp": expire,
    }
    return jwt.encode(to_encode, _secret_key(), algorithm=config.ALGORITHM)


def decode_session_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, _secret_key(), algorithms=[config.ALGORITHM])
    except JWTError:
        raise AuthenticationError("Could not validate credentials")
    if payload.get("sub") is None or payload.get("jti") is None:
        raise AuthenticationError("Could not validate credentials")
    return payload


def session_user_from_claims(claims: dict) -> SessionUser:
    return SessionUser(
        id=claims["sub"],
        email=claims.get("email"),
        full_name=claims.get("name"),
        provider=claims.get("provider", "unknown"),
    )


# -----------------------------
# Sign-in flow
# -----------------------------
def build_authorize_url(provider: str, nonce: str) -> str:
    """Start the redirect-based OAuth flow for google or apple."""
    client_id, _ = _client_credentials(provider)
    settings = PROVIDERS[provider]
    params = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri(provider),
        "scope": settings["scope"],
        "state": create_oauth_state(provider, nonce),
        **settings["extra_params"],
    }
    return f"{settings['authorize_url']}?{urlencode(params)}"


def exchange_code(provider: str, code: str) -> dict:
    """
    Exchange an authorization code and return the ID token claims.

    The ID token comes straight from the provider's token endpoint over TLS,
    so its claims are read without checking the signature.
    """
    client_id, client_secret = _client_credentials(provider)
    try:
        response = httpx.post(
            PROVIDERS[provider]["token_url"],
            data={
                "grant_type": "authorization_code",
                "code": code,
                "client_id": client_id,
                "client_secret": client_secret,
                "redirect_uri": redirect_uri(provider),
            },
            timeout=10,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise OAuthExchangeError(f"{provider.title()} token exchange failed: {e}") from e

    id_token = response.json().get("id_token")
    if not id_token:
        raise OAuthExchangeError(f"{provider.title()} did not return an ID token")
    try:
        return jwt.get_unverified_claims(id_token)
    except JWTError as e:
        raise OAuthExchangeError(f"{provider.title()} returned a malformed ID token") from e


def user_from_id_token(provider: str, claims: dict, user_field: Optional[str] = None) -> SessionUser:
    if not claims.get("sub"):
        raise OAuthExchangeError("ID token has no subject")

    full_name = claims.get("name")
    # Apple sends the name once, on first sign-in, as a JSON form field
    if not full_name and user_field:
        try:
            name = json.loads(user_field).get("name") or {}
        except (ValueError, AttributeError):
            name = {}
        if not isinstance(name, dict):
            name = {}
        full_name = " ".join(p for p in (name.get("firstName"), name.get("lastName")) if p) or None

    # Admin rights hang off the email, so only a provider-verified one is kept.
    # Apple sends email_verified as the string "true".
    verified = claims.get("email_verified") in (True, "true")
    if claims.get("email") and not verified:
        logger.warning(f"Ignoring unverified {provider} email for subject {claims['sub']}")

    return SessionUser(
        id=claims["sub"],
        email=claims.get("email") if verified else None,
        full_name=full_name,
        provider=provider,
    )


# -----------------------------
# Sign-out
# -----------------------------
def is_revoked(db: Session, jti: str) -> bool:
    return db.get(models.RevokedSession, jti) is not None


def revoke_session(db: Session, claims: dict) -> None:
    jti = claims.get("jti")
    if not jti:
        return
    expires_at = None
    if claims.get("exp") is not None:
        expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
    try:
        # rows for tokens past their exp are no longer needed
        db.query(models.RevokedSession).filter(
            models.RevokedSession.expires_at < datetime.now(timezone.utc)
        ).delete(synchronize_session=False)
        db.merge(models.RevokedSession(jti=jti, expires_at=expires_at))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError("Could not end the session") from e
    logger.info(f"Revoked session {jti}")


def set_session_cookie(response, token: str) -> None:
    response.set_cookie(
        config.SESSION_COOKIE_NAME,
        token,
        max_age=config.SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=config.PUBLIC_BASE_URL.startswith("https://"),
    )


def set_oauth_state_cookie(response, nonce: str) -> None:
    secure = config.PUBLIC_BASE_URL.startswith("https://")
    response.set_cookie(
        config.OAUTH_STATE_COOKIE_NAME,
        nonce,
        max_age=config.OAUTH_STATE_EXPIRE_MINUTES * 60,
        path="/auth",
        httponly=True,
        # Apple's form_post callback is a cross-site POST, which drops Lax cookies
        samesite="none" if secure else "lax",
        secure=secure,
    )


def clear_oauth_state_cookie(response) -> None:
    response.delete_cookie(config.OAUTH_STATE_COOKIE_NAME, path="/auth")


# -----------------------------
# Auth-state notifications
# -----------------------------
class SessionNotifier:
    """Tells subscribers about the current session and every later change."""

    def __init__(self, user: Optional[SessionUser] = None, claims: Optional[dict] = None):
        self.user = user
        self.claims = claims
        self._listeners: List[Callable[[Optional[SessionUser]], None]] = []

    @classmethod
    def from_claims(cls, claims: Optional[dict]) -> "SessionNotifier":
        if not claims:
            return cls()
        return cls(session_user_from_claims(claims), claims)

    def subscribe(self, callback: Callable[[Optional[SessionUser]], None]) -> Callable[[], None]:
        self._listeners.append(callback)
        callback(self.user)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def publish(self, user: Optional[SessionUser], claims: Optional[dict] = None) -> None:
        self.user = user
        self.claims = claims
        for callback in list(self._listeners):
            callback(user)


# -----------------------------
# FastAPI dependencies
# -----------------------------
def get_session_claims(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[dict]:
    token = credentials.credentials if credentials else request.cookies.get(config.SESSION_COOKIE_NAME)
    if not token:
        return None
    try:
        claims = decode_session_token(token)
    except AuthenticationError:
        return None
    if is_revoked(db, claims["jti"]):
        return None
    return claims


def get_current_user(claims: Optional[dict] = Depends(get_session_claims)) -> SessionUser:
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session_user_from_claims(claims)


def is_coach_email(db: Session, email: Optional[str]) -> bool:
    if not email:
        return False
    return RosterStore(db).query_one_by_field("coaches", "email", email) is not None


def require_admin(
    current_user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SessionUser:
    try:
        admin = is_coach_email(db, current_user.email)
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    if not admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: Admin access required")
    return current_user
