"""
Tests for session tokens, the OAuth sign-in flow and auth-state notifications.
"""
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from jose import jwt

from lineup import auth, config, models
from lineup.errors import AuthenticationError, OAuthExchangeError, UnsupportedProviderError


def _query(url):
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


def _id_token(**claims):
    return jwt.encode(claims, "provider-signing-key", algorithm="HS256")


def _fake_token_endpoint(monkeypatch, status_code=200, payload=None):
    calls = []

    def fake_post(url, data=None, timeout=None):
        calls.append({"url": url, "data": data})
        return httpx.Response(status_code, json=payload or {}, request=httpx.Request("POST", url))

    monkeypatch.setattr(auth.httpx, "post", fake_post)
    return calls


# ============================================================================
# Session tokens
# ============================================================================

def test_session_token_round_trip(make_user):
    user = make_user()

    claims = auth.decode_session_token(auth.create_session_token(user))

    assert auth.session_user_from_claims(claims) == user
    assert claims["jti"]


def test_each_session_token_has_its_own_jti(make_user):
    user = make_user()
    first = auth.decode_session_token(auth.create_session_token(user))
    second = auth.decode_session_token(auth.create_session_token(user))

    assert first["jti"] != second["jti"]


def test_expired_session_token_rejected(make_user):
    token = auth.create_session_token(make_user(), expires_delta=timedelta(minutes=-1))

    with pytest.raises(AuthenticationError):
        auth.decode_session_token(token)


def test_tampered_session_token_rejected(make_user):
    token = jwt.encode({"sub": "x", "jti": "y"}, "some-other-key", algorithm="HS256")

    with pytest.raises(AuthenticationError):
        auth.decode_session_token(token)


def test_missing_secret_key(monkeypatch, make_user):
    monkeypatch.setattr(config, "SECRET_KEY", None)

    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        auth.create_session_token(make_user())


def test_revoke_session(db, make_user):
    claims = auth.decode_session_token(auth.create_session_token(make_user()))
    assert not auth.is_revoked(db, claims["jti"])

    auth.revoke_session(db, claims)
    auth.revoke_session(db, claims)

    assert auth.is_revoked(db, claims["jti"])


def test_revoke_session_purges_expired_rows(db, make_user):
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    db.add(models.RevokedSession(jti="old-jti", expires_at=past))
    db.commit()
    claims = auth.decode_session_token(auth.create_session_token(make_user()))

    auth.revoke_session(db, claims)

    assert not auth.is_revoked(db, "old-jti")
    assert auth.is_revoked(db, claims["jti"])
    assert db.get(models.RevokedSession, claims["jti"]).expires_at is not None


# ============================================================================
# Authorize URLs & state
# ============================================================================

def test_google_authorize_url():
    url = auth.build_authorize_url("google", "nonce-1")
    params = _query(url)

    assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
    assert params["client_id"] == "test-google-client"
    assert params["response_type"] == "code"
    assert params["scope"] == "openid email profile"
    assert params["redirect_uri"].endswith("/auth/callback/google")
    auth.verify_oauth_state(params["state"], "google", "nonce-1")


def test_apple_authorize_url_uses_form_post():
    params = _query(auth.build_authorize_url("apple", "nonce-1"))

    assert params["client_id"] == "test.apple.service"
    assert params["response_mode"] == "form_post"
    assert params["scope"] == "name email"


def test_unsupported_provider():
    with pytest.raises(UnsupportedProviderError):
        auth.build_authorize_url("github", "nonce-1")


def test_unconfigured_provider(monkeypatch):
    monkeypatch.setattr(config, "APPLE_CLIENT_ID", "")

    with pytest.raises(UnsupportedProviderError, match="not configured"):
        auth.build_authorize_url("apple", "nonce-1")


def test_state_for_other_provider_rejected():
    state = auth.create_oauth_state("google", "nonce-1")

    with pytest.raises(AuthenticationError, match="provider"):
        auth.verify_oauth_state(state, "apple", "nonce-1")


def test_state_from_other_browser_rejected():
    state = auth.create_oauth_state("google", "nonce-1")

    with pytest.raises(AuthenticationError, match="not started from this browser"):
        auth.verify_oauth_state(state, "google", "nonce-2")
    with pytest.raises(AuthenticationError, match="not started from this browser"):
        auth.verify_oauth_state(state, "google", None)


def test_garbage_state_rejected():
    with pytest.raises(AuthenticationError):
        auth.verify_oauth_state("not-a-token", "google", "nonce-1")


# ============================================================================
# Code exchange
# ============================================================================

def test_exchange_code_returns_id_token_claims(monkeypatch):
    calls = _fake_token_endpoint(monkeypatch, payload={
        "access_token": "at",
        "id_token": _id_token(sub="g-123", email="pat@example.com", name="Pat Player"),
    })

    claims = auth.exchange_code("google", "auth-code")

    assert claims["sub"] == "g-123"
    assert claims["email"] == "pat@example.com"
    assert calls[0]["url"] == "https://oauth2.googleapis.com/token"
    assert calls[0]["data"]["code"] == "auth-code"
    assert calls[0]["data"]["client_secret"] == "test-google-secret"


def test_exchange_code_http_error(monkeypatch):
    _fake_token_endpoint(monkeypatch, status_code=400, payload={"error": "invalid_grant"})

    with pytest.raises(OAuthExchangeError, match="token exchange failed"):
        auth.exchange_code("google", "bad-code")


def test_exchange_code_without_id_token(monkeypatch):
    _fake_token_endpoint(monkeypatch, payload={"access_token": "at"})

    with pytest.raises(OAuthExchangeError, match="did not return an ID token"):
        auth.exchange_code("apple", "code")


def test_user_from_google_id_token():
    user = auth.user_from_id_token("google", {
        "sub": "g-1", "email": "pat@example.com", "email_verified": True, "name": "Pat",
    })

    assert user.id == "g-1"
    assert user.email == "pat@example.com"
    assert user.full_name == "Pat"
    assert user.provider == "google"


def test_unverified_email_is_dropped():
    user = auth.user_from_id_token("google", {"sub": "g-1", "email": "ada@example.com", "email_verified": False})

    assert user.email is None
    assert auth.user_from_id_token("google", {"sub": "g-1", "email": "ada@example.com"}).email is None


def test_apple_string_email_verified_is_accepted():
    user = auth.user_from_id_token("apple", {"sub": "a-1", "email": "bob@x.com", "email_verified": "true"})

    assert user.email == "bob@x.com"


def test_user_from_apple_id_token_reads_first_login_name():
    user_field = '{"name": {"firstName": "Bob", "lastName": "Smith"}, "email": "bob@x.com"}'

    user = auth.user_from_id_token("apple", {"sub": "a-1", "email": "bob@x.com"}, user_field)

    assert user.full_name == "Bob Smith"


def test_user_from_apple_id_token_without_name():
    user = auth.user_from_id_token("apple", {"sub": "a-1", "email": "bob@x.com"}, "not json")

    assert user.full_name is None


def test_id_token_without_subject():
    with pytest.raises(OAuthExchangeError):
        auth.user_from_id_token("google", {"email": "pat@example.com"})


# ============================================================================
# Notifier
# ============================================================================

def test_notifier_fires_on_subscribe_and_publish(make_user):
    seen = []
    notifier = auth.SessionNotifier()

    unsubscribe = notifier.subscribe(seen.append)
    user = make_user()
    notifier.publish(user)
    unsubscribe()
    notifier.publish(None)

    assert seen == [None, user]


def test_notifier_from_claims(make_user):
    user = make_user()
    claims = auth.decode_session_token(auth.create_session_token(user))

    notifier = auth.SessionNotifier.from_claims(claims)

    assert notifier.user == user
    assert notifier.claims is claims
    assert auth.SessionNotifier.from_claims(None).user is None
