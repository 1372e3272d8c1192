# lineup/routers/session.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from lineup import auth, config, schemas
from lineup.controller import RosterController, get_action_controller
from lineup.db import get_db
from lineup.errors import AuthenticationError, OAuthExchangeError, UnsupportedProviderError
from lineup.store import RosterStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

# -----------------------------
# Sign in
# -----------------------------
@router.get("/login/{provider}")
def login(provider: str, db: Session = Depends(get_db)):
    controller = RosterController(RosterStore(db), auth.SessionNotifier())
    nonce = auth.new_oauth_nonce()
    try:
        url = controller.sign_in(provider, nonce)
    except UnsupportedProviderError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    response = RedirectResponse(url, status_code=status.HTTP_302_FOUND)
    auth.set_oauth_state_cookie(response, nonce)
    return response


def _complete_sign_in(
    request: Request,
    provider: str,
    code: Optional[str],
    state: Optional[str],
    error: Optional[str],
    user_field: Optional[str] = None,
):
    if error:
        raise HTTPException(status_code=400, detail=f"Sign-in failed: {error}")
    if not code or not state:
        raise HTTPException(status_code=400, detail="Missing code or state")

    try:
        auth.verify_oauth_state(state, provider, request.cookies.get(config.OAUTH_STATE_COOKIE_NAME))
        claims = auth.exchange_code(provider, code)
        user = auth.user_from_id_token(provider, claims, user_field)
    except (AuthenticationError, UnsupportedProviderError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except OAuthExchangeError as e:
        logger.error(f"OAuth error for {provider}: {e.message}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)

    token = auth.create_session_token(user)
    logger.info(f"Signed in {user.email} via {provider}")

    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    auth.set_session_cookie(response, token)
    auth.clear_oauth_state_cookie(response)
    return response


@router.get("/callback/{provider}")
def callback(
    request: Request,
    provider: str,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
):
    return _complete_sign_in(request, provider, code, state, error)


# Apple posts the callback as a form when name/email scopes are requested
@router.post("/callback/{provider}")
def callback_form_post(
    request: Request,
    provider: str,
    code: Optional[str] = Form(None),
    state: Optional[str] = Form(None),
    error: Optional[str] = Form(None),
    user: Optional[str] = Form(None),
):
    return _complete_sign_in(request, provider, code, state, error, user_field=user)

# -----------------------------
# Sign out
# -----------------------------
@router.post("/logout")
def logout(controller: RosterController = Depends(get_action_controller)):
    controller.sign_out()
    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(config.SESSION_COOKIE_NAME)
    return response

# -----------------------------
# Current session
# -----------------------------
@router.get("/me", response_model=schemas.MeOut)
def me(
    current_user=Depends(auth.get_current_user),
    controller: RosterController = Depends(get_action_controller),
):
    return {
        "user": current_user,
        "is_admin": controller.state.is_admin,
        "pending_request": controller.state.pending_request,
    }
