# backend/lineup/controller.py
"""
View controller for the roster page.

All UI state lives in one AppState record and only changes through
RosterController._apply, so a controller that has been unmounted never
updates a view that is gone.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from lineup import auth
from lineup.db import get_db
from lineup.errors import LineupError, StoreError
from lineup.schemas import SessionUser
from lineup.store import RosterStore

logger = logging.getLogger(__name__)

DEFAULT_COACH_NAME = "Coach"


@dataclass
class AppState:
    user: Optional[SessionUser] = None
    is_admin: bool = False
    players: List[Dict[str, Any]] = field(default_factory=list)
    coaches: List[Dict[str, Any]] = field(default_factory=list)
    coach_requests: List[Dict[str, Any]] = field(default_factory=list)
    pending_request: bool = False
    notice: Optional[str] = None


class RosterController:
    def __init__(self, store: RosterStore, notifier: auth.SessionNotifier):
        self.store = store
        self.notifier = notifier
        self.state = AppState()
        self._alive = False
        self._unsubscribe = None

    # -----------------------------
    # Lifecycle
    # -----------------------------
    def mount(self, fetch_lists: bool = True) -> None:
        """Subscribe to session changes; form handlers skip the initial list fetch."""
        self._alive = True
        self._unsubscribe = self.notifier.subscribe(self._on_auth_state_change)
        if not fetch_lists:
            return
        self.fetch_players()
        self.fetch_coaches()
        self.fetch_coach_requests()

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._alive = False

    def _apply(self, **changes) -> None:
        if not self._alive:
            logger.debug(f"Dropping state update after unmount: {sorted(changes)}")
            return
        for key, value in changes.items():
            setattr(self.state, key, value)

    def _report(self, error: LineupError) -> None:
        logger.warning(error.message)
        self._apply(notice=error.message)

    # -----------------------------
    # Session & admin resolution
    # -----------------------------
    def _on_auth_state_change(self, user: Optional[SessionUser]) -> None:
        # user and admin flag change together
        is_admin = self._resolve_admin(user)
        pending = False if is_admin else self._resolve_pending(user)
        self._apply(user=user, is_admin=is_admin, pending_request=pending)

    def _resolve_admin(self, user: Optional[SessionUser]) -> bool:
        if user is None or not user.email:
            return False
        try:
            return self.store.query_one_by_field("coaches", "email", user.email) is not None
        except StoreError as e:
            logger.warning(f"Admin lookup failed for {user.email}: {e.message}")
            return False

    def _resolve_pending(self, user: Optional[SessionUser]) -> bool:
        if user is None or not user.email:
            return False
        try:
            return self.store.query_one_by_field("coach_requests", "email", user.email) is not None
        except StoreError as e:
            logger.warning(f"Pending request lookup failed for {user.email}: {e.message}")
            return False

    def sign_in(self, provider: str, nonce: Optional[str] = None) -> str:
        """Return the provider URL that starts sign-in; state arrives later via the notifier."""
        url = auth.build_authorize_url(provider, nonce or auth.new_oauth_nonce())
        logger.info(f"Starting {provider} sign-in")
        return url

    def sign_out(self) -> None:
        claims = self.notifier.claims
        if claims:
            try:
                auth.revoke_session(self.store.db, claims)
            except LineupError as e:
                logger.warning(f"Session revoke failed: {e.message}")
        if self.state.user is not None:
            logger.info(f"Signed out {self.state.user.email}")
        self.notifier.publish(None)
        self._apply(user=None, is_admin=False, pending_request=False, coach_requests=[])

    # -----------------------------
    # List fetchers
    # -----------------------------
    def _fetch(self, relation: str) -> List[Dict[str, Any]]:
        try:
            return self.store.query_all(relation) or []
        except StoreError as e:
            self._report(e)
            return []

    def fetch_players(self) -> None:
        self._apply(players=self._fetch("players"))

    def fetch_coaches(self) -> None:
        self._apply(coaches=self._fetch("coaches"))

    def fetch_coach_requests(self) -> None:
        if not self.state.is_admin:
            self._apply(coach_requests=[])
            return
        self._apply(coach_requests=self._fetch("coach_requests"))

    # -----------------------------
    # Mutations
    # -----------------------------
    def _require_admin(self) -> bool:
        if not self.state.is_admin:
            self._apply(notice="Admin access required")
            return False
        return True

    def add_player(self, name: Optional[str]) -> None:
        name = (name or "").strip()
        if not name or not self._require_admin():
            return
        try:
            self.store.insert("players", {"name": name})
        except StoreError as e:
            self._report(e)
        self.fetch_players()

    def delete_player(self, player_id) -> None:
        if not self._require_admin():
            return
        try:
            if not self.store.delete_by_field("players", "id", player_id):
                self._apply(notice="Player not found")
        except StoreError as e:
            self._report(e)
        self.fetch_players()

    def request_access(self) -> None:
        user = self.state.user
        if user is None:
            self._apply(notice="Sign in first")
            return
        if self.state.is_admin:
            self._apply(notice="You already have admin access")
            return
        if self.state.pending_request:
            self._apply(notice="Access request already pending")
            return
        if not user.email:
            self._apply(notice="Your account has no email address")
            return
        try:
            self.store.insert("coach_requests", {
                "name": user.full_name or DEFAULT_COACH_NAME,
                "email": user.email,
            })
        except StoreError as e:
            self._report(e)
            return
        logger.info(f"Coach access requested by {user.email}")
        self._apply(pending_request=True)

    def _find_request(self, request_id) -> Optional[Dict[str, Any]]:
        for request in self.state.coach_requests:
            if str(request["id"]) == str(request_id):
                return request
        return None

    def approve_coach(self, request_id) -> None:
        if not self._require_admin():
            return
        if not self.state.coach_requests:
            self.fetch_coach_requests()
        if self._find_request(request_id) is None:
            self._apply(notice="Coach request not found")
            return
        try:
            if self.store.approve_coach_request(request_id) is None:
                self._apply(notice="Coach request not found")
        except StoreError as e:
            self._report(e)
        self.fetch_coaches()
        self.fetch_coach_requests()

    def deny_coach(self, request_id) -> None:
        if not self._require_admin():
            return
        try:
            self.store.delete_by_field("coach_requests", "id", request_id)
        except StoreError as e:
            self._report(e)
        self.fetch_coach_requests()


# -----------------------------
# FastAPI dependency
# -----------------------------
def get_controller(
    claims: Optional[dict] = Depends(auth.get_session_claims),
    db: Session = Depends(get_db),
):
    controller = RosterController(RosterStore(db), auth.SessionNotifier.from_claims(claims))
    controller.mount()
    try:
        yield controller
    finally:
        controller.unmount()


def get_action_controller(
    claims: Optional[dict] = Depends(auth.get_session_claims),
    db: Session = Depends(get_db),
):
    # form endpoints redirect to the page, which does the full fetch
    controller = RosterController(RosterStore(db), auth.SessionNotifier.from_claims(claims))
    controller.mount(fetch_lists=False)
    try:
        yield controller
    finally:
        controller.unmount()
