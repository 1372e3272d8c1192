# backend/lineup/views.py

from html import escape
from typing import Optional

from lineup.controller import AppState

PAGE_TITLE = "Team Lineup Manager"

STYLE = "max-width: 700px; margin: auto; padding: 2rem; font-family: sans-serif;"


def _button(action: str, label: str, method: str = "post") -> str:
    return (
        f'<form method="{method}" action="{escape(action)}" style="display: inline;">'
        f'<button type="submit">{escape(label)}</button></form>'
    )


def _signed_out() -> str:
    return (
        _button("/auth/login/google", "Sign in with Google", method="get")
        + " "
        + _button("/auth/login/apple", "Sign in with Apple", method="get")
    )


def _players(state: AppState) -> str:
    items = []
    for p in state.players:
        delete = ""
        if state.is_admin:
            delete = " " + _button(f"/ui/players/{p['id']}/delete", "Delete")
        items.append(f"<li>{escape(p['name'])}{delete}</li>")

    add = ""
    if state.is_admin:
        add = (
            '<form method="post" action="/ui/players">'
            '<input name="name" placeholder="Player name" required> '
            '<button type="submit">Add Player</button></form>'
        )
    return (
        '<div style="margin-top: 2rem;"><h2>Players</h2>'
        f"<ul>{''.join(items)}</ul>{add}</div>"
    )


def _coaches(state: AppState) -> str:
    items = "".join(
        f"<li>{escape(c['name'])} ({escape(c['email'])})</li>" for c in state.coaches
    )
    return f'<div style="margin-top: 2rem;"><h2>Coaches</h2><ul>{items}</ul></div>'


def _coach_requests(state: AppState) -> str:
    if not state.is_admin or not state.coach_requests:
        return ""
    items = []
    for r in state.coach_requests:
        items.append(
            f"<li>{escape(r['name'])} ({escape(r['email'])}) "
            + _button(f"/ui/coach-requests/{r['id']}/approve", "Approve")
            + " "
            + _button(f"/ui/coach-requests/{r['id']}/deny", "Deny")
            + "</li>"
        )
    return (
        '<div style="margin-top: 2rem;"><h2>Pending Coach Requests</h2>'
        f"<ul>{''.join(items)}</ul></div>"
    )


def _signed_in(state: AppState) -> str:
    parts = [
        f"<p>Signed in as: {escape(state.user.email or state.user.id)}</p>",
        _button("/auth/logout", "Sign out"),
        _players(state),
        _coaches(state),
    ]
    if not state.is_admin and not state.pending_request:
        parts.append(_button("/ui/request-access", "Request Admin Access"))
    if state.pending_request:
        parts.append("<p>Access request sent, waiting approval</p>")
    parts.append(_coach_requests(state))
    return "".join(parts)


def render_page(state: AppState, notice: Optional[str] = None) -> str:
    """Render the whole roster page for the given state."""
    notice = notice or state.notice
    banner = f'<p role="alert">{escape(notice)}</p>' if notice else ""
    body = _signed_out() if state.user is None else _signed_in(state)
    return (
        "<!DOCTYPE html>"
        f"<html><head><meta charset=\"utf-8\"><title>{PAGE_TITLE}</title></head>"
        f'<body><div style="{STYLE}"><h1>{PAGE_TITLE}</h1>{banner}{body}</div></body></html>'
    )
