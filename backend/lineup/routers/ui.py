# lineup/routers/ui.py

from typing import Optional
from urllib.parse import urlencode
from uuid import UUID

from fastapi import APIRouter, Depends, Form, status
from fastapi.responses import HTMLResponse, RedirectResponse

from lineup import views
from lineup.controller import RosterController, get_action_controller, get_controller

router = APIRouter(tags=["Page"])


def _back_to_page(controller: RosterController) -> RedirectResponse:
    url = "/"
    if controller.state.notice:
        url += "?" + urlencode({"notice": controller.state.notice})
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/", response_class=HTMLResponse)
def index(
    notice: Optional[str] = None,
    controller: RosterController = Depends(get_controller),
):
    return views.render_page(controller.state, notice=notice)


@router.post("/ui/players")
def add_player(
    name: str = Form(""),
    controller: RosterController = Depends(get_action_controller),
):
    controller.add_player(name)
    return _back_to_page(controller)


@router.post("/ui/players/{player_id}/delete")
def delete_player(player_id: UUID, controller: RosterController = Depends(get_action_controller)):
    controller.delete_player(player_id)
    return _back_to_page(controller)


@router.post("/ui/request-access")
def request_access(controller: RosterController = Depends(get_action_controller)):
    controller.request_access()
    return _back_to_page(controller)


@router.post("/ui/coach-requests/{request_id}/approve")
def approve_coach(request_id: UUID, controller: RosterController = Depends(get_action_controller)):
    controller.approve_coach(request_id)
    return _back_to_page(controller)


@router.post("/ui/coach-requests/{request_id}/deny")
def deny_coach(request_id: UUID, controller: RosterController = Depends(get_action_controller)):
    controller.deny_coach(request_id)
    return _back_to_page(controller)
