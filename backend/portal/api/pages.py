import random

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from portal.api.deps import get_request_session, require_session
from portal.sessions import RequestSession
from portal.views import render

router = APIRouter(tags=["pages"])

MEMBER_IMAGES = ["broccoli.svg", "carrot.svg", "pepper.svg"]


@router.get("/")
async def index(request: Request, session: RequestSession = Depends(get_request_session)):
    return render(
        request,
        "index.html",
        {"logged_in": bool(session.authenticated), "name": session.name},
    )


@router.get("/about")
async def about(request: Request):
    return render(request, "about.html")


@router.get("/members")
async def members(request: Request, session: RequestSession = Depends(require_session)):
    if not session.authenticated:
        return RedirectResponse("/", status_code=302)
    return render(
        request,
        "members.html",
        {"name": session.name, "image": random.choice(MEMBER_IMAGES)},
    )
