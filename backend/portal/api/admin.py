from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from portal.api.deps import get_users, require_admin
from portal.services.users import UserRepository
from portal.sessions import RequestSession
from portal.views import render

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("")
async def list_users(
    request: Request,
    users: UserRepository = Depends(get_users),
    _admin: RequestSession = Depends(require_admin),
):
    return render(request, "admin.html", {"users": users.list_all()})


@router.get("/promote")
async def promote(
    name: str | None = None,
    users: UserRepository = Depends(get_users),
    _admin: RequestSession = Depends(require_admin),
):
    if name:
        users.set_role(name, "admin")
    return RedirectResponse("/admin", status_code=302)


@router.get("/demote")
async def demote(
    name: str | None = None,
    users: UserRepository = Depends(get_users),
    _admin: RequestSession = Depends(require_admin),
):
    if name:
        users.set_role(name, "user")
    return RedirectResponse("/admin", status_code=302)
