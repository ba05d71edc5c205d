from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
STATIC_DIR = Path(__file__).resolve().parent / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

NAV_LINKS = [
    {"name": "Home", "link": "/"},
    {"name": "Members", "link": "/members"},
    {"name": "Login", "link": "/login"},
    {"name": "Admin", "link": "/admin"},
    {"name": "404", "link": "/404"},
]


def render(
    request: Request,
    template: str,
    context: dict | None = None,
    status_code: int = 200,
):
    """Render ``template`` with the navigation and session every page uses."""
    ctx = {
        "nav_links": NAV_LINKS,
        "this_url": request.url.path,
        "session": getattr(request.state, "session", None),
    }
    if context:
        ctx.update(context)
    return templates.TemplateResponse(request, template, ctx, status_code=status_code)
