"""Template rendering and redirect helpers shared by every route module."""
from pathlib import Path
from typing import Optional

from fastapi import Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

import models

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def render(
    request: Request,
    name: str,
    current_user: Optional[models.User] = None,
    status_code: int = status.HTTP_200_OK,
    **context,
):
    """Render ``name`` with the caller's identity available to every template."""
    context.update(current_user=current_user, is_authenticated=current_user is not None)
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def redirect(url: str) -> RedirectResponse:
    # 303 so that browsers follow up POST/PUT/DELETE with a GET
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)
