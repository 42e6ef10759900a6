from typing import Optional

import structlog
from fastapi import FastAPI, Depends, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse, Response
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

import crud
import jobs
import logic
import models
import schemas
from auth import ensure_auth, get_current_user
from database import create_db_and_tables, get_db
from errors import AuthorizationError, NotAuthenticatedError, NotFoundError, PersistenceError
from middleware import MethodOverrideMiddleware, RequestIdMiddleware
from observability import init_observability
from settings import Settings, get_settings
from views import BASE_DIR, redirect, render


# Initialise observability before creating app
init_observability()
logger = structlog.get_logger(__name__)

# Create DB tables on startup
create_db_and_tables()

app = FastAPI(
    title="Job Board",
    description="Post, search and manage job listings",
    version="0.1.0",
)

app.add_middleware(RequestIdMiddleware)
app.add_middleware(MethodOverrideMiddleware)

# Mount static files directory
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

app.include_router(jobs.router)


def _caller(request: Request) -> Optional[schemas.CurrentUser]:
    return getattr(request.state, "current_user", None)


# --- Error translation --- #
@app.exception_handler(NotAuthenticatedError)
async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
    return redirect(logic.LOGIN_URL)


@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request: Request, exc: AuthorizationError):
    return redirect(logic.ACCESS_DENIED_URL)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    logger.info("Resource not found", resource=exc.resource, resource_id=exc.resource_id)
    return render(request, "error/404.html", _caller(request), status_code=status.HTTP_404_NOT_FOUND)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return render(request, "error/404.html", _caller(request), status_code=status.HTTP_404_NOT_FOUND)
    return await http_exception_handler(request, exc)


@app.exception_handler(PersistenceError)
@app.exception_handler(SQLAlchemyError)
async def persistence_error_handler(request: Request, exc: Exception):
    logger.error("Persistence failure", error=str(exc), exc_info=exc)
    return render(
        request,
        "error/500.html",
        _caller(request),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# --- Root Endpoint --- Landing / login page --- #
@app.get("/", response_class=HTMLResponse)
def read_root(
    request: Request,
    current_user: Optional[models.User] = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    """Render the landing page with the Cognito hosted UI settings."""
    return render(
        request,
        "index.html",
        current_user,
        auth_enabled=settings.auth_enabled,
        cognito_app_client_id=settings.cognito_app_client_id or "",
        cognito_domain=settings.cognito_domain or "",
        aws_region=settings.aws_region or "",
    )


# Add route for favicon.ico
@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/healthz", tags=["Health"])
def healthz():
    return {"status": "ok"}


@app.get("/dashboard", response_class=HTMLResponse)
def dashboard(
    request: Request,
    current_user: models.User = Depends(ensure_auth),
    db: Session = Depends(get_db),
):
    """The caller's own jobs, including those waiting for review."""
    return render(
        request,
        "dashboard.html",
        current_user,
        jobs=crud.get_jobs_for_user(db, current_user.id),
    )


# --- Review consoles --- #
@app.get("/access/ad", response_class=HTMLResponse, tags=["Access"])
def admin_console(
    request: Request,
    current_user: models.User = Depends(ensure_auth),
    db: Session = Depends(get_db),
):
    logic.ensure_role(current_user, models.Role.ADMIN)
    return render(
        request,
        "access/console.html",
        current_user,
        console_title="Admin console",
        jobs=crud.get_pending_jobs(db),
    )


@app.get("/access/mod", response_class=HTMLResponse, tags=["Access"])
def moderator_console(
    request: Request,
    current_user: models.User = Depends(ensure_auth),
    db: Session = Depends(get_db),
):
    logic.ensure_role(current_user, models.Role.MODERATOR, models.Role.ADMIN)
    return render(
        request,
        "access/console.html",
        current_user,
        console_title="Moderator console",
        jobs=crud.get_pending_jobs(db),
    )


@app.post("/access/jobs/{job_id:int}/publish", tags=["Access"])
def publish_job(
    job_id: int,
    current_user: models.User = Depends(ensure_auth),
    db: Session = Depends(get_db),
):
    logic.ensure_role(current_user, models.Role.MODERATOR, models.Role.ADMIN)
    job = crud.get_job(db, job_id)
    if job is None:
        raise NotFoundError("Job", job_id)
    crud.publish_job(db, job)
    logger.info("Job published", job_id=job_id, reviewer_id=current_user.id)
    return redirect(logic.redirect_for_role(current_user.role))


@app.get("/access/denied", response_class=HTMLResponse, tags=["Access"])
def access_denied(
    request: Request,
    current_user: Optional[models.User] = Depends(get_current_user),
):
    return render(request, "access/denied.html", current_user, status_code=status.HTTP_403_FORBIDDEN)


# --- Main execution --- (for running with uvicorn)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
