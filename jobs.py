"""Job posting routes: search, create, view, list-by-user, edit, update, delete.

Every route requires an authenticated caller. Edit, update and delete are
limited to the job's owner and Admins; anyone else is redirected to the
access-denied page by the ``AuthorizationError`` handler in ``main``.
"""
from typing import Any, Mapping

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

import crud
import logic
import models
from auth import ensure_auth
from database import get_db
from errors import FormValidationError, NotFoundError
from settings import Settings, get_settings
from views import redirect, render

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


async def _read_body(request: Request) -> Mapping[str, Any]:
    """Submitted fields from an HTML form or a JSON object."""
    if request.headers.get("content-type", "").startswith("application/json"):
        body = await request.json()
        return body if isinstance(body, dict) else {}
    return await request.form()


def _get_job_or_404(db: Session, job_id: int, with_owner: bool = False) -> models.Job:
    job = crud.get_job(db, job_id, with_owner=with_owner)
    if job is None:
        raise NotFoundError("Job", job_id)
    return job


# --- Search --- #
@router.get("/search", response_class=HTMLResponse)
def search_jobs(
    request: Request,
    current_user: models.User = Depends(ensure_auth),
    db: Session = Depends(get_db),
):
    params = request.query_params.multi_items()
    jobs = crud.search_jobs(db, params)
    logger.info("Job search", parameters=[name for name, value in params if value], results=len(jobs))
    return render(
        request,
        "jobs/index.html",
        current_user,
        jobs=jobs,
        query=dict(request.query_params),
    )


# --- Create --- #
@router.get("/add", response_class=HTMLResponse)
async def show_add_form(
    request: Request,
    current_user: models.User = Depends(ensure_auth),
):
    return render(request, "jobs/add.html", request.state.current_user, errors=[])


@router.post("", response_class=HTMLResponse)
async def create_job(
    request: Request,
    current_user: models.User = Depends(ensure_auth),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    caller = request.state.current_user
    body = await _read_body(request)
    try:
        job_in = logic.parse_job_form(body, legacy_threshold=settings.legacy_form_validation)
    except FormValidationError as exc:
        logger.info("Job form rejected", user_id=caller.id, missing=len(exc.errors))
        return render(request, "jobs/add.html", caller, errors=exc.errors, **exc.values)

    job_id, job_status = await run_in_threadpool(_store_new_job, db, job_in, caller.id)
    logger.info("Job created", job_id=job_id, user_id=caller.id, status=job_status.value)
    return redirect(logic.redirect_for_role(caller.role))


def _store_new_job(db: Session, job_in, user_id: int):
    job = crud.create_job(db, job_in, user_id=user_id)
    return job.id, job.status


# --- Read --- #
@router.get("/user/{user_id:int}", response_class=HTMLResponse)
def list_user_jobs(
    user_id: int,
    request: Request,
    current_user: models.User = Depends(ensure_auth),
    db: Session = Depends(get_db),
):
    jobs = crud.get_published_jobs_for_user(db, user_id)
    return render(
        request,
        "jobs/index.html",
        current_user,
        jobs=jobs,
        owner=crud.get_user_by_id(db, user_id),
        query={},
    )


@router.get("/{job_id:int}", response_class=HTMLResponse)
def show_job(
    job_id: int,
    request: Request,
    current_user: models.User = Depends(ensure_auth),
    db: Session = Depends(get_db),
):
    job = _get_job_or_404(db, job_id, with_owner=True)
    return render(
        request,
        "jobs/show.html",
        current_user,
        job=job,
        can_modify=logic.can_modify(job, current_user),
    )


# --- Edit / Update --- #
@router.get("/edit/{job_id:int}", response_class=HTMLResponse)
def show_edit_form(
    job_id: int,
    request: Request,
    current_user: models.User = Depends(ensure_auth),
    db: Session = Depends(get_db),
):
    job = _get_job_or_404(db, job_id)
    logic.ensure_can_modify(job, current_user)
    return render(request, "jobs/edit.html", current_user, job=job)


@router.put("/{job_id:int}")
async def update_job(
    job_id: int,
    request: Request,
    current_user: models.User = Depends(ensure_auth),
    db: Session = Depends(get_db),
):
    caller = request.state.current_user
    changes = logic.parse_job_update(await _read_body(request))
    await run_in_threadpool(_apply_update, db, job_id, current_user, changes)
    logger.info(
        "Job updated and sent for review",
        job_id=job_id,
        user_id=caller.id,
        fields=sorted(changes.model_dump(exclude_none=True)),
    )
    return redirect(logic.redirect_for_role(caller.role))


def _apply_update(db: Session, job_id: int, current_user: models.User, changes) -> None:
    job = _get_job_or_404(db, job_id)
    logic.ensure_can_modify(job, current_user)
    crud.update_job(db, job, changes)


# --- Delete --- #
@router.delete("/{job_id:int}")
def delete_job(
    job_id: int,
    request: Request,
    current_user: models.User = Depends(ensure_auth),
    db: Session = Depends(get_db),
):
    job = _get_job_or_404(db, job_id)
    logic.ensure_can_modify(job, current_user)

    crud.delete_job(db, job)
    logger.info("Job deleted", job_id=job_id, user_id=current_user.id)
    return redirect(logic.DASHBOARD_URL)
