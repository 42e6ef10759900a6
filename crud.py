import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

import logic
import models
import schemas
from errors import PersistenceError


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError(f"Failed to {action}") from exc


# --- User CRUD ---
def get_user_by_id(db: Session, user_id: int):
    """Get a user by their primary key ID."""
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def create_user(db: Session, user: schemas.UserCreate):
    db_user = models.User(
        email=user.email,
        cognito_sub=user.cognito_sub or f"local-{uuid.uuid4()}",
        display_name=user.display_name,
        role=user.role,
    )
    db.add(db_user)
    db.flush()  # Assign ID without committing
    db.refresh(db_user)
    return db_user


# --- Job CRUD ---
def create_job(db: Session, job: schemas.JobCreate, user_id: int):
    """Creates a new job owned by ``user_id``."""
    db_job = models.Job(user_id=user_id, **job.model_dump())
    db.add(db_job)
    _commit(db, "create job")
    db.refresh(db_job)
    return db_job


def get_job(db: Session, job_id: int, with_owner: bool = False) -> Optional[models.Job]:
    query = db.query(models.Job)
    if with_owner:
        query = query.options(joinedload(models.Job.owner))
    return query.filter(models.Job.id == job_id).first()


def search_jobs(db: Session, params: logic.SearchParams):
    """Published jobs matching any token of any searchable parameter."""
    return (
        db.query(models.Job)
        .options(joinedload(models.Job.owner))
        .filter(logic.build_search_filter(params))
        .order_by(models.Job.created_at.desc(), models.Job.id.desc())
        .all()
    )


def get_published_jobs_for_user(db: Session, user_id: int):
    return (
        db.query(models.Job)
        .options(joinedload(models.Job.owner))
        .filter(
            models.Job.user_id == user_id,
            models.Job.status == models.JobStatus.PUBLISHED,
        )
        .order_by(models.Job.created_at.desc(), models.Job.id.desc())
        .all()
    )


def get_jobs_for_user(db: Session, user_id: int):
    """Retrieves all jobs for a specific user, whatever their status."""
    return (
        db.query(models.Job)
        .filter(models.Job.user_id == user_id)
        .order_by(models.Job.created_at.desc(), models.Job.id.desc())
        .all()
    )


def get_pending_jobs(db: Session):
    return (
        db.query(models.Job)
        .options(joinedload(models.Job.owner))
        .filter(models.Job.status == models.JobStatus.PENDING)
        .order_by(models.Job.updated_at.asc(), models.Job.id.asc())
        .all()
    )


def update_job(db: Session, db_job: models.Job, changes: schemas.JobUpdate):
    """Apply submitted changes and send the job back for review."""
    for field, value in changes.model_dump(exclude_none=True).items():
        setattr(db_job, field, value)
    db_job.status = models.JobStatus.PENDING
    db.add(db_job)
    _commit(db, "update job")
    db.refresh(db_job)
    return db_job


def publish_job(db: Session, db_job: models.Job):
    db_job.status = models.JobStatus.PUBLISHED
    db.add(db_job)
    _commit(db, "publish job")
    db.refresh(db_job)
    return db_job


def delete_job(db: Session, db_job: models.Job) -> None:
    db.delete(db_job)
    _commit(db, "delete job")
