import re
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

import structlog
from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

import models
import schemas
from errors import AuthorizationError, FormValidationError

# Set up logging
logger = structlog.get_logger(__name__)

# Query parameters that may be turned into LIKE clauses. Anything else a
# caller sends is dropped before it can reach the query.
SEARCHABLE_FIELDS = {
    "title": models.Job.title,
    "reward": models.Job.reward,
    "location": models.Job.location,
    "description": models.Job.description,
}

# (form field, message shown when it is left empty), in form order
REQUIRED_JOB_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("title", "Please add a title"),
    ("reward", "Please add some reward"),
    ("location", "Please add a location"),
    ("description", "Please add a description"),
    ("contact_email", "Please add a contact email"),
    ("contact_phone", "Please add a contact phone"),
)

EDITABLE_JOB_FIELDS = tuple(name for name, _ in REQUIRED_JOB_FIELDS)

ADMIN_CONSOLE_URL = "/access/ad"
MODERATOR_CONSOLE_URL = "/access/mod"
DASHBOARD_URL = "/dashboard"
ACCESS_DENIED_URL = "/access/denied"
LOGIN_URL = "/"

_WORD_RE = re.compile(r"\w+")

SearchParams = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
def tokenize(value: str) -> list[str]:
    """Split a raw search value into word tokens; punctuation is a separator."""
    return _WORD_RE.findall(value or "")


def build_search_filter(params: SearchParams) -> ColumnElement:
    """Build the WHERE clause for a job search.

    Every token of every non-empty, allow-listed parameter becomes a
    ``field LIKE '%token%'`` clause and the clauses are OR-ed together. The
    result is always AND-ed with ``status = 'Published'``, so with no usable
    tokens the filter matches every published job.
    """
    items = params.items() if isinstance(params, Mapping) else params
    clauses = []
    for name, raw_value in items:
        if raw_value == "":
            continue
        column = SEARCHABLE_FIELDS.get(name)
        if column is None:
            logger.debug("Ignoring non-searchable parameter", parameter=name)
            continue
        for token in tokenize(raw_value):
            clauses.append(column.contains(token, autoescape=True))

    published = models.Job.status == models.JobStatus.PUBLISHED
    if not clauses:
        return published
    return and_(or_(*clauses), published)


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------
def can_modify(job: models.Job, user: models.User) -> bool:
    return job.user_id == user.id or user.role == models.Role.ADMIN


def ensure_can_modify(job: models.Job, user: models.User) -> None:
    if not can_modify(job, user):
        logger.info("Job modification denied", job_id=job.id, user_id=user.id, role=_role_name(user))
        raise AuthorizationError(user_id=user.id, job_id=job.id)


def ensure_role(user: models.User, *roles: models.Role) -> None:
    if user.role not in roles:
        logger.info("Console access denied", user_id=user.id, role=_role_name(user))
        raise AuthorizationError(user_id=user.id)


def redirect_for_role(role: Optional[models.Role]) -> str:
    """Where to send the caller after a successful create or update."""
    if role == models.Role.ADMIN:
        return ADMIN_CONSOLE_URL
    if role == models.Role.MODERATOR:
        return MODERATOR_CONSOLE_URL
    return DASHBOARD_URL


def _role_name(user: models.User) -> str:
    role = user.role
    return role.value if isinstance(role, models.Role) else str(role)


# ---------------------------------------------------------------------------
# Form handling
# ---------------------------------------------------------------------------
def _form_value(form: Mapping[str, Any], name: str) -> str:
    value = form.get(name)
    # JSON bodies may send numbers (e.g. "reward": 50)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    # Multipart bodies can carry files; only text counts as a value
    if not isinstance(value, str):
        return ""
    return value.strip()


def collect_form_errors(values: Mapping[str, str]) -> list[dict[str, str]]:
    """Return one error entry per missing required field, in form order."""
    return [{"text": message} for name, message in REQUIRED_JOB_FIELDS if not values.get(name)]


def parse_job_form(form: Mapping[str, Any], legacy_threshold: bool = False) -> schemas.JobCreate:
    """Validate a submitted add form.

    All missing fields are reported together. With ``legacy_threshold`` the
    form is only rejected when more than one field is missing.

    Raises
    ------
    FormValidationError  • carrying the messages and the submitted values
    """
    values = {name: _form_value(form, name) for name in EDITABLE_JOB_FIELDS}
    errors = collect_form_errors(values)

    allowed_missing = 1 if legacy_threshold else 0
    if len(errors) > allowed_missing:
        raise FormValidationError(errors, values)
    if errors:
        logger.warning("Accepting job form with a missing field", missing=errors[0]["text"])

    raw_status = _form_value(form, "status")
    try:
        status = models.JobStatus(raw_status) if raw_status else models.JobStatus.PUBLISHED
    except ValueError:
        logger.debug("Ignoring invalid job status", status=raw_status)
        status = models.JobStatus.PUBLISHED

    return schemas.JobCreate(**values, status=status)


def parse_job_update(form: Mapping[str, Any]) -> schemas.JobUpdate:
    """Keep only editable fields that were submitted with a non-blank value."""
    changes = {}
    for name in EDITABLE_JOB_FIELDS:
        value = _form_value(form, name)
        if value:
            changes[name] = value
    return schemas.JobUpdate(**changes)
