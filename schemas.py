from typing import Optional

from pydantic import BaseModel, ConfigDict

from models import JobStatus, Role


# --- User Schemas ---
class UserCreate(BaseModel):
    email: str
    cognito_sub: Optional[str] = None
    display_name: Optional[str] = None
    role: Role = Role.USER


class CurrentUser(BaseModel):
    """Plain copy of the caller, still readable once the request session is gone."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    display_name: Optional[str] = None
    role: Role


# --- Job Schemas ---
class JobCreate(BaseModel):
    title: str
    reward: str
    location: str
    description: str
    contact_email: str
    contact_phone: str
    status: JobStatus = JobStatus.PUBLISHED


class JobUpdate(BaseModel):
    """Editable job fields; anything left as None is kept as stored."""

    title: Optional[str] = None
    reward: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
