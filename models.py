import enum

from sqlalchemy.orm import relationship
from sqlalchemy import Column, Integer, String, ForeignKey, Text, DateTime, Enum, func
from database import Base


class Role(str, enum.Enum):
    ADMIN = "Admin"
    MODERATOR = "Moderator"
    USER = "User"


class JobStatus(str, enum.Enum):
    PUBLISHED = "Published"
    PENDING = "Pending"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String, unique=True, index=True, nullable=False)
    display_name = Column(String, nullable=True)
    cognito_sub = Column(String, unique=True, index=True, nullable=False)
    role = Column(
        Enum(Role, name="user_role", native_enum=False, values_callable=_enum_values),
        default=Role.USER,
        nullable=False,
    )

    jobs = relationship("Job", back_populates="owner", cascade="all, delete-orphan")


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    reward = Column(String, nullable=False)  # free text, e.g. "50" or "$20/hr"
    location = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    contact_email = Column(String, nullable=False)
    contact_phone = Column(String, nullable=False)
    status = Column(
        Enum(JobStatus, name="job_status", native_enum=False, values_callable=_enum_values),
        default=JobStatus.PUBLISHED,
        nullable=False,
        index=True,
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="jobs")
