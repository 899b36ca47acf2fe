"""ORM models. Importing this package registers every table on Base.metadata."""

from database.models.jobs import Job, JobStatus, LocationType
from database.models.applications import (
    Application,
    ApplicationStatus,
    INITIAL_STAGE,
    REJECTED_STAGE,
    HIRED_STAGE,
)
from database.models.pipelines import HiringStage, DEFAULT_STAGES
from database.models.communications import (
    EmailThread,
    EmailMessage,
    EmailLog,
    EmailTemplate,
    ThreadStatus,
    MessageDirection,
    EmailLogStatus,
)
from database.models.subscriptions import Subscription, PlanType, SubscriptionStatus
from database.models.users import Profile, ProfileStatus

__all__ = [
    "Job",
    "JobStatus",
    "LocationType",
    "Application",
    "ApplicationStatus",
    "INITIAL_STAGE",
    "REJECTED_STAGE",
    "HIRED_STAGE",
    "HiringStage",
    "DEFAULT_STAGES",
    "EmailThread",
    "EmailMessage",
    "EmailLog",
    "EmailTemplate",
    "ThreadStatus",
    "MessageDirection",
    "EmailLogStatus",
    "Subscription",
    "PlanType",
    "SubscriptionStatus",
    "Profile",
    "ProfileStatus",
]
