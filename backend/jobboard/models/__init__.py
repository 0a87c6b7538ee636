from jobboard.models.user import User, Role, DEFAULT_ROLE
from jobboard.models.profile import Profile, CompanyProfile
from jobboard.models.job import Job, JOB_STATUSES
from jobboard.models.application import Application, APPLICATION_STATUSES

__all__ = [
    "User",
    "Role",
    "DEFAULT_ROLE",
    "Profile",
    "CompanyProfile",
    "Job",
    "JOB_STATUSES",
    "Application",
    "APPLICATION_STATUSES",
]
