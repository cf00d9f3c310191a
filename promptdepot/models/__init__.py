"""
models/__init__.py
------------------
Re-export all models so table creation (create_tables.py, Database.create_all)
discovers every table via a single import:

    from promptdepot.models import Base
"""

from promptdepot.db.base import Base
from promptdepot.models.tenant import Tenant, UserTenant
from promptdepot.models.user import User
from promptdepot.models.project import ALL_PERMISSIONS, Project, ProjectPermission, ProjectUser
from promptdepot.models.directory import Directory, Prompt

__all__ = [
    "Base",
    "Tenant",
    "UserTenant",
    "User",
    "Project",
    "ProjectUser",
    "ProjectPermission",
    "ALL_PERMISSIONS",
    "Directory",
    "Prompt",
]
