__all__ = [
    # Base
    "BaseModel",
    "ValueObject",
    "WithCtime",
    # Enums
    "DeploymentEnvironment",
    # ID Types
    "ImportID",
    "OverrideID",
    # Course
    "Group",
    "Quiz",
    "User",
    # Override
    "Override",
    # Imports
    "CommitResult",
    "ImportAction",
    "ImportBatch",
    "ImportMode",
    "ImportPreview",
    "ImportRow",
    "ValueColumns",
]

from .base import BaseModel, ValueObject, WithCtime
from .course import Group, Quiz, User
from .enum import DeploymentEnvironment
from .id import ImportID, OverrideID
from .imports import CommitResult, ImportAction, ImportBatch, ImportMode, ImportPreview, ImportRow, ValueColumns
from .override import Override
