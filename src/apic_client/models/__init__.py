"""Data models for the APIC client."""

from .endpoint import Endpoint
from .enums import QueryTarget, ResponsePropertyInclude, ResponseSubtree, ResponseSubtreeInclude
from .managed_object import ChangeRequest, ManagedObject
from .query import QuerySettings

__all__ = [
    "ChangeRequest",
    "Endpoint",
    "ManagedObject",
    "QuerySettings",
    "QueryTarget",
    "ResponsePropertyInclude",
    "ResponseSubtree",
    "ResponseSubtreeInclude",
]
