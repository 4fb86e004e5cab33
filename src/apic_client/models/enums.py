"""Shared enumerations for APIC query options."""

from enum import Enum, Flag, auto
from typing import List


class QueryTarget(str, Enum):
    """Which part of the object tree to search relative to the queried object."""

    SELF = "self"
    CHILDREN = "children"
    SUBTREE = "subtree"


class ResponseSubtree(str, Enum):
    """Which part of the object tree to return for each object found."""

    NO = "no"
    CHILDREN = "children"
    FULL = "full"


class ResponsePropertyInclude(str, Enum):
    """Which properties to include for each returned object."""

    ALL = "all"
    NAMING_ONLY = "naming-only"
    CONFIG_ONLY = "config-only"


class ResponseSubtreeInclude(Flag):
    """Additional objects to return alongside each object found.

    Members combine with ``|``; the query string value lists them in
    declaration order.
    """

    AUDIT_LOGS = auto()
    EVENT_LOGS = auto()
    FAULTS = auto()
    FAULT_RECORDS = auto()
    HEALTH = auto()
    HEALTH_RECORDS = auto()
    RELATIONS = auto()
    STATS = auto()
    TASKS = auto()
    COUNT = auto()
    NO_SCOPED = auto()
    REQUIRED = auto()

    def rest_value(self) -> str:
        """Render the flag set as the comma-separated APIC option value."""
        names: List[str] = []
        for member in type(self):
            if member in self:
                names.append(member.name.lower().replace("_", "-"))
        return ",".join(names)
