"""Managed object records exchanged with the controller."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from apic_client.utils.timestamps import normalize_timestamp

DN_KEY = "dn"
RN_KEY = "rn"


class ManagedObject(BaseModel):
    """One instance of an APIC class, as returned by or submitted to the controller.

    The attribute mapping is deliberately open: every key the controller
    sends is kept, including ones this library knows nothing about, so a
    record can be resubmitted without losing data.

    Example:
        >>> tenant = ManagedObject(
        ...     class_name="fvTenant",
        ...     attributes={"dn": "uni/tn-example", "name": "example"},
        ... )
        >>> tenant.dn
        'uni/tn-example'
    """

    model_config = ConfigDict(validate_assignment=True)

    class_name: str = Field(..., description="APIC class name, e.g. 'fvTenant'")
    attributes: Dict[str, str] = Field(
        default_factory=dict, description="Attribute names to string values, verbatim"
    )
    children: List[ManagedObject] = Field(
        default_factory=list, description="Child objects in controller order"
    )

    @field_validator("class_name")
    @classmethod
    def validate_class_name(cls, v: str) -> str:
        """Validate class name is not empty."""
        if not v:
            raise ValueError("Class name cannot be empty")
        return v

    @property
    def dn(self) -> str:
        """Distinguished name, or an empty string when the controller omitted it."""
        return self.attributes.get(DN_KEY, "")

    @property
    def rn(self) -> str:
        """Relative name, or an empty string when not present."""
        return self.attributes.get(RN_KEY, "")

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return an attribute value, or ``default`` if absent."""
        return self.attributes.get(name, default)

    def get_timestamp(self, name: str) -> Optional[datetime]:
        """Parse a timestamp attribute such as ``created`` or ``modTs``.

        Returns:
            UTC datetime, or None when the attribute is absent, empty, or
            the controller's "never" marker.

        Raises:
            ValueError: The value is present but cannot be parsed.
        """
        value = self.attributes.get(name)
        if not value or value == "never":
            return None
        return normalize_timestamp(value)

    def walk(self) -> List[ManagedObject]:
        """Return this object followed by all descendants, depth first."""
        found = [self]
        for child in self.children:
            found.extend(child.walk())
        return found

    def find_children(self, class_name: str) -> List[ManagedObject]:
        """Return direct children of the given class."""
        return [child for child in self.children if child.class_name == class_name]


class ChangeRequest(BaseModel):
    """A create/modify tree to be posted to the controller.

    The root object must carry a ``dn`` attribute; it addresses the POST.
    Children may be identified by ``rn`` alone. Whether the controller
    applies a multi-object tree atomically is up to the controller.
    """

    model_config = ConfigDict(frozen=True)

    root: ManagedObject = Field(..., description="Root of the object tree to submit")

    @field_validator("root")
    @classmethod
    def validate_root_dn(cls, v: ManagedObject) -> ManagedObject:
        """Validate the root object is addressable."""
        if not v.dn:
            raise ValueError("ChangeRequest root must have a non-empty 'dn' attribute")
        return v

    @property
    def dn(self) -> str:
        """Distinguished name of the root object."""
        return self.root.dn


ManagedObject.model_rebuild()
