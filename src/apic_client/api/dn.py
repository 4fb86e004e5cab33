"""Distinguished name helpers.

ACI distinguished names are relative names joined by ``/``. A slash inside
square brackets belongs to the relative name (brackets nest), e.g.::

    uni/fabric/nodecfgcont/node-1001/rsnodeGroup-[uni/fabric/maintgrp-G1]/fault-F1300

Every ``/api/mo/`` path in this package goes through ``escape_dn`` so
queries, posts and deletes address an object identically.
"""

from typing import List, Optional
from urllib.parse import quote

MO_PATH_PREFIX = "/api/mo/"
RESPONSE_FORMAT = "json"


class DnSyntaxError(ValueError):
    """A distinguished name has unbalanced square brackets.

    Attributes:
        position: Character offset of the offending bracket, or None when
            brackets remained open at the end of the DN.
        unclosed: Number of brackets still open at the end of the DN.
    """

    def __init__(self, message: str, position: Optional[int] = None, unclosed: int = 0) -> None:
        self.position = position
        self.unclosed = unclosed
        super().__init__(message)


def split_dn(dn: str) -> List[str]:
    """Split a distinguished name into its relative names.

    Empty relative names produced by leading, doubled or trailing slashes
    are kept, so ``"/".join(split_dn(dn)) == dn`` always holds.

    Raises:
        DnSyntaxError: A bracket is closed that was never opened, or
            brackets remain open at the end.

    Example:
        >>> split_dn("uni/tn-common/ctx-[a/b]")
        ['uni', 'tn-common', 'ctx-[a/b]']
    """
    parts: List[str] = []
    depth = 0
    start = 0

    for i, char in enumerate(dn):
        if char == "[":
            depth += 1
        elif char == "]":
            if depth == 0:
                raise DnSyntaxError(
                    f"More square brackets closed than opened at position {i}",
                    position=i,
                )
            depth -= 1
        elif char == "/" and depth == 0:
            parts.append(dn[start:i])
            start = i + 1

    parts.append(dn[start:])

    if depth > 0:
        raise DnSyntaxError(f"{depth} square brackets remained unclosed", unclosed=depth)
    return parts


def escape_dn(dn: str) -> str:
    """Percent-encode a DN for use in a URL path.

    Slashes stay literal (the controller reads them as hierarchy); every
    other reserved character, spaces and brackets included, is encoded.
    """
    return quote(dn, safe="/")


def mo_path(dn: str) -> str:
    """Build the ``/api/mo/<dn>.json`` path for a distinguished name.

    Raises:
        ValueError: The DN is empty.
    """
    if not dn:
        raise ValueError("Distinguished name cannot be empty")
    return f"{MO_PATH_PREFIX}{escape_dn(dn)}.{RESPONSE_FORMAT}"


def class_path(class_name: str) -> str:
    """Build the ``/api/class/<class>.json`` path for a class name.

    Raises:
        ValueError: The class name is empty.
    """
    if not class_name:
        raise ValueError("Class name cannot be empty")
    return f"/api/class/{quote(class_name, safe='')}.{RESPONSE_FORMAT}"
