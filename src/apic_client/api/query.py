"""Query construction for class and DN queries.

Builders here translate QuerySettings into request specifications; they
perform no I/O and no validation beyond non-empty targets (the controller
is authoritative for class names and DNs).

Example usage:
    from apic_client.api.query import build_class_query
    from apic_client.models import QuerySettings

    spec = build_class_query("faultInst", QuerySettings(page_size=50))
    # spec.path == "/api/class/faultInst.json"
    # spec.params == (("page-size", "50"),)
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from apic_client.models import QuerySettings

from .dn import class_path, mo_path


@dataclass(frozen=True)
class RequestSpec:
    """A fully formed, relative request against the controller.

    Attributes:
        method: HTTP method (GET, POST, DELETE).
        path: Relative path, already escaped.
        params: Ordered query-string pairs.
        body: JSON body for POST requests.
    """

    method: str
    path: str
    params: Tuple[Tuple[str, str], ...] = ()
    body: Optional[Dict[str, Any]] = None


def build_class_query(
    class_name: str,
    settings: Optional[QuerySettings] = None,
) -> RequestSpec:
    """Build a query listing all instances of a class.

    Args:
        class_name: APIC class name, e.g. "fvTenant".
        settings: Filter, scope and paging options.

    Returns:
        GET RequestSpec for ``/api/class/<class_name>.json``.

    Raises:
        ValueError: class_name is empty.
    """
    settings = settings or QuerySettings()
    return RequestSpec(
        method="GET",
        path=class_path(class_name),
        params=tuple(settings.to_params()),
    )


def build_dn_query(
    dn: str,
    settings: Optional[QuerySettings] = None,
) -> RequestSpec:
    """Build a query for the object at a DN (and its subtree, per settings).

    Args:
        dn: Distinguished name, e.g. "uni/tn-common".
        settings: Filter, scope and paging options.

    Returns:
        GET RequestSpec for ``/api/mo/<escaped dn>.json``.

    Raises:
        ValueError: dn is empty.
    """
    settings = settings or QuerySettings()
    return RequestSpec(
        method="GET",
        path=mo_path(dn),
        params=tuple(settings.to_params()),
    )
