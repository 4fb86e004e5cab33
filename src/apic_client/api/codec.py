"""Conversion between APIC object envelopes and ManagedObject records.

The controller wraps every response in an envelope::

    {
      "totalCount": "1",
      "imdata": [
        {"fvTenant": {"attributes": {"dn": "uni/tn-common", "name": "common"},
                      "children": [...]}}
      ]
    }

Each entry is a single-key object: the key is the class name, the value
holds an ``attributes`` mapping of strings and an optional ``children``
list of entries in the same shape.
"""

import json
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
import structlog

from apic_client.models import ChangeRequest, ManagedObject

from .dn import mo_path
from .exceptions import MalformedEnvelopeError
from .query import RequestSpec

logger = structlog.get_logger(__name__)

IMDATA_KEY = "imdata"
ATTRIBUTES_KEY = "attributes"
CHILDREN_KEY = "children"
ERROR_CLASS = "error"


def _load_payload(response: Union[httpx.Response, Any]) -> Any:
    """Return the parsed JSON body of a response, or the payload as-is."""
    if not isinstance(response, httpx.Response):
        return response
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedEnvelopeError(f"Response is not valid JSON: {e}") from e


def _imdata(payload: Any) -> List[Any]:
    """Extract the imdata list from an envelope."""
    if not isinstance(payload, dict):
        raise MalformedEnvelopeError(
            f"Envelope must be a JSON object, got {type(payload).__name__}"
        )
    if IMDATA_KEY not in payload:
        raise MalformedEnvelopeError("Envelope is missing the top-level 'imdata' element")
    imdata = payload[IMDATA_KEY]
    if not isinstance(imdata, list):
        raise MalformedEnvelopeError(
            f"'imdata' must be a list, got {type(imdata).__name__}"
        )
    return imdata


def decode_object(entry: Any) -> ManagedObject:
    """Decode one class-tagged entry (and its children) into a ManagedObject.

    Raises:
        MalformedEnvelopeError: The entry does not have the expected shape.
    """
    if not isinstance(entry, dict):
        raise MalformedEnvelopeError(
            f"Object entry must be a JSON object, got {type(entry).__name__}"
        )
    if len(entry) != 1:
        raise MalformedEnvelopeError(
            f"Object entry must have exactly one class tag, got {len(entry)}"
        )

    class_name, body = next(iter(entry.items()))
    if not class_name:
        raise MalformedEnvelopeError("Object entry has an empty class tag")
    if not isinstance(body, dict):
        raise MalformedEnvelopeError(f"Body of '{class_name}' must be a JSON object")

    attributes = body.get(ATTRIBUTES_KEY)
    if not isinstance(attributes, dict):
        raise MalformedEnvelopeError(
            f"'{class_name}' is missing its attributes mapping"
        )
    for key, value in attributes.items():
        if not isinstance(value, str):
            raise MalformedEnvelopeError(
                f"Attribute '{key}' of '{class_name}' must be a string, "
                f"got {type(value).__name__}"
            )

    raw_children = body.get(CHILDREN_KEY, [])
    if not isinstance(raw_children, list):
        raise MalformedEnvelopeError(f"Children of '{class_name}' must be a list")

    return ManagedObject(
        class_name=class_name,
        attributes=dict(attributes),
        children=[decode_object(child) for child in raw_children],
    )


def decode_response(response: Union[httpx.Response, Any]) -> List[ManagedObject]:
    """Decode a controller response into ManagedObject records.

    Args:
        response: An httpx.Response, or an already-parsed JSON payload.

    Returns:
        Records in controller order; subtree responses keep their nesting
        in ``children``. An empty ``imdata`` yields an empty list.

    Raises:
        MalformedEnvelopeError: The body is not JSON, lacks ``imdata``, or
            any entry is malformed. Nothing is skipped.
    """
    imdata = _imdata(_load_payload(response))
    objects = [decode_object(entry) for entry in imdata]
    logger.debug("response_decoded", count=len(objects))
    return objects


def decode_total_count(response: Union[httpx.Response, Any]) -> Optional[int]:
    """Read the ``totalCount`` of an envelope, used for paging.

    Returns:
        Total number of matching objects, or None if the controller did
        not report one.

    Raises:
        MalformedEnvelopeError: totalCount is present but not an integer.
    """
    payload = _load_payload(response)
    if not isinstance(payload, dict) or "totalCount" not in payload:
        return None
    try:
        return int(payload["totalCount"])
    except (TypeError, ValueError) as e:
        raise MalformedEnvelopeError(
            f"'totalCount' must be an integer, got {payload['totalCount']!r}"
        ) from e


def parse_error(payload: Any) -> Tuple[Optional[str], Optional[str]]:
    """Extract the APIC error code and text from an error envelope.

    Error envelopes look like
    ``{"imdata": [{"error": {"attributes": {"code": "403", "text": "..."}}}]}``.
    Anything else yields ``(None, None)``; this never raises, since it only
    enriches an error that is already being reported.
    """
    try:
        entry = payload[IMDATA_KEY][0][ERROR_CLASS][ATTRIBUTES_KEY]
    except (KeyError, IndexError, TypeError):
        return None, None
    if not isinstance(entry, dict):
        return None, None
    code = entry.get("code")
    text = entry.get("text")
    return (
        str(code) if code is not None else None,
        str(text) if text is not None else None,
    )


def encode_object(obj: ManagedObject) -> Dict[str, Any]:
    """Encode a ManagedObject (and its children) as a class-tagged entry."""
    body: Dict[str, Any] = {ATTRIBUTES_KEY: dict(obj.attributes)}
    if obj.children:
        body[CHILDREN_KEY] = [encode_object(child) for child in obj.children]
    return {obj.class_name: body}


def encode_change(change: Union[ChangeRequest, ManagedObject]) -> Dict[str, Any]:
    """Encode a create/modify tree as a POST body.

    The inverse of ``decode_object``: a record decoded from the controller
    and passed back unmodified encodes to the entry it came from.
    """
    root = change.root if isinstance(change, ChangeRequest) else change
    return encode_object(root)


def encode_change_request(change: ChangeRequest) -> RequestSpec:
    """Build the POST request that submits a ChangeRequest."""
    return RequestSpec(
        method="POST",
        path=mo_path(change.dn),
        body=encode_change(change),
    )


def encode_delete(dn: str) -> RequestSpec:
    """Build the DELETE request for the object at a DN.

    Uses the same path escaping as DN queries.

    Raises:
        ValueError: dn is empty.
    """
    return RequestSpec(method="DELETE", path=mo_path(dn))
