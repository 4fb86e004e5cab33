"""APIC API client module.

This module provides the ApicConnection class for talking to an APIC
controller, along with credential providers, session management with
single-flight renewal, query construction, the object envelope codec,
and custom exceptions.
"""

from apic_client.api.auth import Session
from apic_client.api.codec import (
    decode_response,
    decode_total_count,
    encode_change,
    encode_delete,
)
from apic_client.api.connection import ApicConnection
from apic_client.api.credentials import Credentials, PasswordCredentials
from apic_client.api.dn import DnSyntaxError, escape_dn, split_dn
from apic_client.api.exceptions import (
    ApicClientError,
    AuthError,
    AuthRejectedError,
    ControllerUnreachableError,
    DecodeError,
    ErrorResponseError,
    InvalidCredentialsError,
    MalformedEnvelopeError,
    RequestError,
    RequestTimeoutError,
    TransportError,
    UnexpectedResponseError,
)
from apic_client.api.executor import RequestExecutor
from apic_client.api.query import RequestSpec, build_class_query, build_dn_query
from apic_client.api.session import SessionManager, create_retry_policy

__all__ = [
    # Connection
    "ApicConnection",
    # Credentials
    "Credentials",
    "PasswordCredentials",
    # Session
    "Session",
    "SessionManager",
    "create_retry_policy",
    # Execution
    "RequestExecutor",
    # Query
    "RequestSpec",
    "build_class_query",
    "build_dn_query",
    # DN helpers
    "DnSyntaxError",
    "escape_dn",
    "split_dn",
    # Codec
    "decode_response",
    "decode_total_count",
    "encode_change",
    "encode_delete",
    # Exceptions
    "ApicClientError",
    "AuthError",
    "AuthRejectedError",
    "ControllerUnreachableError",
    "DecodeError",
    "ErrorResponseError",
    "InvalidCredentialsError",
    "MalformedEnvelopeError",
    "RequestError",
    "RequestTimeoutError",
    "TransportError",
    "UnexpectedResponseError",
]
