"""
Shared data models and errors for the Swagify response sync pipeline.

All pipeline stages import from this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional


# =============================================================================
# CONSTANTS
# =============================================================================

DESCRIPTION_PLACEHOLDER = "TODO: Response description"
DEFAULT_ANNOTATION_NAME = "SwaggerResponse"
DEFAULT_STATUS_ENUM_NAME = "HttpStatusCode"
DEFAULT_HANDLER_SUFFIX = "Controller.cs"


# =============================================================================
# ERRORS
# =============================================================================

class SwagifyError(Exception):
    """Base class for every error raised by Swagify."""


class UnrecognizedResponseForm(SwagifyError):
    """A return statement invokes a helper outside the known vocabulary."""

    def __init__(self, helper_name: str):
        self.helper_name = helper_name
        super().__init__(f"The {helper_name} return is not supported")


class UnparseableStatusCode(SwagifyError):
    """A status code argument does not name a known ResponseCode member."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Cannot read a status code from '{text}'")


class SourceParseError(SwagifyError):
    """The C# source could not be tokenized or parsed."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


# =============================================================================
# STATUS CODES
# =============================================================================

class ResponseCode(IntEnum):
    """
    HTTP status codes named after the .NET ``HttpStatusCode`` members.

    Members sharing a value are .NET aliases; the first spelling is the one
    written into newly created annotations.
    """

    Continue = 100
    SwitchingProtocols = 101
    Processing = 102
    EarlyHints = 103

    OK = 200
    Created = 201
    Accepted = 202
    NonAuthoritativeInformation = 203
    NoContent = 204
    ResetContent = 205
    PartialContent = 206
    MultiStatus = 207
    AlreadyReported = 208
    IMUsed = 226

    MultipleChoices = 300
    Ambiguous = 300
    MovedPermanently = 301
    Moved = 301
    Redirect = 302
    Found = 302
    SeeOther = 303
    RedirectMethod = 303
    NotModified = 304
    UseProxy = 305
    Unused = 306
    TemporaryRedirect = 307
    RedirectKeepVerb = 307
    PermanentRedirect = 308

    BadRequest = 400
    Unauthorized = 401
    PaymentRequired = 402
    Forbidden = 403
    NotFound = 404
    MethodNotAllowed = 405
    NotAcceptable = 406
    ProxyAuthenticationRequired = 407
    RequestTimeout = 408
    Conflict = 409
    Gone = 410
    LengthRequired = 411
    PreconditionFailed = 412
    RequestEntityTooLarge = 413
    RequestUriTooLong = 414
    UnsupportedMediaType = 415
    RequestedRangeNotSatisfiable = 416
    ExpectationFailed = 417
    MisdirectedRequest = 421
    UnprocessableEntity = 422
    UnprocessableContent = 422
    Locked = 423
    FailedDependency = 424
    UpgradeRequired = 426
    PreconditionRequired = 428
    TooManyRequests = 429
    RequestHeaderFieldsTooLarge = 431
    UnavailableForLegalReasons = 451

    InternalServerError = 500
    NotImplemented = 501
    BadGateway = 502
    ServiceUnavailable = 503
    GatewayTimeout = 504
    HttpVersionNotSupported = 505
    VariantAlsoNegotiates = 506
    InsufficientStorage = 507
    LoopDetected = 508
    NotExtended = 510
    NetworkAuthenticationRequired = 511

    @classmethod
    def from_name(cls, name: str) -> "ResponseCode":
        """Look up a member by its exact (case-sensitive) name, aliases included."""
        member = cls.__members__.get(name)
        if member is None:
            raise UnparseableStatusCode(name)
        return member


# =============================================================================
# PIPELINE RECORDS
# =============================================================================

@dataclass(frozen=True)
class AnnotationEntry:
    """One declared response: code, author text and optional payload type."""
    code: ResponseCode
    description: str
    payload_type: Optional[str] = None


@dataclass(frozen=True)
class ReturnSite:
    """One response observed at a top-level return statement."""
    code: ResponseCode
    payload_type: Optional[str] = None


# Insertion-ordered: declared entries first, newly observed codes after.
ReconciliationMap = Dict[ResponseCode, AnnotationEntry]
