"""
Strict Base Models for the Review Service Wire Contract

Base classes shared by every request and response model of the remote
review service.

Contract rules:
    - Outgoing requests reject unknown fields (extra="forbid"), so a typo in
      a filter name fails locally instead of being silently dropped
    - Incoming responses tolerate fields added by newer servers (extra="ignore")
    - Wrong types fail at the boundary with pydantic's error messages

Naming:
    The review service speaks camelCase JSON. Models declare snake_case
    attributes and an alias generator maps them to camelCase on the wire.
    Both spellings are accepted on input (populate_by_name=True).

Example:
    class CardFilter(StrictRequest):
        word_list_id: str

    CardFilter(word_list_id="x").to_wire()  # {"wordListId": "x"}

Flow:
    Engine call → StrictRequest → JSON body
    JSON body → StrictResponse → Engine snapshot
"""

from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class StrictRequest(BaseModel):
    """
    Base model for request bodies sent to the review service.

    Features:
        - extra="forbid": Unknown fields raise ValidationError
        - validate_default=True: Validates default values
        - str_strip_whitespace=True: Trims whitespace from strings
        - alias_generator=to_camel: camelCase on the wire
    """

    model_config = ConfigDict(
        extra="forbid",  # Reject unknown fields
        validate_default=True,  # Validate defaults
        str_strip_whitespace=True,  # Clean string inputs
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to a JSON-ready camelCase dict, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StrictResponse(BaseModel):
    """
    Base model for response bodies received from the review service.

    More lenient than StrictRequest: the server may add fields in newer
    versions and the client must keep working.

    Features:
        - extra="ignore": Silently ignores extra fields
        - validate_default=True: Validates default values
        - from_attributes=True: Allows construction from plain objects
        - alias_generator=to_camel: camelCase on the wire
    """

    model_config = ConfigDict(
        extra="ignore",  # Allow extra fields in responses
        validate_default=True,  # Validate defaults
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to a JSON-ready camelCase dict."""
        return self.model_dump(mode="json", by_alias=True)


class ApiResponse(StrictResponse, Generic[T]):
    """
    Envelope wrapping every reply from the review service.

    Example:
        {"success": true, "data": {...}, "message": null, "timestamp": "..."}
    """

    success: bool
    data: Optional[T] = None
    message: Optional[str] = None
    errors: Optional[list[str]] = None
    timestamp: Optional[datetime] = None
