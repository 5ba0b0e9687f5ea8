"""Base schema configuration for locsync Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """Base schema with strict validation defaults.

    Note: strings are never stripped. Source content and file names are hashed
    into identifiers, so whitespace is significant.

    Attribute names are snake_case; the remote API and the version ledger use
    camelCase, which is exposed through aliases (dump with ``by_alias=True``).
    Enum fields keep their enum members so validated values can be passed on
    to other strict models unchanged.
    """

    model_config = ConfigDict(
        extra="ignore",  # Remote payloads may carry fields we do not track
        validate_assignment=True,
        validate_default=True,
        strict=True,
        alias_generator=to_camel,
        validate_by_name=True,
        validate_by_alias=True,
    )
