"""Shared pydantic configuration for wire-facing models."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model that reads and writes camelCase field names.

    Snake_case names are accepted on input as well so that Python callers
    can construct models naturally.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """Dump to a JSON-compatible dict using camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FrozenWireModel(WireModel):
    """Immutable variant of WireModel."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
