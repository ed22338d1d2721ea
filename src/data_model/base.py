"""Shared Pydantic base models."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StrictBaseModel(BaseModel):
    """Base model with strict, immutable defaults."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class CamelModel(BaseModel):
    """Immutable response model serialized with camelCase keys.

    Fields are declared in snake_case and populated by name; the public
    JSON contract uses the camelCase aliases.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict[str, object]:
        """Serialize with camelCase keys.

        Returns:
            JSON-compatible dictionary.
        """
        return self.model_dump(mode="json", by_alias=True)
