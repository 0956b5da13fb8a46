"""Base model for camelCase payloads exchanged with the backend."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Frozen model serialized with camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_payload(self) -> dict[str, object]:
        """Return the JSON body sent to the backend."""
        return self.model_dump(mode="json", by_alias=True)
