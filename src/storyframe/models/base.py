"""Shared base for artifact models."""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ArtifactModel(BaseModel):
    """Base model for pipeline artifacts.

    The generator speaks camelCase JSON; fields are snake_case in Python and
    accept either spelling on input.
    """

    class Config:
        """Pydantic config."""
        alias_generator = to_camel
        populate_by_name = True
        frozen = False

    def to_payload(self) -> dict:
        """Dump with camelCase keys, as sent to the generator and exported."""
        return self.model_dump(by_alias=True, mode="json")
