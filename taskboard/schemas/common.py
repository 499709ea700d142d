from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def reject_nulls(values: dict, fields: tuple[str, ...]) -> None:
    """Raise ValueError when a non-nullable field was explicitly sent as null."""
    for name in fields:
        if name in values and values[name] is None:
            raise ValueError(f"{name} may not be null")


class MessageResponse(APIModel):
    message: str
