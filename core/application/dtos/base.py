"""Base model for DTOs exchanged with the storefront client."""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """
    camelCase on the wire, snake_case in Python.

    Requests accept either spelling; responses are serialized by alias.
    """

    model_config = {"alias_generator": to_camel, "populate_by_name": True}
