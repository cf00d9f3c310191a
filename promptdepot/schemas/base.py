"""
schemas/base.py
---------------
Shared pydantic configuration.

The web client speaks camelCase (isRoot, parentId, createdAt …); Python
code keeps snake_case field names. Responses are serialised by alias,
request bodies accept either spelling.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str
