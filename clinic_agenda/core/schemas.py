"""
Shared pydantic base for persisted and API models.

Field names are snake_case in Python and camelCase on the wire and in stored
snapshots (`firstName`, `patientId`, ...). Input accepts either spelling.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
