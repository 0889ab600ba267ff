from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def new_id() -> str:
    return uuid4().hex

class StorageModel(BaseModel):
    """
    Base class for records kept in an EntityStorage.

    Identity is ``id``; equality is pydantic's field-wise value equality, so
    two instances with the same ``id`` but different field values are
    different elements to a diffing ``replace``.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_id)
