from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


# Mongo returns ObjectId; the rest of the app only ever sees hex strings.
PyObjectId = Annotated[str, BeforeValidator(str)]


def to_mongo(data: Any) -> Any:
    # Convert Enums to their .value and recurse; keep datetime as datetime
    if isinstance(data, Enum):
        return data.value
    if isinstance(data, dict):
        return {k: to_mongo(v) for k, v in data.items()}
    if isinstance(data, list):
        return [to_mongo(x) for x in data]
    return data


class MongoModel(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    # Read from Mongo's "_id", exposed to API clients as "id"
    id: Optional[PyObjectId] = Field(default=None, alias="_id", serialization_alias="id")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_document(self) -> Dict[str, Any]:
        doc = to_mongo(self.model_dump(by_alias=True))
        object_id = doc.pop("id", None)
        # Never persist a null _id; MongoDB will auto-generate one
        if object_id is not None:
            doc["_id"] = object_id
        return doc
