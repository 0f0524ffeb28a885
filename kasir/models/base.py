"""
Shared configuration for persisted records.
"""
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Base for records stored as camelCase JSON documents."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class FrozenRecord(Record):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
