__all__ = ["DataModel", "FrozenDataModel"]

from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class DataModel(BaseModel):
    """Data model."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        return self.model_dump(exclude_none=exclude_none)

    def to_json(self, indent: int | None = None) -> str:
        return self.model_dump_json(indent=indent)

    def copy(self, deep: bool = False, **kwargs):
        return self.model_copy(deep=deep, **kwargs)

    @classmethod
    def from_dict(cls, obj: dict | None) -> Self:
        return cls.model_validate(obj)

    @classmethod
    def from_json(cls, json: str | bytes) -> Self:
        return cls.model_validate_json(json)


class FrozenDataModel(DataModel):
    """Immutable data model, safe to share across threads."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True, extra="ignore", frozen=True
    )
