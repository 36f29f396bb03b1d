from typing import Optional, List

from pydantic import BaseModel, Field, field_validator


class FlatRecord(BaseModel):
    """One entity as returned by the store, not yet nested."""

    name: str = Field(min_length=1)
    description: Optional[str] = None
    # None or "" marks a root
    parent: Optional[str] = None

    @field_validator("parent")
    @classmethod
    def _blank_parent_is_root(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class TreeNode(BaseModel):
    name: str
    description: Optional[str] = None
    parent: Optional[str] = None
    children: List["TreeNode"] = []

    @classmethod
    def from_record(cls, record: FlatRecord) -> "TreeNode":
        return cls(
            name=record.name,
            description=record.description,
            parent=record.parent,
            children=[],
        )


TreeNode.model_rebuild()


class ErrorResponse(BaseModel):
    error: str
