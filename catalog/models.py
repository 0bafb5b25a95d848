"""
Pydantic model for catalog books.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class Book(BaseModel):
    """
    A catalog record.

    ``id`` is zero until the repository assigns one. A ``year`` of zero is
    treated as unset.
    """
    id: int = Field(0, ge=0, description="Repository-assigned identifier")
    title: str = Field("", description="Book title")
    author: str = Field("", description="Book author")
    year: Optional[int] = Field(None, description="Publication year")

    @field_validator('year')
    @classmethod
    def normalize_year(cls, v):
        """Store an unset year as None."""
        if v == 0:
            return None
        return v

    def to_wire(self) -> Dict[str, Any]:
        """Serializable form; an unset year is omitted."""
        return self.model_dump(exclude_none=True)
