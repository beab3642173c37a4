from pydantic import BaseModel, Field
from typing import Any, Dict, Optional, List
from datetime import datetime


class StringCreate(BaseModel):
    # Typed loosely so the type check can answer 422 instead of a generic 400
    value: Any = Field(None, description="String to analyze")


class StringProperties(BaseModel):
    length: int
    is_palindrome: bool
    unique_characters: int
    word_count: int
    sha256_hash: str
    character_frequency_map: Dict[str, int]


class StringRecord(BaseModel):
    id: str
    value: str
    properties: StringProperties
    created_at: datetime


class FilterSpec(BaseModel):
    """Conjunction of optional predicates; an empty spec matches everything"""

    is_palindrome: Optional[bool] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    word_count: Optional[int] = None
    contains_character: Optional[str] = None

    def applied(self) -> Dict[str, Any]:
        """Only the fields that are set, in declaration order"""
        return self.model_dump(exclude_none=True)

    def is_empty(self) -> bool:
        return not self.applied()


class StringListResponse(BaseModel):
    data: List[StringRecord]
    count: int
    filters_applied: Dict[str, Any] = Field(default_factory=dict)


class InterpretedQuery(BaseModel):
    original: str
    parsed_filters: Dict[str, Any]


class NaturalLanguageResponse(BaseModel):
    data: List[StringRecord]
    count: int
    interpreted_query: InterpretedQuery
