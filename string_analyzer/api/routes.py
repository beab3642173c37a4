from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional

from string_analyzer.crud import strings as crud
from string_analyzer.crud.store import RecordStore, get_store
from string_analyzer.schemas.string_record import (
    NaturalLanguageResponse,
    StringCreate,
    StringListResponse,
    StringRecord,
)

router = APIRouter()


@router.post("/strings", response_model=StringRecord, status_code=status.HTTP_201_CREATED)
def create_string(string_data: StringCreate, store: RecordStore = Depends(get_store)):
    """
    Analyze and store a string.
    Returns 409 if string already exists.
    """
    return crud.create_string(store, string_data.value)


@router.get("/strings", response_model=StringListResponse)
def get_all_strings(request: Request, store: RecordStore = Depends(get_store)):
    """
    Get all strings with optional filtering.
    min_length and max_length match the exact length.
    """
    return crud.list_strings(store, request.query_params)


# Declared before /strings/{string_value} so the literal path wins
@router.get("/strings/filter-by-natural-language", response_model=NaturalLanguageResponse)
def filter_by_natural_language(
    query: Optional[str] = Query(None, description="Natural language query"),
    store: RecordStore = Depends(get_store),
):
    """
    Filter strings using natural language queries.
    Example: "all single word palindromic strings"
    """
    return crud.filter_by_natural_language(store, query)


@router.get("/strings/{string_value}", response_model=StringRecord)
def get_string(string_value: str, store: RecordStore = Depends(get_store)):
    """
    Get analysis for a specific string.
    Returns 404 if string doesn't exist.
    """
    return crud.get_string(store, string_value)


@router.delete("/strings", status_code=status.HTTP_204_NO_CONTENT)
def delete_without_value(store: RecordStore = Depends(get_store)):
    """Answers 400: a value is required to delete."""
    crud.delete_string(store, "")


@router.delete("/strings/{string_value}", status_code=status.HTTP_204_NO_CONTENT)
def delete_string(string_value: str, store: RecordStore = Depends(get_store)):
    """
    Delete a string from the system.
    Returns 404 if string doesn't exist.
    """
    crud.delete_string(store, string_value)
    return None
