from typing import Any, Dict, Optional

from fastapi import status


class StringAnalyzerError(Exception):
    """Base error carrying the HTTP status the API should answer with"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(StringAnalyzerError):
    """Missing, empty or wrongly typed input"""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(StringAnalyzerError):
    status_code = status.HTTP_409_CONFLICT


class NotFoundError(StringAnalyzerError):
    status_code = status.HTTP_404_NOT_FOUND


class InterpretationError(StringAnalyzerError):
    """
    Natural language query could not be turned into usable filters.
    Keeps whatever was parsed so the caller can still report it.
    """

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        original: str,
        parsed_filters: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, status_code)
        self.original = original
        self.parsed_filters = parsed_filters or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "interpreted_query": {
                "original": self.original,
                "parsed_filters": self.parsed_filters,
            },
        }


class StorageFailure(StringAnalyzerError):
    """Reading or writing the record store failed"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
