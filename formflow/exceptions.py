"""
Custom exception classes for the formflow wizard.

Field validation never raises; these exceptions cover schema loading and the
asynchronous collaborator calls (submission and bulk ingestion).
"""

import logging
from typing import Optional, Dict, Any, List
from pathlib import Path

logger = logging.getLogger(__name__)


class FormflowError(Exception):
    """
    Base exception for wizard errors.

    Attributes:
        message: Human-readable message
        context: Additional context information
        recovery_suggestions: List of suggested recovery actions
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 recovery_suggestions: Optional[List[str]] = None):
        self.message = message
        self.context = context or {}
        self.recovery_suggestions = recovery_suggestions or []
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def get_full_details(self) -> Dict[str, Any]:
        """Get complete error details including context and suggestions."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': self.context,
            'recovery_suggestions': self.recovery_suggestions
        }


class SchemaLoadError(FormflowError):
    """
    Raised when a wizard schema document cannot be read or parsed.

    This includes YAML/JSON syntax errors and documents that do not match the
    step/field grammar.
    """

    def __init__(self, schema_path: Path, original_error: Exception,
                 message: Optional[str] = None):
        self.schema_path = schema_path
        self.original_error = original_error

        if message is None:
            message = f"Failed to load wizard schema from {schema_path}: {str(original_error)}"

        context = {
            'schema_path': str(schema_path),
            'original_error_type': type(original_error).__name__,
            'original_error_message': str(original_error)
        }

        recovery_suggestions = [
            "Check that the schema file exists and is readable",
            "Verify YAML/JSON syntax",
            "Ensure every step has an id and every catalog step has fields",
            "The built-in fallback schema will be used"
        ]

        super().__init__(message, context, recovery_suggestions)


class SubmissionError(FormflowError):
    """
    Raised by submission callbacks to report a user-facing failure.

    The message is shown verbatim at the top of the step.
    """

    def __init__(self, message: str, step_id: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        self.step_id = step_id
        merged_context = dict(context or {})
        if step_id is not None:
            merged_context['step_id'] = step_id
        super().__init__(message, merged_context, ["Check the entered values and try again"])


class IngestionError(FormflowError):
    """Raised when a bulk catalog file cannot be ingested."""

    def __init__(self, message: str, table_name: Optional[str] = None):
        self.table_name = table_name
        context = {'table_name': table_name} if table_name else {}
        super().__init__(message, context, [
            "Make sure the file is a UTF-8 CSV with a header row",
            "Column names should match the catalog field names"
        ])
