"""
Error handling utilities for the formflow wizard.
Turns collaborator failures into logged, step-scoped messages.
"""

import logging

from .exceptions import FormflowError

logger = logging.getLogger(__name__)


class ErrorType:
    """Error type constants."""
    SUBMISSION = "submission"
    INGESTION = "ingestion"
    SCHEMA = "schema"
    NETWORK = "network"
    SYSTEM = "system"


DEFAULT_MESSAGES = {
    ErrorType.SUBMISSION: "Bir hata oluştu",
    ErrorType.INGESTION: "CSV yükleme hatası",
    ErrorType.SCHEMA: "Konfigürasyon yüklenemedi",
    ErrorType.NETWORK: "Sunucuya ulaşılamadı, lütfen tekrar deneyin",
    ErrorType.SYSTEM: "Beklenmeyen bir hata oluştu",
}


def to_step_error_message(error: BaseException, error_type: str = ErrorType.SUBMISSION) -> str:
    """
    Convert an exception into the text shown at the top of a step.

    SubmissionError messages are used verbatim, network failures get a fixed
    message, other exceptions use their own text when they have one.
    """
    fallback = DEFAULT_MESSAGES.get(error_type, DEFAULT_MESSAGES[ErrorType.SYSTEM])

    if isinstance(error, FormflowError):
        return error.message or fallback

    if isinstance(error, (ConnectionError, TimeoutError)):
        return DEFAULT_MESSAGES[ErrorType.NETWORK]

    text = str(error).strip()
    return text or fallback


class ErrorHandler:
    """Central place for logging wizard errors."""

    @staticmethod
    def handle_step_error(error: BaseException, context: str, error_type: str = ErrorType.SUBMISSION) -> str:
        """
        Log a collaborator failure and return the message for the step.

        Args:
            error: The exception raised (or returned) by the collaborator
            context: Where the error happened, for the log
            error_type: Type of error (from ErrorType constants)

        Returns:
            User-facing message
        """
        if isinstance(error, FormflowError):
            logger.error(f"Error in {context}: {error.get_full_details()}", exc_info=error)
        else:
            logger.error(f"Error in {context}: {error}", exc_info=error)
        return to_step_error_message(error, error_type)
