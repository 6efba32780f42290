"""
Unit tests for error handling utilities and custom exceptions.
"""

import logging
from pathlib import Path

import pytest

from formflow.error_handler import (
    DEFAULT_MESSAGES, ErrorHandler, ErrorType, to_step_error_message
)
from formflow.exceptions import FormflowError, IngestionError, SchemaLoadError, SubmissionError


class TestExceptions:
    """Test cases for the exception hierarchy."""

    def test_formflow_error_details(self):
        error = FormflowError("Bozuk", {'step': 'company'}, ["Tekrar deneyin"])

        details = error.get_full_details()

        assert str(error) == "Bozuk"
        assert details == {
            'error_type': 'FormflowError',
            'message': 'Bozuk',
            'context': {'step': 'company'},
            'recovery_suggestions': ['Tekrar deneyin'],
        }

    def test_schema_load_error(self):
        original = ValueError("bad key")
        error = SchemaLoadError(Path('schemas/beauty.yaml'), original)

        assert 'schemas/beauty.yaml' in error.message
        assert error.original_error is original
        assert error.context['original_error_type'] == 'ValueError'
        assert error.recovery_suggestions

    def test_submission_error_context(self):
        error = SubmissionError("Email kayıtlı", step_id='company')

        assert error.step_id == 'company'
        assert error.context == {'step_id': 'company'}
        assert isinstance(error, FormflowError)

    def test_ingestion_error_context(self):
        error = IngestionError("Boş dosya", table_name='services')
        assert error.context == {'table_name': 'services'}


class TestToStepErrorMessage:
    """Test cases for error message conversion."""

    def test_submission_error_verbatim(self):
        assert to_step_error_message(SubmissionError("Bu email zaten kayıtlı")) == "Bu email zaten kayıtlı"

    def test_generic_exception_text(self):
        assert to_step_error_message(RuntimeError("Sunucu hatası")) == "Sunucu hatası"

    def test_empty_exception_uses_fallback(self):
        assert to_step_error_message(RuntimeError()) == DEFAULT_MESSAGES[ErrorType.SUBMISSION]
        assert to_step_error_message(RuntimeError(), ErrorType.INGESTION) == DEFAULT_MESSAGES[ErrorType.INGESTION]

    @pytest.mark.parametrize('error', [ConnectionError("refused"), TimeoutError()])
    def test_network_errors(self, error):
        assert to_step_error_message(error) == DEFAULT_MESSAGES[ErrorType.NETWORK]

    def test_unknown_type_uses_system_fallback(self):
        assert to_step_error_message(ValueError(), 'other') == DEFAULT_MESSAGES[ErrorType.SYSTEM]


class TestErrorHandler:
    """Test cases for ErrorHandler."""

    def test_submission_error_logged_as_error(self, caplog):
        with caplog.at_level(logging.WARNING):
            message = ErrorHandler.handle_step_error(SubmissionError("Geçersiz", step_id='company'),
                                                     "submission of step 'company'")

        assert message == "Geçersiz"
        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.exc_info is not None
        assert record.exc_info[1].step_id == 'company'
        assert "SubmissionError" in record.getMessage()
        assert "company" in record.getMessage()

    def test_unexpected_error_logged_with_traceback(self, caplog):
        try:
            raise KeyError('boom')
        except KeyError as e:
            with caplog.at_level(logging.ERROR):
                ErrorHandler.handle_step_error(e, "upload", ErrorType.INGESTION)

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.exc_info is not None
