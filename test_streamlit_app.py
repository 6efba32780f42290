"""
Tests for the Streamlit entry point helpers.
"""

import asyncio
import logging
from unittest.mock import patch, MagicMock

import pytest

import streamlit_app
from formflow.config_loader import get_default_config
from formflow.descriptors import parse_step
from formflow.exceptions import IngestionError, SubmissionError
from formflow.wizard_controller import WizardController


class TestLoggingLevel:
    """Test cases for get_logging_level."""

    @pytest.mark.parametrize('level,expected', [
        ('DEBUG', logging.DEBUG),
        ('warning', logging.WARNING),
        ('bogus', logging.INFO),
        (None, logging.INFO),
    ])
    def test_levels(self, level, expected):
        assert streamlit_app.get_logging_level(level) == expected


class TestSubmitStep:
    """Test cases for the registration submission hook."""

    @patch('formflow.session_manager.st')
    def test_registration_issues_token(self, mock_st):
        mock_st.session_state = {}
        step = parse_step({'id': 'company'})

        asyncio.run(streamlit_app.submit_step(step, {'email': 'a@b.co', 'password': 'secret1'}))

        assert mock_st.session_state['auth_token']

    def test_registration_requires_credentials(self):
        step = parse_step({'id': 'company'})

        with pytest.raises(SubmissionError):
            asyncio.run(streamlit_app.submit_step(step, {'email': 'a@b.co'}))

    def test_other_steps_pass(self):
        step = parse_step({'id': 'hours', 'type': 'working_hours'})
        assert asyncio.run(streamlit_app.submit_step(step, {})) is None


class TestBuildController:
    """Test cases for controller construction from the shipped schemas."""

    @patch('streamlit_app.Notify')
    def test_build_controller(self, mock_notify):
        controller = streamlit_app.build_controller('beauty')

        assert isinstance(controller, WizardController)
        assert controller.values['industry'] == 'beauty'
        assert controller.custom_components is streamlit_app.CUSTOM_COMPONENTS
        mock_notify.warn.assert_not_called()

    @patch('streamlit_app.st')
    def test_voice_settings_component(self, mock_st):
        mock_st.selectbox.return_value = 'male_tr'
        mock_st.text_area.return_value = 'Merhaba'
        on_change = MagicMock()
        step = parse_step({'id': 'voice', 'component': 'VoiceSettings'})

        streamlit_app.render_voice_settings(step, {'voice': 'female_tr', 'greeting': 'Merhaba'}, on_change, False)

        on_change.assert_called_once_with({'voice': 'male_tr'})


class TestConfiguration:
    """Test cases for startup configuration validation."""

    @patch('streamlit_app.get_config')
    def test_valid_config_used(self, mock_get_config):
        config = get_default_config()
        config['ui']['page_title'] = 'Kurulum'
        mock_get_config.return_value = config

        loaded, is_valid = streamlit_app.validate_configuration()

        assert is_valid is True
        assert loaded['ui']['page_title'] == 'Kurulum'

    @patch('streamlit_app.get_config')
    def test_invalid_config_replaced_by_defaults(self, mock_get_config):
        config = get_default_config()
        config['ui'] = 'broken'
        mock_get_config.return_value = config

        loaded, is_valid = streamlit_app.validate_configuration()

        assert is_valid is False
        assert loaded == get_default_config()


class TestUploadCatalog:
    """Test cases for the CSV upload callback."""

    def _controller(self, on_upload):
        return WizardController(
            [{'id': 'vehicles', 'type': 'catalog', 'fields': [{'name': 'brand', 'required': True}]}],
            on_upload=on_upload,
        )

    @patch('streamlit_app.Notify')
    def test_success_toast_with_count(self, mock_notify):
        async def on_upload(file, table_name):
            return {'items': [{'brand': 'Toyota'}, {'brand': 'Honda'}]}

        count = streamlit_app.upload_catalog(self._controller(on_upload), 'vehicles.csv')

        assert count == 2
        mock_notify.success.assert_called_once_with("2 kayıt eklendi")

    @patch('streamlit_app.Notify')
    def test_no_toast_on_failure(self, mock_notify):
        async def on_upload(file, table_name):
            raise IngestionError("CSV dosyasında geçerli satır bulunamadı")

        controller = self._controller(on_upload)
        count = streamlit_app.upload_catalog(controller, 'vehicles.csv')

        assert count == 0
        assert controller.step_error == "CSV dosyasında geçerli satır bulunamadı"
        mock_notify.success.assert_not_called()
