"""
Main Streamlit application for the formflow onboarding wizard.
Config-driven multi-step onboarding for voice-assistant tenants.
"""

import asyncio
import uuid
import streamlit as st
import logging
from pathlib import Path
from typing import Dict, Any, Optional

from formflow.config_loader import get_config, get_config_value, get_default_config, validate_config
from formflow.catalog_ingest import ingest_csv
from formflow.descriptors import StepDescriptor
from formflow.exceptions import SubmissionError
from formflow.schema_loader import get_industry_display, get_wizard_schema
from formflow.session_manager import SessionManager
from formflow.step_interpreter import STEP_ICONS
from formflow.ui_feedback import Notify, show_loading
from formflow.wizard_controller import WizardController, WizardEvent


def get_logging_level(level_str):
    """Map string logging level to logging constant."""
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }
    return level_map.get(str(level_str).upper(), logging.INFO)


# Configure logging dynamically from config
try:
    log_level_str = get_config_value('logging', 'level', 'INFO')
    logging.basicConfig(level=get_logging_level(log_level_str))
    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured to level: {log_level_str}")
except Exception as e:
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)
    logger.error(f"Failed to configure logging from config: {e}, using INFO level")


async def submit_step(step: StepDescriptor, values: Dict[str, Any]) -> None:
    """
    Submission hook for the wizard.

    The registration step issues a session token; other steps have no side
    effect here because persistence belongs to the platform API.
    """
    if step.id == 'company':
        if not values.get('email') or not values.get('password'):
            raise SubmissionError("Email ve şifre gereklidir", step_id=step.id)
        SessionManager.set_auth_token(uuid.uuid4().hex)
        logger.info(f"Registered tenant '{values.get('name')}'")


def render_voice_settings(step: StepDescriptor, values: Dict[str, Any], on_change, loading: bool) -> None:
    """Custom step: assistant voice and greeting."""
    voices = ['female_tr', 'male_tr']
    current = values.get('voice', voices[0])
    voice = st.selectbox(
        "Ses",
        voices,
        index=voices.index(current) if current in voices else 0,
        key=f"component_{step.id}_voice",
        disabled=loading,
    )
    if voice != values.get('voice'):
        on_change({'voice': voice})

    default_greeting = f"Merhaba, {values.get('name') or 'firmamıza'} hoş geldiniz. Size nasıl yardımcı olabilirim?"
    greeting = st.text_area(
        "Karşılama mesajı",
        value=values.get('greeting') or default_greeting,
        key=f"component_{step.id}_greeting",
        disabled=loading,
    )
    if greeting != values.get('greeting'):
        on_change({'greeting': greeting})


CUSTOM_COMPONENTS = {
    'VoiceSettings': render_voice_settings,
}


def build_controller(industry: str) -> WizardController:
    """Load the industry schema and create a fresh controller."""
    schemas_dir = Path(get_config_value('schema', 'directory', 'schemas'))
    loaded = get_wizard_schema(
        industry,
        schemas_dir=schemas_dir,
        fallback_industry=get_config_value('schema', 'fallback_industry', 'default'),
    )
    if loaded.error:
        Notify.warn(loaded.error)

    return WizardController(
        loaded.schema.steps,
        values={'industry': industry, 'language': get_config_value('wizard', 'language', 'tr')},
        on_submit=submit_step,
        on_upload=ingest_csv,
        custom_components=CUSTOM_COMPONENTS,
        strict_working_hours=bool(get_config_value('wizard', 'strict_working_hours', False)),
    )


def render_header(industry: str, controller: WizardController) -> None:
    display = get_industry_display(industry)
    st.title(f"{STEP_ICONS.get(display['icon'], '')} {display['title']}".strip())
    st.caption(f"{display['subtitle']} - {len(controller.steps)} adımda hayata geçir")


def render_progress(controller: WizardController) -> None:
    """Step circles; locked steps are disabled."""
    cols = st.columns(len(controller.steps))
    for col, state in zip(cols, controller.step_states()):
        with col:
            marker = "✔" if state['completed'] else STEP_ICONS.get(state['icon'] or '', str(state['index'] + 1))
            clicked = st.button(
                f"{marker} Adım {state['index'] + 1}",
                key=f"progress_{state['id']}",
                disabled=not state['clickable'] or state['current'],
                type="primary" if state['current'] else "secondary",
            )
            st.caption(state['title'])
            if clicked:
                controller.jump_to(state['index'])
                st.rerun()


def run_transition(controller: WizardController, action: str) -> Optional[WizardEvent]:
    """Drive an async controller transition from a button callback."""
    with show_loading("Kaydediliyor..."):
        if action == 'next':
            event = asyncio.run(controller.next())
        else:
            event = asyncio.run(controller.skip())
    logger.debug(f"Transition {action}: {event}")
    return event


def render_completion(controller: WizardController) -> None:
    st.success("Kurulum tamamlandı! Asistanınız hazırlanıyor.")
    if st.button("Yeni kurulum başlat"):
        SessionManager.reset_wizard()
        st.rerun()


def validate_configuration():
    """
    Validate the loaded configuration.

    Returns:
        (config, is_valid); the defaults are returned when validation fails
    """
    config = get_config()
    if validate_config(config):
        return config, True
    logger.warning("Configuration is invalid, using defaults")
    return get_default_config(), False


def upload_catalog(controller: WizardController, file: Any) -> int:
    """Ingest an uploaded CSV and confirm how many rows were added."""
    count = asyncio.run(controller.upload(file))
    if count:
        Notify.success(f"{count} kayıt eklendi")
    return count


def main():
    """Main application entry point."""
    config, config_valid = validate_configuration()
    st.set_page_config(
        page_title=config['ui']['page_title'],
        page_icon=config['ui']['page_icon'],
        layout="centered",
    )
    if not config_valid:
        st.warning("⚠️ **Konfigürasyon sorunları tespit edildi**")
        st.warning("Bazı ayarlar geçersiz, gerekli yerlerde varsayılanlar kullanılıyor.")
    SessionManager.initialize()

    industry = st.query_params.get('industry', config['wizard']['default_industry'])
    controller = SessionManager.get_controller(industry, lambda: build_controller(industry))

    render_header(industry, controller)
    if controller.completed:
        render_completion(controller)
        return

    render_progress(controller)

    interpreter = controller.interpreter
    interpreter.render(
        error=controller.step_error,
        loading=controller.loading,
        on_upload=lambda file: upload_catalog(controller, file),
    )

    def on_next():
        if run_transition(controller, 'next') != WizardEvent.IGNORED:
            st.rerun()

    def on_back():
        if controller.back():
            st.rerun()

    def on_skip():
        if run_transition(controller, 'skip') != WizardEvent.IGNORED:
            st.rerun()

    interpreter.render_navigation(
        on_next=on_next,
        on_back=on_back,
        on_skip=on_skip if controller.current_step.skippable else None,
        loading=controller.loading,
        is_first=controller.is_first_step,
        is_last=controller.is_last_step,
    )


if __name__ == "__main__":
    main()
