"""
Session state management for the formflow Streamlit app.
Keeps the wizard controller (and with it the canonical value bag) alive across
Streamlit reruns.
"""

import streamlit as st
from typing import Optional, Callable
from datetime import datetime
import logging

from .wizard_controller import WizardController

logger = logging.getLogger(__name__)

CONTROLLER_KEY = 'wizard_controller'
INDUSTRY_KEY = 'wizard_industry'


class SessionManager:
    """Manages Streamlit session state for the onboarding wizard."""

    @staticmethod
    def initialize():
        """Initialize session state variables with default values."""
        defaults = {
            INDUSTRY_KEY: None,
            CONTROLLER_KEY: None,
            'auth_token': None,
            'last_activity': datetime.now(),
            'session_id': None,
        }

        for key, default_value in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = default_value

        if not st.session_state['session_id']:
            st.session_state['session_id'] = f"session_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
            logger.info(f"Session initialized: {st.session_state['session_id']}")

    @staticmethod
    def get_controller(industry: str, factory: Callable[[], WizardController]) -> WizardController:
        """
        Return the wizard controller for this session.

        A new controller is built when none exists or the industry changed.
        """
        controller = st.session_state.get(CONTROLLER_KEY)
        if controller is None or st.session_state.get(INDUSTRY_KEY) != industry:
            if controller is not None:
                logger.info(f"Industry changed: {st.session_state.get(INDUSTRY_KEY)} -> {industry}")
            controller = factory()
            st.session_state[CONTROLLER_KEY] = controller
            st.session_state[INDUSTRY_KEY] = industry
        SessionManager.update_activity()
        return controller

    @staticmethod
    def reset_wizard():
        """Drop the controller so the next render starts from step one."""
        st.session_state[CONTROLLER_KEY] = None
        st.session_state['auth_token'] = None
        logger.info("Wizard state reset")

    @staticmethod
    def set_auth_token(token: Optional[str]):
        """Store the session token returned by registration."""
        st.session_state['auth_token'] = token
        if token:
            logger.info("Auth token stored for session")

    @staticmethod
    def update_activity():
        """Update last activity timestamp."""
        st.session_state['last_activity'] = datetime.now()
