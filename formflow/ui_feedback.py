"""
UI feedback utilities for the formflow wizard.
Provides loading indicators and toast notifications.
"""

import streamlit as st
from contextlib import contextmanager
import logging

logger = logging.getLogger(__name__)


@contextmanager
def show_loading(message: str = "Yükleniyor..."):
    """Context manager for a spinner while an external call is awaited."""
    with st.spinner(message):
        yield


class Notify:
    """
    Toast-first notification helper.
    Uses st.toast and falls back to inline messages if the toast call fails.

    Usage:
    Notify.success("Kaydedildi")
    Notify.warn("Konfigürasyon yüklenemedi")
    """

    ICONS = {
        'success': '✅',
        'warning': '⚠️'
    }

    @staticmethod
    def _display_notification(message: str, notification_type: str = 'warning') -> None:
        icon = Notify.ICONS.get(notification_type, Notify.ICONS['warning'])
        try:
            st.toast(message, icon=icon)
        except Exception as e:
            logger.error(f"Error using st.toast: {e}", exc_info=True)
            full_message = f"{icon} {message}"
            if notification_type == 'success':
                st.success(full_message)
            else:
                st.warning(full_message)

    @staticmethod
    def success(message: str) -> None:
        Notify._display_notification(message, 'success')

    @staticmethod
    def warn(message: str) -> None:
        Notify._display_notification(message, 'warning')

