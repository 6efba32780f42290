"""
Config-driven field renderer for the onboarding wizard.
Maps one field descriptor plus its current value to a Streamlit control and
reports edits through an ``on_change(name, value)`` callback.
"""

import re
import streamlit as st
from datetime import datetime, time
from typing import Dict, Any, List, Optional, Callable, Union
import logging

from .descriptors import FieldDescriptor, FieldType, parse_field

logger = logging.getLogger(__name__)

OnFieldChange = Callable[[str, Any], None]

SELECT_PLACEHOLDER = "Seçiniz..."
CUSTOM_VALUE_PLACEHOLDER = "Veya özel değer girin..."
SHOW_PASSWORD_LABEL = "Şifreyi göster"


def format_currency(value: Any) -> str:
    """
    Format a raw amount for display using tr-TR grouping (1.234.567).

    Empty and zero values display as an empty string.
    """
    if value in (None, '') or value == 0:
        return ''
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return str(value)

    if amount.is_integer():
        grouped = f"{int(amount):,}"
        return grouped.replace(',', '.')

    # tr-TR uses '.' for thousands and ',' for decimals
    grouped = f"{amount:,.2f}".rstrip('0').rstrip('.')
    return grouped.replace(',', '_').replace('.', ',').replace('_', '.')


def parse_currency(text: Optional[str]) -> Union[int, str]:
    """Strip every non-digit and return the number, or '' when nothing is left."""
    digits = re.sub(r'\D', '', text or '')
    return int(digits) if digits else ''


def toggle_option(selected: Optional[List[Any]], option_value: Any, checked: bool) -> List[Any]:
    """
    Add or remove one option from a multiselect value.

    The input list is never mutated; a new list is returned.
    """
    current = list(selected) if isinstance(selected, list) else []
    if checked:
        if option_value in current:
            return current
        return current + [option_value]
    return [value for value in current if value != option_value]


def commit_custom_value(field: FieldDescriptor, raw_value: Optional[str], on_change: OnFieldChange) -> bool:
    """
    Commit the free-text sibling of a select field.

    The value overwrites the select's value and does not need to be one of the
    configured options. Blank input is ignored.

    Returns:
        True when a value was committed
    """
    if not raw_value:
        return False
    on_change(field.name, raw_value)
    return True


def parse_time_value(value: Any) -> Optional[time]:
    """Turn an 'HH:MM' string (or time/datetime) into a time object."""
    if value in (None, ''):
        return None
    if isinstance(value, time):
        return value
    if isinstance(value, datetime):
        return value.time()
    try:
        from dateutil import parser
        return parser.parse(str(value)).time()
    except (ValueError, OverflowError) as e:
        logger.warning(f"Failed to parse time string '{value}': {e}")
        return None


def format_time_value(value: Optional[time]) -> str:
    return value.strftime("%H:%M") if value is not None else ''


class FieldRenderer:
    """Renders single fields based on their descriptors."""

    @staticmethod
    def widget_key(field: FieldDescriptor, key_prefix: str = "field") -> str:
        return f"{key_prefix}_{field.name}"

    @staticmethod
    def display_label(field: FieldDescriptor) -> str:
        """Label with a required marker."""
        return f"{field.label} *" if field.required else field.label

    @staticmethod
    def render(
        descriptor: Union[FieldDescriptor, Dict[str, Any]],
        current_value: Any,
        on_change: OnFieldChange,
        error: Optional[str] = None,
        key_prefix: str = "field"
    ) -> Any:
        """
        Render one field and report edits through ``on_change``.

        Args:
            descriptor: Field descriptor (model or raw schema dict)
            current_value: Value currently held in the value bag
            on_change: Called as on_change(name, value) when the user edits the field
            error: Inline error message for this field
            key_prefix: Widget key namespace, so the same field can appear twice

        Returns:
            The value shown by the control after this render
        """
        field = parse_field(descriptor)
        key = FieldRenderer.widget_key(field, key_prefix)
        field_type = field.type

        if field_type in (FieldType.TEXT, FieldType.EMAIL, FieldType.TEL):
            value = FieldRenderer._render_text_input(field, current_value, on_change, key)
        elif field_type == FieldType.PASSWORD:
            value = FieldRenderer._render_password_input(field, current_value, on_change, key)
        elif field_type == FieldType.TEXTAREA:
            value = FieldRenderer._render_text_area(field, current_value, on_change, key)
        elif field_type == FieldType.NUMBER:
            value = FieldRenderer._render_number_input(field, current_value, on_change, key)
        elif field_type == FieldType.CURRENCY:
            value = FieldRenderer._render_currency_input(field, current_value, on_change, key)
        elif field_type == FieldType.SELECT:
            value = FieldRenderer._render_selectbox(field, current_value, on_change, key)
        elif field_type == FieldType.MULTISELECT:
            value = FieldRenderer._render_multiselect(field, current_value, on_change, key)
        elif field_type == FieldType.CHECKBOX:
            value = FieldRenderer._render_checkbox(field, current_value, on_change, key)
        elif field_type == FieldType.TIME:
            value = FieldRenderer._render_time_input(field, current_value, on_change, key)
        else:
            logger.warning(f"Unknown field type: {field_type} (field '{field.name}'), rendering as text")
            value = FieldRenderer._render_text_input(field, current_value, on_change, key)

        if error:
            st.error(error)
        if field.hint:
            st.caption(field.hint)

        return value

    @staticmethod
    def _emit_if_changed(field: FieldDescriptor, old_value: Any, new_value: Any, on_change: OnFieldChange) -> Any:
        if new_value != old_value:
            logger.debug(f"[FieldRenderer] {field.name} changed")
            on_change(field.name, new_value)
        return new_value

    @staticmethod
    def _render_text_input(field: FieldDescriptor, current_value: Any, on_change: OnFieldChange, key: str) -> str:
        """Render text, email and tel inputs (and the unknown-type fallback)."""
        shown = current_value if isinstance(current_value, str) else ('' if current_value is None else str(current_value))
        kwargs: Dict[str, Any] = {
            'value': shown,
            'key': key,
            'placeholder': field.placeholder,
            'disabled': field.disabled,
        }
        if field.validation is not None and field.validation.max_length:
            kwargs['max_chars'] = field.validation.max_length

        value = st.text_input(FieldRenderer.display_label(field), **kwargs)
        value = value if value is not None else ''
        if value == shown:
            return current_value if current_value is not None else ''
        return FieldRenderer._emit_if_changed(field, current_value, value, on_change)

    @staticmethod
    def _render_password_input(field: FieldDescriptor, current_value: Any, on_change: OnFieldChange, key: str) -> str:
        """Render a masked input with a local visibility toggle."""
        visible_key = f"{key}_visible"
        visible = bool(st.session_state.get(visible_key, False))

        shown = current_value or ''
        value = st.text_input(
            FieldRenderer.display_label(field),
            value=shown,
            key=key,
            type="default" if visible else "password",
            placeholder=field.placeholder,
            disabled=field.disabled,
        )
        st.checkbox(SHOW_PASSWORD_LABEL, key=visible_key)

        value = value if value is not None else ''
        if value == shown:
            return shown
        return FieldRenderer._emit_if_changed(field, current_value, value, on_change)

    @staticmethod
    def _render_text_area(field: FieldDescriptor, current_value: Any, on_change: OnFieldChange, key: str) -> str:
        """Render text area field."""
        shown = current_value or ''
        kwargs: Dict[str, Any] = {
            'value': shown,
            'key': key,
            'placeholder': field.placeholder,
            'disabled': field.disabled,
            'height': max(68, field.rows * 28),
        }
        if field.validation is not None and field.validation.max_length:
            kwargs['max_chars'] = field.validation.max_length

        value = st.text_area(FieldRenderer.display_label(field), **kwargs)
        value = value if value is not None else ''
        if value == shown:
            return shown
        return FieldRenderer._emit_if_changed(field, current_value, value, on_change)

    @staticmethod
    def _render_number_input(field: FieldDescriptor, current_value: Any, on_change: OnFieldChange, key: str) -> Union[int, float, str]:
        """Render number input; an empty input is stored as ''."""
        step = 1
        if field.validation is not None and field.validation.step:
            step = field.validation.step

        use_float = isinstance(current_value, float) or not float(step).is_integer()
        if use_float:
            step = float(step)
        else:
            step = int(step)

        shown: Optional[Union[int, float]] = None
        if isinstance(current_value, (int, float)) and not isinstance(current_value, bool):
            shown = float(current_value) if use_float else int(current_value)

        help_parts = []
        if field.validation is not None:
            if field.validation.min is not None:
                help_parts.append(f">= {field.validation.min:g}")
            if field.validation.max is not None:
                help_parts.append(f"<= {field.validation.max:g}")

        value = st.number_input(
            FieldRenderer.display_label(field),
            value=shown,
            step=step,
            key=key,
            placeholder=field.placeholder,
            disabled=field.disabled,
            help=f"Allowed: {', '.join(help_parts)}" if help_parts else None,
        )

        new_value: Union[int, float, str] = '' if value is None else value
        if new_value == ('' if shown is None else shown):
            return current_value if current_value is not None else ''
        return FieldRenderer._emit_if_changed(field, current_value, new_value, on_change)

    @staticmethod
    def _render_currency_input(field: FieldDescriptor, current_value: Any, on_change: OnFieldChange, key: str) -> Union[int, str]:
        """
        Render a formatted amount; the value bag keeps the raw number.

        The widget state is hydrated from the value bag on every render, and
        edits are committed from the widget callback so the control shows the
        tr-TR grouping again after each change.
        """
        stored = current_value if current_value is not None else ''
        shown = format_currency(current_value)
        st.session_state[key] = shown

        def commit_amount() -> None:
            amount = parse_currency(st.session_state.get(key))
            st.session_state[key] = format_currency(amount)
            if amount != stored:
                logger.debug(f"[FieldRenderer] {field.name} changed")
                on_change(field.name, amount)

        st.text_input(
            f"{FieldRenderer.display_label(field)} ({field.currency})",
            key=key,
            placeholder=field.placeholder,
            disabled=field.disabled,
            on_change=commit_amount,
        )
        return stored

    @staticmethod
    def _render_selectbox(field: FieldDescriptor, current_value: Any, on_change: OnFieldChange, key: str) -> Any:
        """Render selectbox with an optional free-text custom value."""
        selected = current_value if current_value not in (None, '') else field.default
        options = field.option_values
        # Custom values are shown even though they are not configured options
        if selected not in (None, '') and selected not in options:
            options = options + [selected]

        # Widget state follows the value bag; the placeholder shows while nothing is selected
        shown = selected if selected in options else None
        st.session_state[key] = shown
        custom_key = f"{key}_custom"

        def commit_selection() -> None:
            picked = st.session_state.get(key)
            if picked is not None and picked != current_value:
                logger.debug(f"[FieldRenderer] {field.name} changed")
                on_change(field.name, picked)

        def commit_custom() -> None:
            raw_value = st.session_state.get(custom_key)
            if commit_custom_value(field, raw_value, on_change):
                st.session_state[key] = raw_value

        value = st.selectbox(
            FieldRenderer.display_label(field),
            options=options,
            index=None,
            key=key,
            format_func=field.option_label,
            placeholder=field.placeholder or SELECT_PLACEHOLDER,
            disabled=field.disabled,
            on_change=commit_selection,
        )

        if field.allow_custom:
            st.text_input(
                CUSTOM_VALUE_PLACEHOLDER,
                key=custom_key,
                placeholder=CUSTOM_VALUE_PLACEHOLDER,
                label_visibility="collapsed",
                disabled=field.disabled,
                on_change=commit_custom,
            )

        return value if value is not None else selected

    @staticmethod
    def _render_multiselect(field: FieldDescriptor, current_value: Any, on_change: OnFieldChange, key: str) -> List[Any]:
        """Render one checkbox per option; the value is the list of selected option values."""
        selected = list(current_value) if isinstance(current_value, list) else []
        st.markdown(f"**{FieldRenderer.display_label(field)}**")

        for index, option in enumerate(field.options):
            was_checked = option.value in selected
            checked = st.checkbox(
                option.label,
                value=was_checked,
                key=f"{key}_option_{index}",
                disabled=field.disabled,
            )
            if bool(checked) != was_checked:
                selected = toggle_option(selected, option.value, bool(checked))
                on_change(field.name, selected)

        return selected

    @staticmethod
    def _render_checkbox(field: FieldDescriptor, current_value: Any, on_change: OnFieldChange, key: str) -> bool:
        """Render checkbox field; the label sits next to the box."""
        shown = current_value if current_value is not None else (field.default if field.default is not None else False)
        shown = bool(shown)
        value = st.checkbox(field.label, value=shown, key=key, disabled=field.disabled)
        if bool(value) == shown:
            return shown
        return FieldRenderer._emit_if_changed(field, current_value, bool(value), on_change)

    @staticmethod
    def _render_time_input(field: FieldDescriptor, current_value: Any, on_change: OnFieldChange, key: str) -> str:
        """Render time input; values are kept as 'HH:MM' strings."""
        shown = parse_time_value(current_value)
        value = st.time_input(
            FieldRenderer.display_label(field),
            value=shown,
            key=key,
            disabled=field.disabled,
        )
        new_value = format_time_value(value)
        if new_value == format_time_value(shown):
            return current_value if current_value is not None else ''
        return FieldRenderer._emit_if_changed(field, current_value, new_value, on_change)
