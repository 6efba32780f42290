"""
Step interpreter for the onboarding wizard.

Renders one step descriptor (plain form, catalog, working hours or a custom
component), keeps step-local state such as the catalog draft and the weekly
hours map, and decides whether the step may be left.
"""

import copy
import uuid
import streamlit as st
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional, Callable, Tuple, Union
import logging

from .descriptors import (
    CATALOG_ITEMS_KEY, WORKING_HOURS_KEY,
    FieldDescriptor, StepDescriptor, StepKind, parse_step
)
from .field_renderer import FieldRenderer, parse_time_value
from .validation import (
    CATALOG_ERROR_KEY, HOURS_ERROR_KEY, ErrorMap,
    missing_required_labels, validate
)

logger = logging.getLogger(__name__)

ValueUpdate = Dict[str, Any]
OnValuesChange = Callable[[ValueUpdate], None]
CustomComponent = Callable[..., Any]

# Monday first, Sunday (0) last
DAYS: List[Tuple[int, str]] = [
    (1, 'Pazartesi'),
    (2, 'Salı'),
    (3, 'Çarşamba'),
    (4, 'Perşembe'),
    (5, 'Cuma'),
    (6, 'Cumartesi'),
    (0, 'Pazar'),
]

DEFAULT_WORKING_HOURS: Dict[int, Dict[str, Any]] = {
    1: {'open_time': '09:00', 'close_time': '18:00', 'is_open': True},
    2: {'open_time': '09:00', 'close_time': '18:00', 'is_open': True},
    3: {'open_time': '09:00', 'close_time': '18:00', 'is_open': True},
    4: {'open_time': '09:00', 'close_time': '18:00', 'is_open': True},
    5: {'open_time': '09:00', 'close_time': '18:00', 'is_open': True},
    6: {'open_time': '10:00', 'close_time': '16:00', 'is_open': True},
    0: {'open_time': '', 'close_time': '', 'is_open': False},
}

MSG_CATALOG_EMPTY = "En az bir kayıt ekleyin"
MSG_HOURS_ORDER = "{day}: kapanış saati açılış saatinden sonra olmalıdır"

STEP_ICONS = {
    'Building2': '🏢',
    'Clock': '🕒',
    'Mic': '🎤',
    'PhoneCall': '📞',
    'Car': '🚗',
    'Scissors': '✂️',
    'Package': '📦',
    'Users': '👥',
}


class StepState(str, Enum):
    """Lifecycle of a single visit to a step."""
    EDITING = "editing"
    VALIDATING = "validating"
    REJECTED = "rejected"
    ACCEPTED = "accepted"


@dataclass
class StepOutcome:
    """Result of an advance request."""
    accepted: bool
    errors: ErrorMap = field(default_factory=dict)
    updates: ValueUpdate = field(default_factory=dict)


def new_local_id() -> str:
    """Generate a catalog item id that is unique for the session."""
    return uuid.uuid4().hex


def default_working_hours() -> Dict[int, Dict[str, Any]]:
    return copy.deepcopy(DEFAULT_WORKING_HOURS)


def normalize_working_hours(hours: Optional[Dict[Any, Any]]) -> Dict[int, Dict[str, Any]]:
    """
    Coerce an inbound hours map into int day keys.

    JSON documents carry day keys as strings; unknown keys are dropped and
    missing days are filled from the defaults.
    """
    if not hours:
        return default_working_hours()

    normalized = default_working_hours()
    for raw_day, day_hours in hours.items():
        try:
            day = int(raw_day)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring working hours entry with invalid day key: {raw_day!r}")
            continue
        if day not in normalized or not isinstance(day_hours, dict):
            logger.warning(f"Ignoring working hours entry for day {raw_day!r}")
            continue
        normalized[day] = {
            'open_time': day_hours.get('open_time') or '',
            'close_time': day_hours.get('close_time') or '',
            'is_open': bool(day_hours.get('is_open', False)),
        }
    return normalized


def summarize_item(fields: List[FieldDescriptor], item: Dict[str, Any]) -> Tuple[str, str]:
    """Title from the first two field values, subtitle from fields three to five."""
    title = ' '.join(str(item[f.name]) for f in fields[:2] if item.get(f.name))
    subtitle = ' - '.join(str(item[f.name]) for f in fields[2:5] if item.get(f.name))
    return title, subtitle


class StepInterpreter:
    """
    Interprets one step descriptor.

    The interpreter works on a snapshot of the wizard's value bag and reports
    every mutation upward through ``on_change`` as a partial update.
    """

    def __init__(
        self,
        step: Union[StepDescriptor, Dict[str, Any]],
        values: Optional[Dict[str, Any]] = None,
        on_change: Optional[OnValuesChange] = None,
        custom_components: Optional[Dict[str, CustomComponent]] = None,
        id_factory: Callable[[], str] = new_local_id,
        strict_working_hours: bool = False
    ):
        self.step = parse_step(step)
        self.values: Dict[str, Any] = dict(values or {})
        self.on_change = on_change
        self.custom_components = custom_components or {}
        self.id_factory = id_factory
        self.strict_working_hours = strict_working_hours

        self.state = StepState.EDITING
        self.field_errors: ErrorMap = {}
        self.draft: Dict[str, Any] = {}
        self.catalog_items: List[Dict[str, Any]] = list(self.values.get(CATALOG_ITEMS_KEY) or [])
        self.working_hours = normalize_working_hours(self.values.get(WORKING_HOURS_KEY))

    @property
    def kind(self) -> StepKind:
        return self.step.kind

    def _emit(self, update: ValueUpdate) -> None:
        self.values.update(update)
        if self.on_change is not None:
            self.on_change(update)

    def _clear_error(self, key: str) -> None:
        if key in self.field_errors:
            errors = dict(self.field_errors)
            del errors[key]
            self.field_errors = errors

    # ------------------------------------------------------------------
    # Plain form
    # ------------------------------------------------------------------

    def change_field(self, name: str, value: Any) -> None:
        """Store an edited field value and drop its stale error."""
        self.state = StepState.EDITING
        self._clear_error(name)
        self._emit({name: value})

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def change_draft(self, name: str, value: Any) -> None:
        """Edit the not-yet-added catalog record."""
        self.draft = {**self.draft, name: value}
        self._clear_error(name)

    def add_catalog_item(self) -> bool:
        """
        Append the draft to the catalog list.

        Only ``required`` flags are checked; missing labels are reported as one
        aggregate message under the catalog error key.

        Returns:
            True when the item was added
        """
        if not self.step.fields:
            return False

        missing = missing_required_labels(self.step.fields, self.draft)
        if missing:
            self.field_errors = {CATALOG_ERROR_KEY: f"{', '.join(missing)} zorunludur"}
            logger.debug(f"[add_catalog_item] Rejected draft for step {self.step.id}, missing: {missing}")
            return False

        item = {**self.draft, 'id': self.id_factory()}
        self.catalog_items = self.catalog_items + [item]
        self.draft = {}
        self.field_errors = {}
        self._emit({CATALOG_ITEMS_KEY: list(self.catalog_items)})
        logger.info(f"Catalog item added to step {self.step.id} ({len(self.catalog_items)} total)")
        return True

    def remove_catalog_item(self, item_id: Any) -> None:
        """Remove an item by id without confirmation."""
        self.catalog_items = [item for item in self.catalog_items if item.get('id') != item_id]
        self._emit({CATALOG_ITEMS_KEY: list(self.catalog_items)})

    def ingest_items(self, items: List[Dict[str, Any]]) -> int:
        """
        Append bulk-ingested records, each with a freshly minted id.

        Returns:
            Number of appended items
        """
        new_items = [
            {**{k: v for k, v in item.items() if k != 'id'}, 'id': self.id_factory()}
            for item in items or [] if isinstance(item, dict)
        ]
        if not new_items:
            return 0
        self.catalog_items = self.catalog_items + new_items
        self._clear_error(CATALOG_ERROR_KEY)
        self._emit({CATALOG_ITEMS_KEY: list(self.catalog_items)})
        logger.info(f"Ingested {len(new_items)} catalog item(s) into step {self.step.id}")
        return len(new_items)

    # ------------------------------------------------------------------
    # Working hours
    # ------------------------------------------------------------------

    def set_hours(self, day: int, key: str, value: Any) -> None:
        """Update one attribute of one day."""
        updated = {**self.working_hours, day: {**self.working_hours.get(day, {}), key: value}}
        self.working_hours = updated
        self._clear_error(HOURS_ERROR_KEY)
        self._emit({WORKING_HOURS_KEY: copy.deepcopy(self.working_hours)})

    def toggle_day(self, day: int) -> None:
        """Flip ``is_open`` while keeping previously entered times."""
        current = self.working_hours.get(day) or DEFAULT_WORKING_HOURS.get(day, {})
        self.set_hours(day, 'is_open', not current.get('is_open', False))

    def _check_hours_order(self) -> ErrorMap:
        day_labels = dict(DAYS)
        for day, _label in DAYS:
            hours = self.working_hours.get(day) or {}
            if not hours.get('is_open'):
                continue
            opens = parse_time_value(hours.get('open_time'))
            closes = parse_time_value(hours.get('close_time'))
            if opens is None or closes is None or opens >= closes:
                return {HOURS_ERROR_KEY: MSG_HOURS_ORDER.format(day=day_labels[day])}
        return {}

    # ------------------------------------------------------------------
    # Advance
    # ------------------------------------------------------------------

    def local_updates(self) -> ValueUpdate:
        """Step-local state to merge into the value bag on acceptance."""
        if self.kind == StepKind.CATALOG:
            return {CATALOG_ITEMS_KEY: list(self.catalog_items)}
        if self.kind == StepKind.WORKING_HOURS:
            return {WORKING_HOURS_KEY: copy.deepcopy(self.working_hours)}
        return {}

    def request_advance(self) -> StepOutcome:
        """
        Validate the step and decide whether the wizard may move on.

        Returns:
            StepOutcome; when rejected the errors are kept for display
        """
        self.state = StepState.VALIDATING
        kind = self.kind

        if kind == StepKind.FORM:
            errors = validate(self.step.field_list, self.values)
        elif kind == StepKind.CATALOG:
            if self.catalog_items or self.step.skippable:
                errors = {}
            else:
                errors = {CATALOG_ERROR_KEY: MSG_CATALOG_EMPTY}
        elif kind == StepKind.WORKING_HOURS:
            errors = self._check_hours_order() if self.strict_working_hours else {}
        elif kind == StepKind.COMPONENT:
            errors = {}
        else:
            logger.warning(f"Unhandled step kind {kind} for step {self.step.id}")
            errors = {}

        if errors:
            self.state = StepState.REJECTED
            self.field_errors = errors
            logger.info(f"Step {self.step.id} rejected: {sorted(errors)}")
            return StepOutcome(accepted=False, errors=dict(errors))

        self.state = StepState.ACCEPTED
        self.field_errors = {}
        updates = self.local_updates()
        self.values.update(updates)
        return StepOutcome(accepted=True, updates=updates)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, error: Optional[str] = None, loading: bool = False, on_upload: Optional[Callable[[Any], None]] = None) -> None:
        """
        Render the step body.

        Args:
            error: Step-scoped submission error shown above the content
            loading: True while the wizard awaits an external call
            on_upload: Called with the uploaded file for CSV-enabled catalog steps
        """
        self._render_header()
        if error:
            st.error(error)

        kind = self.kind
        if kind == StepKind.FORM:
            self._render_form_fields()
        elif kind == StepKind.CATALOG:
            self._render_catalog(loading, on_upload)
        elif kind == StepKind.WORKING_HOURS:
            self._render_working_hours()
        elif kind == StepKind.COMPONENT:
            self._render_custom_component(loading)

    def _render_header(self) -> None:
        icon = STEP_ICONS.get(self.step.icon or '', '')
        st.subheader(f"{icon} {self.step.title}".strip())
        if self.step.description:
            st.caption(self.step.description)

    def _render_field_grid(self, fields: List[FieldDescriptor], values: Dict[str, Any], on_change: Callable[[str, Any], None], key_prefix: str) -> None:
        cols = st.columns(2)
        for index, field_descriptor in enumerate(fields):
            with cols[index % 2]:
                FieldRenderer.render(
                    field_descriptor,
                    values.get(field_descriptor.name),
                    on_change,
                    self.field_errors.get(field_descriptor.name),
                    key_prefix=key_prefix,
                )

    @staticmethod
    def _reset_widgets(prefix: str) -> None:
        """Drop widget state so cleared values are not re-read from the controls."""
        for key in [k for k in st.session_state.keys() if str(k).startswith(prefix)]:
            del st.session_state[key]

    def _render_form_fields(self) -> None:
        self._render_field_grid(self.step.field_list, self.values, self.change_field, f"field_{self.step.id}")

    def _render_catalog(self, loading: bool, on_upload: Optional[Callable[[Any], None]]) -> None:
        fields = self.step.field_list

        if self.step.csv_support:
            with st.expander("CSV ile toplu yükleme"):
                st.caption(f"Sütunlar: {', '.join(f.label for f in fields)}")
                uploaded = st.file_uploader(
                    "CSV Yükle",
                    type=["csv"],
                    key=f"catalog_upload_{self.step.id}",
                    disabled=loading,
                )
                # The uploader keeps its file across reruns; ingest each upload once
                processed_key = f"catalog_upload_{self.step.id}_processed"
                if uploaded is not None and on_upload is not None:
                    upload_id = getattr(uploaded, 'file_id', None) or getattr(uploaded, 'name', None)
                    if st.session_state.get(processed_key) != upload_id:
                        st.session_state[processed_key] = upload_id
                        on_upload(uploaded)
                        st.rerun()

        if self.field_errors.get(CATALOG_ERROR_KEY):
            st.error(self.field_errors[CATALOG_ERROR_KEY])

        self._render_field_grid(fields, self.draft, self.change_draft, f"draft_{self.step.id}")
        if st.button("Ekle", key=f"catalog_add_{self.step.id}", type="primary", disabled=loading):
            if self.add_catalog_item():
                self._reset_widgets(f"draft_{self.step.id}_")
                st.rerun()

        if self.catalog_items:
            st.markdown(f"**Eklenenler ({len(self.catalog_items)})**")
            for item in self.catalog_items:
                title, subtitle = summarize_item(fields, item)
                col_text, col_action = st.columns([5, 1])
                with col_text:
                    st.markdown(f"**{title}**" if title else "-")
                    if subtitle:
                        st.caption(subtitle)
                with col_action:
                    if st.button("Sil", key=f"catalog_remove_{self.step.id}_{item.get('id')}"):
                        self.remove_catalog_item(item.get('id'))
                        st.rerun()
        else:
            st.info("Henüz eklenmedi")
            if self.step.skippable:
                st.caption("Bu adımı atlayabilir, daha sonra ekleyebilirsiniz.")

    def _render_working_hours(self) -> None:
        st.caption("Asistanın randevu alabilmesi için çalışma saatlerinizi belirleyin")
        if self.field_errors.get(HOURS_ERROR_KEY):
            st.error(self.field_errors[HOURS_ERROR_KEY])

        for day, label in DAYS:
            hours = self.working_hours.get(day) or DEFAULT_WORKING_HOURS[day]
            col_day, col_toggle, col_open, col_close = st.columns([2, 1, 2, 2])
            with col_day:
                st.markdown(f"**{label}**")
            with col_toggle:
                is_open = st.toggle(
                    "Açık" if hours.get('is_open') else "Kapalı",
                    value=bool(hours.get('is_open')),
                    key=f"hours_{day}_open",
                )
                if bool(is_open) != bool(hours.get('is_open')):
                    self.toggle_day(day)
                    hours = self.working_hours[day]
            if not hours.get('is_open'):
                continue
            for column, attr, fallback in ((col_open, 'open_time', '09:00'), (col_close, 'close_time', '18:00')):
                with column:
                    shown = parse_time_value(hours.get(attr) or fallback)
                    picked = st.time_input(
                        "Açılış" if attr == 'open_time' else "Kapanış",
                        value=shown,
                        key=f"hours_{day}_{attr}",
                        label_visibility="collapsed",
                    )
                    picked_str = picked.strftime("%H:%M") if picked is not None else ''
                    if picked_str != (hours.get(attr) or ''):
                        self.set_hours(day, attr, picked_str)

    def _render_custom_component(self, loading: bool) -> None:
        component = self.custom_components.get(self.step.component or '')
        if component is None:
            logger.warning(f"Custom component not found: {self.step.component}")
            return
        component(self.step, self.values, self._emit, loading)

    def render_navigation(
        self,
        on_next: Callable[[], None],
        on_back: Callable[[], None],
        on_skip: Optional[Callable[[], None]] = None,
        loading: bool = False,
        is_first: bool = False,
        is_last: bool = False
    ) -> None:
        """Render back / skip / continue buttons."""
        col_back, col_skip, col_next = st.columns(3)

        with col_back:
            if not is_first and st.button("Geri", key=f"nav_back_{self.step.id}", disabled=loading):
                on_back()

        with col_skip:
            if self.step.skippable and on_skip is not None:
                if st.button(self.step.display_skip_label, key=f"nav_skip_{self.step.id}", disabled=loading):
                    on_skip()

        with col_next:
            if loading:
                label = "Kaydediliyor..."
            elif is_last:
                label = "Tamamla"
            else:
                label = "Devam Et"
            if st.button(label, key=f"nav_next_{self.step.id}", type="primary", disabled=loading):
                on_next()
