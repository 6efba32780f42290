"""
Descriptor models for the formflow onboarding wizard.
Parses field/step schema documents into Pydantic models used by the renderer,
the validation engine and the step interpreter.
"""

from enum import Enum
from typing import Dict, Any, List, Optional, Union
import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

# Reserved value bag keys written by special step kinds
CATALOG_ITEMS_KEY = "catalogItems"
WORKING_HOURS_KEY = "workingHours"


class FieldType(str, Enum):
    """Closed set of supported field control types."""
    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    PASSWORD = "password"
    TEXTAREA = "textarea"
    NUMBER = "number"
    CURRENCY = "currency"
    SELECT = "select"
    MULTISELECT = "multiselect"
    CHECKBOX = "checkbox"
    TIME = "time"


class StepKind(str, Enum):
    """Rendering branch selected for a step descriptor."""
    FORM = "form"
    CATALOG = "catalog"
    WORKING_HOURS = "working_hours"
    COMPONENT = "component"


def _schema_config() -> ConfigDict:
    # Documents use camelCase keys; unknown keys are dropped
    return ConfigDict(extra='ignore', populate_by_name=True, frozen=True)


class FieldOption(BaseModel):
    """One entry of a select/multiselect option list."""
    model_config = _schema_config()

    value: Any
    label: str = ""

    @model_validator(mode='before')
    @classmethod
    def _coerce_scalar(cls, data: Any) -> Any:
        # Allow shorthand options like ["a", "b"]
        if not isinstance(data, dict):
            return {'value': data, 'label': str(data)}
        if 'label' not in data and 'value' in data:
            return {**data, 'label': str(data['value'])}
        return data


class ValidationRules(BaseModel):
    """Optional validation constraints attached to a field."""
    model_config = _schema_config()

    min_length: Optional[int] = Field(default=None, alias='minLength')
    max_length: Optional[int] = Field(default=None, alias='maxLength')
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    pattern: Optional[str] = None
    pattern_message: Optional[str] = Field(default=None, alias='patternMessage')


class FieldDescriptor(BaseModel):
    """
    Declarative description of one input.

    ``type`` is kept as a FieldType when it is known; unknown type strings are
    preserved verbatim so the renderer can fall back to a text control.
    """
    model_config = _schema_config()

    name: str
    label: str = ""
    type: Union[FieldType, str] = FieldType.TEXT
    required: bool = False
    placeholder: Optional[str] = None
    hint: Optional[str] = None
    default: Any = None
    disabled: bool = False
    width: Optional[str] = None
    rows: int = 3
    currency: str = "TRY"
    options: List[FieldOption] = Field(default_factory=list)
    allow_custom: bool = Field(default=False, alias='allowCustom')
    validation: Optional[ValidationRules] = None

    @field_validator('type', mode='before')
    @classmethod
    def _parse_type(cls, value: Any) -> Any:
        if isinstance(value, FieldType):
            return value
        try:
            return FieldType(value)
        except ValueError:
            logger.warning(f"Unknown field type '{value}', it will be rendered as text")
            return str(value)

    @model_validator(mode='before')
    @classmethod
    def _default_label(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get('label') and 'name' in data:
            return {**data, 'label': str(data['name'])}
        return data

    @property
    def option_values(self) -> List[Any]:
        return [option.value for option in self.options]

    def option_label(self, value: Any) -> str:
        """Return the label for an option value, or the value itself."""
        for option in self.options:
            if option.value == value:
                return option.label
        return "" if value is None else str(value)


class StepDescriptor(BaseModel):
    """Declarative description of one wizard step."""
    model_config = _schema_config()

    id: str
    title: str = ""
    description: Optional[str] = None
    icon: Optional[str] = None
    required: bool = False
    skippable: bool = False
    skip_label: Optional[str] = Field(default=None, alias='skipLabel')
    type: Optional[str] = None
    component: Optional[str] = None
    fields: Optional[List[FieldDescriptor]] = None
    csv_support: bool = Field(default=False, alias='csvSupport')
    catalog_table: Optional[str] = Field(default=None, alias='catalogTable')

    @model_validator(mode='after')
    def _check_fields_for_kind(self) -> 'StepDescriptor':
        if self.kind == StepKind.CATALOG and not self.fields:
            raise ValueError(f"Catalog step '{self.id}' must define fields")
        if self.fields:
            names = [f.name for f in self.fields]
            duplicates = sorted({n for n in names if names.count(n) > 1})
            if duplicates:
                raise ValueError(f"Step '{self.id}' has duplicate field names: {duplicates}")
        return self

    @property
    def kind(self) -> StepKind:
        """Resolve the rendering branch; a component key takes precedence."""
        if self.component:
            return StepKind.COMPONENT
        if self.type == StepKind.CATALOG.value:
            return StepKind.CATALOG
        if self.type == StepKind.WORKING_HOURS.value:
            return StepKind.WORKING_HOURS
        return StepKind.FORM

    @property
    def field_list(self) -> List[FieldDescriptor]:
        """Fields used by this step's branch (empty for hours/component steps)."""
        if self.kind in (StepKind.FORM, StepKind.CATALOG):
            return list(self.fields or [])
        return []

    @property
    def display_skip_label(self) -> str:
        return self.skip_label or "Atla"


class WizardSchema(BaseModel):
    """A complete wizard document: an ordered list of steps."""
    model_config = _schema_config()

    version: str = "1.0"
    steps: List[StepDescriptor] = Field(default_factory=list)

    @field_validator('version', mode='before')
    @classmethod
    def _version_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else "1.0"


def parse_field(data: Union[FieldDescriptor, Dict[str, Any]]) -> FieldDescriptor:
    """Return a FieldDescriptor for either a model or a raw schema dict."""
    if isinstance(data, FieldDescriptor):
        return data
    return FieldDescriptor.model_validate(data)


def parse_fields(items: List[Union[FieldDescriptor, Dict[str, Any]]]) -> List[FieldDescriptor]:
    return [parse_field(item) for item in items or []]


def parse_step(data: Union[StepDescriptor, Dict[str, Any]]) -> StepDescriptor:
    """Return a StepDescriptor for either a model or a raw schema dict."""
    if isinstance(data, StepDescriptor):
        return data
    return StepDescriptor.model_validate(data)
