"""
Unit tests for the descriptor models.
"""

import logging

import pytest
from pydantic import ValidationError

from formflow.descriptors import (
    FieldDescriptor, FieldType, StepDescriptor, StepKind, WizardSchema,
    parse_field, parse_fields, parse_step
)


class TestFieldDescriptor:
    """Test cases for FieldDescriptor parsing."""

    def test_camel_case_keys(self):
        """Test that camelCase schema keys map to model attributes."""
        field = parse_field({
            'name': 'city',
            'label': 'Şehir',
            'type': 'select',
            'allowCustom': True,
            'options': [{'value': 'ist', 'label': 'İstanbul'}],
            'validation': {'minLength': 2, 'maxLength': 20, 'patternMessage': 'Hatalı'},
        })

        assert field.type == FieldType.SELECT
        assert field.allow_custom is True
        assert field.validation.min_length == 2
        assert field.validation.max_length == 20
        assert field.validation.pattern_message == 'Hatalı'

    def test_defaults(self):
        """Test default values for optional attributes."""
        field = parse_field({'name': 'notes', 'type': 'textarea'})

        assert field.label == 'notes'
        assert field.required is False
        assert field.rows == 3
        assert field.currency == 'TRY'
        assert field.options == []
        assert field.validation is None

    def test_missing_type_defaults_to_text(self):
        field = parse_field({'name': 'name', 'label': 'Ad'})
        assert field.type == FieldType.TEXT

    def test_unknown_type_is_kept(self, caplog):
        """Test that unknown field types survive parsing and are logged."""
        with caplog.at_level(logging.WARNING):
            field = parse_field({'name': 'color', 'type': 'color'})

        assert field.type == 'color'
        assert "Unknown field type" in caplog.text

    def test_known_type_is_enum(self):
        assert parse_field({'name': 'a', 'type': 'currency'}).type == FieldType.CURRENCY

    def test_unknown_keys_ignored(self):
        field = parse_field({'name': 'a', 'type': 'text', 'tooltip': 'x'})
        assert not hasattr(field, 'tooltip')

    def test_scalar_options(self):
        """Test that plain option values are coerced into value/label pairs."""
        field = parse_field({'name': 'fuel', 'type': 'select', 'options': ['Benzin', 'Dizel']})

        assert field.option_values == ['Benzin', 'Dizel']
        assert field.options[0].label == 'Benzin'

    def test_option_label_lookup(self):
        field = parse_field({
            'name': 'size',
            'type': 'select',
            'options': [{'value': 's', 'label': 'Küçük'}, {'value': 'l'}],
        })

        assert field.option_label('s') == 'Küçük'
        assert field.option_label('l') == 'l'
        assert field.option_label('custom') == 'custom'
        assert field.option_label(None) == ''

    def test_descriptor_is_immutable(self):
        field = parse_field({'name': 'a'})
        with pytest.raises(ValidationError):
            field.name = 'b'

    def test_parse_field_passthrough(self):
        field = FieldDescriptor(name='a')
        assert parse_field(field) is field

    def test_parse_fields_none(self):
        assert parse_fields(None) == []


class TestStepDescriptor:
    """Test cases for StepDescriptor parsing and kind resolution."""

    def test_form_step(self):
        step = parse_step({'id': 'company', 'title': 'Firma', 'fields': [{'name': 'name'}]})

        assert step.kind == StepKind.FORM
        assert [f.name for f in step.field_list] == ['name']

    def test_catalog_step(self):
        step = parse_step({
            'id': 'vehicles',
            'type': 'catalog',
            'csvSupport': True,
            'catalogTable': 'vehicles',
            'skippable': True,
            'skipLabel': 'Sonra ekle',
            'fields': [{'name': 'brand', 'required': True}],
        })

        assert step.kind == StepKind.CATALOG
        assert step.csv_support is True
        assert step.catalog_table == 'vehicles'
        assert step.display_skip_label == 'Sonra ekle'

    def test_default_skip_label(self):
        step = parse_step({'id': 'x', 'skippable': True})
        assert step.display_skip_label == 'Atla'

    def test_working_hours_step_has_no_fields(self):
        step = parse_step({'id': 'hours', 'type': 'working_hours', 'fields': [{'name': 'ignored'}]})

        assert step.kind == StepKind.WORKING_HOURS
        assert step.field_list == []

    def test_component_takes_precedence(self):
        """Test that a component key wins over the declared type."""
        step = parse_step({'id': 'voice', 'type': 'catalog', 'component': 'VoiceSettings',
                           'fields': [{'name': 'x'}]})
        assert step.kind == StepKind.COMPONENT

    def test_catalog_step_without_fields_rejected(self):
        with pytest.raises(ValidationError):
            parse_step({'id': 'services', 'type': 'catalog'})

    def test_duplicate_field_names_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_step({'id': 'company', 'fields': [{'name': 'email'}, {'name': 'email'}]})
        assert 'duplicate' in str(exc_info.value)

    def test_missing_id_rejected(self):
        with pytest.raises(ValidationError):
            parse_step({'title': 'No id'})


class TestWizardSchema:
    """Test cases for the top-level wizard document."""

    def test_numeric_version_is_string(self):
        schema = WizardSchema.model_validate({'version': 2.0, 'steps': [{'id': 'a'}]})

        assert schema.version == '2.0'
        assert schema.steps[0].id == 'a'

    def test_empty_document(self):
        schema = WizardSchema.model_validate({})
        assert schema.steps == []
