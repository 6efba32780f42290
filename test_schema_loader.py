"""
Unit tests for schema loader module.
"""

import json
import logging
from pathlib import Path

import pytest
import yaml

from formflow.descriptors import StepKind
from formflow.exceptions import SchemaLoadError
from formflow.schema_loader import (
    find_schema_file, get_fallback_schema, get_industry_display, get_wizard_schema,
    load_schema_file, parse_schema
)

SHIPPED_SCHEMAS = Path(__file__).parent / 'schemas'


def write_yaml(path: Path, document) -> Path:
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(document, f, allow_unicode=True)
    return path


@pytest.fixture
def schemas_dir(tmp_path):
    """Directory with a beauty schema and a default schema."""
    write_yaml(tmp_path / 'beauty.yaml', {
        'version': '2.0',
        'steps': [
            {'id': 'company', 'fields': [{'name': 'name', 'required': True}]},
            {'id': 'services', 'type': 'catalog', 'fields': [{'name': 'service_name', 'required': True}]},
        ],
    })
    write_yaml(tmp_path / 'default.yaml', {
        'version': '2.0',
        'steps': [{'id': 'company', 'fields': [{'name': 'name'}]}],
    })
    return tmp_path


class TestLoadSchemaFile:
    """Test cases for loading individual schema documents."""

    def test_load_yaml(self, schemas_dir):
        schema = load_schema_file(schemas_dir / 'beauty.yaml')

        assert [step.id for step in schema.steps] == ['company', 'services']
        assert schema.steps[1].kind == StepKind.CATALOG

    def test_load_json(self, tmp_path):
        path = tmp_path / 'hairdresser.json'
        path.write_text(json.dumps({'version': '2.0', 'steps': [{'id': 'company'}]}), encoding='utf-8')

        schema = load_schema_file(path)

        assert schema.steps[0].id == 'company'

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / 'schema.txt'
        path.write_text('steps: []', encoding='utf-8')

        with pytest.raises(SchemaLoadError):
            load_schema_file(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / 'broken.yaml'
        path.write_text('steps: [unclosed', encoding='utf-8')

        with pytest.raises(SchemaLoadError) as exc_info:
            load_schema_file(path)
        assert exc_info.value.context['schema_path'] == str(path)

    def test_invalid_step_grammar(self, tmp_path):
        path = write_yaml(tmp_path / 'bad.yaml', {'steps': [{'id': 'catalog', 'type': 'catalog'}]})

        with pytest.raises(SchemaLoadError):
            load_schema_file(path)

    def test_parse_schema_requires_mapping(self):
        with pytest.raises(SchemaLoadError):
            parse_schema(['not', 'a', 'mapping'], Path('list.yaml'))


class TestGetWizardSchema:
    """Test cases for the industry fallback chain."""

    def test_industry_document(self, schemas_dir):
        loaded = get_wizard_schema('beauty', schemas_dir)

        assert loaded.source.endswith('beauty.yaml')
        assert loaded.error is None
        assert not loaded.is_fallback

    def test_unknown_industry_uses_default_document(self, schemas_dir):
        loaded = get_wizard_schema('florist', schemas_dir)

        assert loaded.source.endswith('default.yaml')
        assert len(loaded.schema.steps) == 1

    def test_industry_cannot_leave_schemas_directory(self, tmp_path):
        schemas = tmp_path / 'schemas'
        schemas.mkdir()
        write_yaml(schemas / 'default.yaml', {'steps': [{'id': 'company', 'fields': [{'name': 'name'}]}]})
        write_yaml(tmp_path / 'secret.yaml', {'steps': [{'id': 'a'}, {'id': 'b'}, {'id': 'c'}]})

        loaded = get_wizard_schema('../secret', schemas)

        assert loaded.source.endswith('default.yaml')
        assert len(loaded.schema.steps) == 1

    def test_broken_document_falls_back_with_error(self, schemas_dir):
        (schemas_dir / 'automotive.yaml').write_text('steps: [', encoding='utf-8')

        loaded = get_wizard_schema('automotive', schemas_dir)

        assert loaded.source.endswith('default.yaml')
        assert loaded.error == "Konfigürasyon yüklenemedi"

    def test_builtin_fallback(self, tmp_path):
        loaded = get_wizard_schema('automotive', tmp_path)

        assert loaded.is_fallback
        assert [f.name for f in loaded.schema.steps[0].field_list] == ['name', 'phone', 'email', 'password']

    def test_empty_document_ignored(self, tmp_path):
        write_yaml(tmp_path / 'beauty.yaml', {'version': '2.0', 'steps': []})

        loaded = get_wizard_schema('beauty', tmp_path, fallback_industry=None)

        assert loaded.is_fallback

    def test_fallback_schema_password_rule(self):
        password = get_fallback_schema().steps[0].field_list[3]
        assert password.validation.min_length == 6


class TestSchemaDirectory:
    """Test cases for schema discovery helpers."""

    def test_find_schema_file(self, schemas_dir):
        assert find_schema_file('beauty', schemas_dir) == schemas_dir / 'beauty.yaml'
        assert find_schema_file('florist', schemas_dir) is None

    @pytest.mark.parametrize('industry', ['../beauty', 'Beauty', 'beauty.yaml', 'beauty\n', '', None])
    def test_invalid_industry_name_rejected(self, schemas_dir, industry, caplog):
        with caplog.at_level(logging.WARNING):
            assert find_schema_file(industry, schemas_dir) is None
        assert "Rejected invalid industry name" in caplog.text

    def test_industry_display(self):
        assert get_industry_display('automotive')['icon'] == 'Car'
        assert get_industry_display('unknown') == get_industry_display('default')
        assert get_industry_display(None) == get_industry_display('default')


class TestShippedSchemas:
    """Test that the schema documents shipped with the app parse."""

    @pytest.mark.parametrize('industry', ['automotive', 'beauty', 'default'])
    def test_shipped_schema_loads(self, industry):
        schema = load_schema_file(SHIPPED_SCHEMAS / f'{industry}.yaml')

        assert schema.steps
        assert schema.steps[0].id == 'company'

    def test_automotive_catalog(self):
        schema = load_schema_file(SHIPPED_SCHEMAS / 'automotive.yaml')
        catalog = [step for step in schema.steps if step.kind == StepKind.CATALOG]

        assert len(catalog) == 1
        assert catalog[0].csv_support is True
        assert catalog[0].catalog_table == 'vehicles'
