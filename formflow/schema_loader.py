"""
Schema loader for the formflow wizard.
Loads per-industry wizard documents (YAML or JSON) and falls back to a
built-in registration-only schema when nothing usable is found.
"""

import json
import re
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from pydantic import ValidationError

from .descriptors import WizardSchema
from .exceptions import SchemaLoadError

logger = logging.getLogger(__name__)

SCHEMAS_DIR = Path("schemas")
SCHEMA_SUFFIXES = ('.yaml', '.yml', '.json')

# Industry names become file names; anything else is rejected
INDUSTRY_NAME_PATTERN = re.compile(r'^[a-z0-9_]+$')

# Registration-only schema used when no document can be loaded
FALLBACK_SCHEMA: Dict[str, Any] = {
    'version': '2.0',
    'steps': [
        {
            'id': 'company',
            'title': 'Firma Bilgileri',
            'description': 'İşletmeniz hakkında temel bilgiler',
            'icon': 'Building2',
            'required': True,
            'fields': [
                {'name': 'name', 'label': 'Firma Adı', 'type': 'text', 'required': True},
                {'name': 'phone', 'label': 'Telefon', 'type': 'tel', 'required': True},
                {'name': 'email', 'label': 'Email', 'type': 'email', 'required': True},
                {'name': 'password', 'label': 'Şifre', 'type': 'password', 'required': True,
                 'validation': {'minLength': 6}},
            ],
        },
    ],
}

INDUSTRY_DISPLAY: Dict[str, Dict[str, str]] = {
    'automotive': {
        'title': 'Otomotiv Sesli Asistan Kurulumu',
        'subtitle': 'Araç satış ve servis bayileri için',
        'primary_color': '#3B82F6',
        'icon': 'Car',
    },
    'beauty': {
        'title': 'Güzellik Salonu Asistanı Kurulumu',
        'subtitle': 'Cilt bakımı, manikür ve SPA için',
        'primary_color': '#EC4899',
        'icon': 'Scissors',
    },
    'beauty_salon': {
        'title': 'Güzellik Salonu Asistanı Kurulumu',
        'subtitle': 'Cilt bakımı, manikür, makyaj ve SPA için',
        'primary_color': '#EC4899',
        'icon': 'Scissors',
    },
    'hairdresser': {
        'title': 'Kuaför Asistanı Kurulumu',
        'subtitle': 'Saç kesimi, boyama ve fön için',
        'primary_color': '#8B5CF6',
        'icon': 'Scissors',
    },
    'default': {
        'title': 'Sesli Asistan Kurulumu',
        'subtitle': 'İşletmeniz için yapay zeka asistanı',
        'primary_color': '#8B5CF6',
        'icon': 'Building2',
    },
}


@dataclass
class LoadedSchema:
    """A wizard schema together with where it came from."""
    schema: WizardSchema
    source: str
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == 'fallback'


def get_industry_display(industry: Optional[str]) -> Dict[str, str]:
    """Display metadata for an industry, or the default entry."""
    return INDUSTRY_DISPLAY.get(industry or '', INDUSTRY_DISPLAY['default'])


def get_fallback_schema() -> WizardSchema:
    return WizardSchema.model_validate(FALLBACK_SCHEMA)


def parse_schema(document: Any, source: Path) -> WizardSchema:
    """
    Parse a raw document into a WizardSchema.

    Raises:
        SchemaLoadError: If the document does not match the step grammar
    """
    if not isinstance(document, dict):
        raise SchemaLoadError(source, TypeError("Schema document must be a mapping"))
    try:
        return WizardSchema.model_validate(document)
    except ValidationError as e:
        raise SchemaLoadError(source, e) from e


def load_schema_file(schema_path: Path) -> WizardSchema:
    """
    Load a wizard schema from a YAML or JSON file.

    Raises:
        SchemaLoadError: If the file cannot be read or parsed
    """
    suffix = schema_path.suffix.lower()
    if suffix not in SCHEMA_SUFFIXES:
        raise SchemaLoadError(schema_path, ValueError(f"Unsupported schema file format: {suffix}"))

    try:
        with open(schema_path, 'r', encoding='utf-8') as f:
            if suffix == '.json':
                document = json.load(f)
            else:
                document = yaml.safe_load(f)
    except (yaml.YAMLError, json.JSONDecodeError, OSError) as e:
        raise SchemaLoadError(schema_path, e) from e

    schema = parse_schema(document, schema_path)
    logger.info(f"Successfully loaded schema: {schema_path} ({len(schema.steps)} steps)")
    return schema


def find_schema_file(industry: str, schemas_dir: Optional[Path] = None) -> Optional[Path]:
    """Locate ``<industry>.yaml|.yml|.json`` in the schemas directory."""
    if not isinstance(industry, str) or not INDUSTRY_NAME_PATTERN.fullmatch(industry):
        logger.warning(f"Rejected invalid industry name: {industry!r}")
        return None
    directory = schemas_dir or SCHEMAS_DIR
    for suffix in SCHEMA_SUFFIXES:
        candidate = directory / f"{industry}{suffix}"
        if candidate.exists():
            return candidate
    return None


def get_wizard_schema(industry: str, schemas_dir: Optional[Path] = None,
                      fallback_industry: Optional[str] = 'default') -> LoadedSchema:
    """
    Get the wizard schema for an industry.

    Tries the industry document, then the fallback industry document, then the
    built-in fallback schema. Documents with no steps count as missing.

    Returns:
        LoadedSchema (never None); ``error`` is set when a document failed to load
    """
    error: Optional[str] = None
    candidates = [industry]
    if fallback_industry and fallback_industry != industry:
        candidates.append(fallback_industry)

    for name in candidates:
        path = find_schema_file(name, schemas_dir)
        if path is None:
            logger.warning(f"No schema document found for industry '{name}'")
            continue
        try:
            schema = load_schema_file(path)
        except SchemaLoadError as e:
            logger.error(str(e))
            error = "Konfigürasyon yüklenemedi"
            continue
        if not schema.steps:
            logger.warning(f"Schema {path} has no steps, ignoring it")
            continue
        return LoadedSchema(schema=schema, source=str(path), error=error)

    logger.warning(f"Using fallback schema for industry '{industry}'")
    return LoadedSchema(schema=get_fallback_schema(), source='fallback', error=error)
