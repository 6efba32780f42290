"""
Default bulk ingestion hook for catalog steps.
Parses an uploaded CSV into catalog records with pandas.
"""

import io
import re
from typing import Dict, Any, List, Optional
import logging

import numpy as np
import pandas as pd

from .exceptions import IngestionError

logger = logging.getLogger(__name__)

TRUE_WORDS = {'true', 'evet'}
FALSE_WORDS = {'false', 'hayir', 'hayır'}


def normalize_header(header: Any) -> str:
    """'Model Year ' -> 'model_year'"""
    return re.sub(r'\s+', '_', str(header).strip().lower())


def coerce_cell(value: Any) -> Any:
    """
    Convert a raw CSV cell into a Python value.

    Integers and decimals become numbers, true/evet and false/hayır become
    booleans, everything else stays a stripped string. Missing cells become ''.
    """
    if value is None:
        return ''
    if isinstance(value, float) and np.isnan(value):
        return ''
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, (bool, int, float)):
        return value

    text = str(value).strip()
    if re.fullmatch(r'\d+', text):
        return int(text)
    if re.fullmatch(r'\d+\.\d+', text):
        return float(text)
    if text.lower() in TRUE_WORDS:
        return True
    if text.lower() in FALSE_WORDS:
        return False
    return text


def _read_content(file: Any) -> str:
    if isinstance(file, bytes):
        return file.decode('utf-8-sig')
    if isinstance(file, str):
        return file
    if hasattr(file, 'getvalue'):
        data = file.getvalue()
    elif hasattr(file, 'read'):
        data = file.read()
    else:
        raise IngestionError(f"Unsupported upload object: {type(file).__name__}")
    return data.decode('utf-8-sig') if isinstance(data, bytes) else str(data)


def parse_catalog_csv(file: Any) -> List[Dict[str, Any]]:
    """
    Parse CSV content into a list of records.

    Args:
        file: Uploaded file (Streamlit UploadedFile, file object, bytes or text)

    Returns:
        Records keyed by normalized header; rows with no values are dropped

    Raises:
        IngestionError: If the content is not decodable or not a CSV
    """
    try:
        content = _read_content(file)
    except UnicodeDecodeError as e:
        raise IngestionError(f"CSV dosyası UTF-8 olmalıdır: {e}") from e

    if not content.strip():
        return []

    try:
        frame = pd.read_csv(io.StringIO(content), dtype=str, keep_default_na=False, skipinitialspace=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise IngestionError(f"CSV okunamadı: {e}") from e

    frame.columns = [normalize_header(column) for column in frame.columns]

    items: List[Dict[str, Any]] = []
    for record in frame.to_dict('records'):
        item = {key: coerce_cell(value) for key, value in record.items()}
        if any(value != '' for value in item.values()):
            items.append(item)

    logger.info(f"Parsed {len(items)} catalog item(s) from CSV")
    return items


async def ingest_csv(file: Any, table_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Upload hook compatible with WizardController.on_upload.

    Raises:
        IngestionError: If no valid items were found
    """
    items = parse_catalog_csv(file)
    if not items:
        raise IngestionError("CSV dosyasında geçerli kayıt bulunamadı", table_name)
    logger.debug(f"CSV ingestion for table {table_name}: {len(items)} items")
    return {'items': items}
