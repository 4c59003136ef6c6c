"""
Batch Lookup Export
===================

Parsing of uploaded RFID lists and the spreadsheet export of the matches.
"""

import io
from typing import Any, Dict, Iterable, List

import pandas as pd

from ..errors import ValidationError

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
XLSX_FILENAME = 'RFIDLabels.xlsx'
XLSX_SHEET = 'RFID Labels'

# Record key -> column header, in sheet order
EXPORT_COLUMNS = {
    'area': 'Area',
    'product_code': 'Product Code',
    'product_name': 'Product Name',
    'operator_code': 'Operator Code',
    'operator_name': 'Operator',
    'shift': 'Shift',
    'tare_weight': 'Tare Weight',
    'gross_weight': 'Gross Weight',
    'net_weight': 'Net Weight',
    'pieces': 'Pieces',
    'traceability': 'Traceability',
    'order': 'Order',
    'rfid': 'RFID',
    'status': 'Status',
    'uom': 'UOM',
}


def parse_rfid_list(content: bytes) -> List[str]:
    """One RFID code per line; blank lines and surrounding whitespace are ignored."""
    try:
        text = content.decode('utf-8-sig')
    except UnicodeDecodeError:
        raise ValidationError('RFID list must be a UTF-8 text file')
    return [line.strip() for line in text.splitlines() if line.strip()]


def labels_to_xlsx(records: Iterable[Dict[str, Any]]) -> bytes:
    """Render label dicts (as returned by LabelRecord.to_dict) to an xlsx workbook."""
    df = pd.DataFrame(list(records), columns=list(EXPORT_COLUMNS))
    df = df.rename(columns=EXPORT_COLUMNS)
    df['UOM'] = df['UOM'].fillna('')

    buffer = io.BytesIO()
    df.to_excel(buffer, sheet_name=XLSX_SHEET, index=False, engine='openpyxl')
    return buffer.getvalue()
