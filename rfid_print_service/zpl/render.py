"""
Template Renderer
=================

Maps a label record (and its extras) onto one of the fixed layouts. Output
is deterministic: the same layout and field values always give the same
string, byte for byte.
"""

from datetime import datetime
from typing import Dict, Mapping, Optional

from ..errors import NotFoundError
from ..text import normalize_text
from .commands import label
from .layouts import LAYOUTS

RECORD_TEXT_FIELDS = ('area', 'product_code', 'product_name', 'operator_name')
RECORD_NUMBER_FIELDS = ('tare_weight', 'gross_weight', 'net_weight', 'pieces')
RECORD_PLAIN_FIELDS = ('operator_code', 'shift', 'traceability', 'order', 'rfid', 'status', 'uom')

EXTRAS_TEXT_FIELDS = ('product_description', 'customer_name', 'item_description')

DATE_FORMAT = '%d-%m-%y'


def format_number(value) -> str:
    """Natural decimal form: 12.0 -> '12', 12.5 -> '12.5'."""
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return ''
    return value.strftime(DATE_FORMAT)


def _get(source, name: str):
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def _plain(value) -> str:
    if value is None:
        return ''
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def prepare_fields(record) -> Dict[str, str]:
    """Printable strings for the base record fields."""
    fields = {}
    for name in RECORD_TEXT_FIELDS:
        fields[name] = normalize_text(_plain(_get(record, name)))
    for name in RECORD_NUMBER_FIELDS:
        fields[name] = format_number(_get(record, name))
    for name in RECORD_PLAIN_FIELDS:
        fields[name] = _plain(_get(record, name))
    fields['date'] = format_date(_get(record, 'timestamp'))
    return fields


def prepare_extras(extras) -> Dict[str, str]:
    """Printable strings for an extras row or mapping."""
    if extras is None:
        return {}
    if isinstance(extras, Mapping):
        items = extras.items()
    else:
        items = ((name, getattr(extras, name)) for name in extras.FIELDS)

    prepared = {}
    for name, value in items:
        prepared[name] = _plain(value)
        if name in EXTRAS_TEXT_FIELDS:
            prepared[name] = normalize_text(prepared[name])
    return prepared


def prepare_simple(record) -> Dict[str, str]:
    x = _get(record, 'x')
    y = _get(record, 'y')
    return {
        'text': normalize_text(_plain(_get(record, 'text'))),
        'x': _plain(50 if x is None else x),
        'y': _plain(50 if y is None else y),
    }


def render(layout: str, record, extras=None, logo: Optional[bytes] = None) -> str:
    """
    Render a label into a ZPL command string.

    Args:
        layout: 'rfid', 'destiny', 'quality' or 'simple'
        record: LabelRecord (or mapping with the same keys); for 'simple' a
            mapping with 'text' and optional 'x'/'y'
        extras: DestinyExtras/QualityExtras row or mapping
        logo: Optional logo image bytes for layouts that place one

    Returns:
        Complete command string, ^XA through ^XZ
    """
    builder = LAYOUTS.get(layout)
    if builder is None:
        raise NotFoundError(f"Unknown layout '{layout}'. Valid: {list(LAYOUTS)}")

    if layout == 'simple':
        fields = prepare_simple(record)
    else:
        fields = prepare_fields(record)

    return label(builder(fields, prepare_extras(extras), logo))
