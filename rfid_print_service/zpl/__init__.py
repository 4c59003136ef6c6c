"""
ZPL Rendering
=============

Instruction builders, placard layouts and the record renderer.
"""

from .render import render, prepare_fields, prepare_extras, format_number, format_date
from .layouts import LAYOUTS, qr_digest

__all__ = [
    'render', 'prepare_fields', 'prepare_extras', 'format_number', 'format_date',
    'LAYOUTS', 'qr_digest',
]
