"""
Label Payloads
==============

Parsing and validation of inbound label JSON into typed values.
"""

from datetime import datetime
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any

from ..errors import ValidationError

REQUIRED_TEXT = (
    'area', 'product_code', 'product_name', 'operator_code', 'operator_name',
    'shift', 'traceability', 'order', 'rfid',
)

EXTRAS_FIELDS = {
    'destiny': {
        'shipping_units': int,
        'uom': str,
        'inventory_lot': str,
        'individual_units': int,
        'pallet_id': str,
        'customer_po': str,
        'total_units': int,
        'product_description': str,
        'item_number': str,
    },
    'quality': {
        'individual_units': int,
        'item_description': str,
        'item_number': str,
        'total_units': int,
        'shipping_units': int,
        'inventory_lot': str,
        'customer_name': str,
        'traceability_reference': str,
        'uom': str,
    },
}


def _number(data: Dict[str, Any], key: str, kind=float):
    value = data.get(key)
    if value is None or value == '':
        return kind(0)
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number")


def _timestamp(value) -> datetime:
    if not value:
        return datetime.now()
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"timestamp must be ISO 8601, got '{value}'")


def parse_extras(variant: str, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Coerce the class-specific extras sub-object."""
    if not isinstance(data, dict):
        raise ValidationError(f"extras object required for {variant} labels")

    extras = {}
    for key, kind in EXTRAS_FIELDS[variant].items():
        if kind is int:
            extras[key] = _number(data, key, int)
        else:
            value = data.get(key)
            extras[key] = None if value is None else str(value)
    return extras


@dataclass
class LabelPayload:
    """Validated label submission."""

    area: str
    product_code: str
    product_name: str
    operator_code: str
    operator_name: str
    shift: str
    traceability: str
    order: str
    rfid: str
    tare_weight: float = 0.0
    gross_weight: float = 0.0
    net_weight: float = 0.0
    pieces: int = 0
    status: int = 0
    uom: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    extras: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], extras_variant: Optional[str] = None) -> 'LabelPayload':
        """
        Build a payload from request JSON.

        Args:
            data: Request body
            extras_variant: 'destiny', 'quality' or None for classes without extras

        Raises:
            ValidationError: missing required field or malformed number/date
        """
        if not data:
            raise ValidationError('Request body required')
        if not isinstance(data, dict):
            raise ValidationError('Request body must be a JSON object')

        missing = [key for key in REQUIRED_TEXT if not str(data.get(key) or '').strip()]
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

        extras = None
        if extras_variant:
            extras = parse_extras(extras_variant, data.get('extras'))

        return cls(
            **{key: str(data[key]) for key in REQUIRED_TEXT},
            tare_weight=_number(data, 'tare_weight'),
            gross_weight=_number(data, 'gross_weight'),
            net_weight=_number(data, 'net_weight'),
            pieces=_number(data, 'pieces', int),
            status=_number(data, 'status', int),
            uom=data.get('uom'),
            timestamp=_timestamp(data.get('timestamp')),
            extras=extras,
        )

    def record_fields(self) -> Dict[str, Any]:
        """Column values for a LabelRecord."""
        data = asdict(self)
        data.pop('extras')
        return data
