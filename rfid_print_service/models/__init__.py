"""
RFID Print Service Models
"""

from .records import (
    Base, LabelRecord, DestinyExtras, QualityExtras, IdCounter, Order, EXTRAS_MODELS
)
from .destination import Destination, DestinationTable
from .job import PrintJob
from .payload import LabelPayload

__all__ = [
    'Base', 'LabelRecord', 'DestinyExtras', 'QualityExtras', 'IdCounter', 'Order',
    'EXTRAS_MODELS', 'Destination', 'DestinationTable', 'PrintJob', 'LabelPayload',
]
