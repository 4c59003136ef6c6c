"""
RFID Print Service Operations
=============================

Allocation, the submission workflow, queries and exports.
"""

from .allocator import allocate_next, current_max, ensure_counter
from .workflow import LabelWorkflow, resolve_label_class
from .labels import list_labels, update_label, lookup_by_rfids, list_orders
from .export import parse_rfid_list, labels_to_xlsx

__all__ = [
    'allocate_next', 'current_max', 'ensure_counter',
    'LabelWorkflow', 'resolve_label_class',
    'list_labels', 'update_label', 'lookup_by_rfids', 'list_orders',
    'parse_rfid_list', 'labels_to_xlsx',
]
