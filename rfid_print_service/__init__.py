"""
RFID Print Service
==================

Label printing backend for the RFID-tagged pallet placards on the factory
floor.

Supports:
- Generic RFID placards (BIOFLEX)
- Destiny shipping placards (DESTINY)
- Quality hold placards (QUALITY)
- SATO/Zebra printers over raw TCP (port 9100) or local USB

Usage:
    python -m rfid_print_service

API Endpoints:
    GET  /api/labels/{class}           - List stored labels
    POST /api/labels/{class}           - Store label
    PUT  /api/labels/{class}           - Update label by RFID
    POST /api/labels/{class}/print     - Store and print label
    POST /api/labels/{class}/render    - Preview command
    POST /api/labels/batch-lookup      - Lookup by RFID list (JSON or xlsx)
    GET  /api/printers                 - List destinations
    GET  /api/orders                   - Work order catalog
"""

__version__ = '1.0.0'
