#!/usr/bin/env python
"""
RFID Print Service - Standalone Entry Point

Run directly:
    python main.py

Or with environment variables:
    RFID_PRINT_PORT=5200 RFID_PRINT_ATOMICITY=print-then-persist python main.py
"""

from rfid_print_service.app import main


if __name__ == '__main__':
    main()
