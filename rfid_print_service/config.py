"""
RFID Print Service Configuration
"""

import os

# =============================================================================
# Server Configuration
# =============================================================================

PORT = int(os.environ.get('RFID_PRINT_PORT', 5100))
HOST = os.environ.get('RFID_PRINT_HOST', '0.0.0.0')
DEBUG = os.environ.get('RFID_PRINT_DEBUG', 'false').lower() == 'true'

# Return raw exception text in 500 responses. Disable for any deployment
# reachable from outside the plant network.
EXPOSE_ERROR_DETAIL = os.environ.get('RFID_PRINT_EXPOSE_ERRORS', 'true').lower() == 'true'

LOG_LEVEL = os.environ.get('RFID_PRINT_LOG_LEVEL', 'INFO').upper()

# =============================================================================
# Storage Configuration
# =============================================================================

DATA_DIR = os.environ.get('RFID_PRINT_DATA_DIR', os.path.expanduser('~/.rfid_print_service'))

DATABASE_URL = os.environ.get(
    'RFID_PRINT_DATABASE_URL',
    'sqlite:///' + os.path.join(DATA_DIR, 'labels.db'),
)

# Create missing id counter rows on startup (normally done at deployment)
SEED_COUNTERS = os.environ.get('RFID_PRINT_SEED_COUNTERS', 'false').lower() == 'true'

# =============================================================================
# Printer Defaults
# =============================================================================

# Upper bound for a single transmission, connect + write
TRANSMIT_TIMEOUT = float(os.environ.get('RFID_PRINT_TIMEOUT', 10))

# Raw printing port used by SATO/Zebra network printers
RAW_PORT = 9100

COMMAND_ENCODING = os.environ.get('RFID_PRINT_ENCODING', 'utf-8')

# Optional logo image embedded in the rfid and quality placards
LOGO_PATH = os.environ.get('RFID_PRINT_LOGO')

# JSON file with a list of destinations, replaces DEFAULT_DESTINATIONS
DESTINATIONS_FILE = os.environ.get('RFID_PRINT_DESTINATIONS')

DEFAULT_DESTINATIONS = [
    {
        'name': 'bioflex-1',
        'description': 'Bioflex line, printer 1',
        'connection_mode': 'network',
        'host': '172.16.20.57',
        'port': RAW_PORT,
    },
    {
        'name': 'bioflex-2',
        'description': 'Bioflex line, printer 2',
        'connection_mode': 'network',
        'host': '172.16.20.56',
        'port': RAW_PORT,
    },
    {
        'name': 'quality-remote',
        'description': 'Quality area network printer',
        'connection_mode': 'network',
        'host': '172.16.21.131',
        'port': RAW_PORT,
    },
    {
        'name': 'sato-usb',
        'description': 'SATO printer attached to this host',
        'connection_mode': 'usb',
        'device': '/dev/usb/lp0',
    },
]

# =============================================================================
# Workflow
# =============================================================================

PERSIST_THEN_PRINT = 'persist-then-print'
PRINT_THEN_PERSIST = 'print-then-persist'
ATOMICITY_POLICIES = (PERSIST_THEN_PRINT, PRINT_THEN_PERSIST)

ATOMICITY_POLICY = os.environ.get('RFID_PRINT_ATOMICITY', PERSIST_THEN_PRINT)

# =============================================================================
# Label Classes
# =============================================================================

LABEL_CLASSES = {
    'BIOFLEX': {
        'name': 'Generic RFID pallet placard',
        'counter': 'BIOFLEX',
        'extras': None,
        'layout': 'rfid',
    },
    'DESTINY': {
        'name': 'Destiny shipping pallet placard',
        'counter': 'DESTINY',
        'extras': 'destiny',
        'layout': 'destiny',
    },
    'QUALITY': {
        'name': 'Quality hold placard',
        'counter': 'QUALITY',
        'extras': 'quality',
        'layout': 'quality',
    },
}
