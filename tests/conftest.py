"""Shared fixtures: temporary database, fake transport, Flask client."""

import pytest

from rfid_print_service.app import create_app, EXTENSION_KEY
from rfid_print_service.database import DatabaseManager
from rfid_print_service.models import DestinationTable
from rfid_print_service.services import LabelWorkflow

DESTINATIONS = [
    {'name': 'line-1', 'connection_mode': 'network', 'host': '127.0.0.1', 'port': 9100},
    {'name': 'usb-1', 'connection_mode': 'usb', 'device': '/dev/usb/lp0'},
]

DESTINY_EXTRAS = {
    'shipping_units': 12,
    'uom': 'CASE',
    'inventory_lot': 'L2024-07',
    'individual_units': 480,
    'pallet_id': 'PAL001',
    'customer_po': 'PO-9912',
    'total_units': 5760,
    'product_description': 'Película stretch 18in',
    'item_number': 'ITM-4410',
}

QUALITY_EXTRAS = {
    'individual_units': 40,
    'item_description': 'Bolsa impresa',
    'item_number': 'QPS-220',
    'total_units': 800,
    'shipping_units': 20,
    'inventory_lot': 'QL-0042',
    'customer_name': 'Distribuidora Ñuñoa',
    'traceability_reference': 'REF-77',
    'uom': 'BOX',
}


class FakeHandler:
    def __init__(self, transport, destination):
        self.transport = transport
        self.destination = destination

    def send(self, command):
        if self.transport.fail:
            return {'success': False, 'error': f'Connection refused by {self.destination.address}'}
        self.transport.sent.append((self.destination.name, command))
        return {'success': True, 'bytes_sent': len(command.encode('utf-8'))}

    def test_connection(self):
        return {'success': True, 'message': 'TCP connection successful'}

    def get_status(self):
        return {'success': True, 'status': 'ready'}


class FakeTransport:
    """Handler factory that records sent commands instead of printing."""

    def __init__(self):
        self.sent = []
        self.fail = False
        self.timeouts = []

    def __call__(self, destination, timeout=None):
        self.timeouts.append(timeout)
        return FakeHandler(self, destination)


@pytest.fixture
def make_label():
    def _make(**overrides):
        data = {
            'area': 'Extrusión',
            'product_code': 'P-100',
            'product_name': 'Película stretch',
            'operator_code': 'OP7',
            'operator_name': 'José Peña',
            'shift': 'A',
            'tare_weight': 20,
            'gross_weight': 520.5,
            'net_weight': 500.5,
            'pieces': 12,
            'traceability': 'TRZ-0001',
            'order': 'OT-55',
            'rfid': 'E28011606000',
            'status': 1,
            'uom': 'ROLLOS',
            'timestamp': '2024-07-15T08:30:00',
        }
        data.update(overrides)
        return data
    return _make


@pytest.fixture
def destiny_extras():
    return dict(DESTINY_EXTRAS)


@pytest.fixture
def quality_extras():
    return dict(QUALITY_EXTRAS)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'labels.db'}"


@pytest.fixture
def db(database_url):
    manager = DatabaseManager(database_url)
    manager.seed_counters()
    yield manager
    manager.dispose()


@pytest.fixture
def destinations():
    return DestinationTable.from_list(DESTINATIONS)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def workflow(db, destinations, transport):
    return LabelWorkflow(db, destinations, timeout=2, handler_factory=transport)


@pytest.fixture
def app(database_url, transport):
    app = create_app(
        database_url=database_url,
        destinations=DESTINATIONS,
        handler_factory=transport,
        timeout=2,
        seed_counters=True,
    )
    app.config['TESTING'] = True
    yield app
    app.extensions[EXTENSION_KEY]['db'].dispose()


@pytest.fixture
def app_db(app):
    return app.extensions[EXTENSION_KEY]['db']


@pytest.fixture
def client(app):
    return app.test_client()
