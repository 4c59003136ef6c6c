"""
RFID Print Service - Main Application
=====================================

HTTP surface over the label workflow: one parameterized route set for every
label class and destination.

Run: python -m rfid_print_service
"""

import io
import sys
import json
import logging
import platform
import socket
from datetime import datetime
from pathlib import Path
from typing import Optional

from flask import Flask, Blueprint, current_app, request, jsonify, send_file
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from . import __version__
from .config import (
    PORT, HOST, DEBUG, DATA_DIR, DATABASE_URL, EXPOSE_ERROR_DETAIL, LABEL_CLASSES,
    DEFAULT_DESTINATIONS, DESTINATIONS_FILE, LOGO_PATH, SEED_COUNTERS,
    ATOMICITY_POLICY, TRANSMIT_TIMEOUT,
)
from .database import DatabaseManager
from .errors import LabelServiceError, ValidationError
from .handlers import handler_for, list_usb_devices
from .logging_setup import setup_logging
from .models import DestinationTable
from .services import (
    LabelWorkflow, list_labels, update_label, lookup_by_rfids, list_orders,
    parse_rfid_list, labels_to_xlsx,
)
from .services.export import XLSX_FILENAME, XLSX_MIMETYPE

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__)

EXTENSION_KEY = 'rfid_print_service'

# =============================================================================
# Startup Loading
# =============================================================================

def load_destinations(path: Optional[str] = None) -> DestinationTable:
    """Destination table from a JSON file, or the built-in defaults."""
    path = path or DESTINATIONS_FILE
    if not path:
        return DestinationTable.from_list(DEFAULT_DESTINATIONS)

    with open(path, 'r', encoding='utf-8') as f:
        entries = json.load(f)
    logger.info("Loaded %d destination(s) from %s", len(entries), path)
    return DestinationTable.from_list(entries)


def load_logo(path: Optional[str] = None) -> Optional[bytes]:
    """Logo image bytes, if a logo is configured."""
    path = path or LOGO_PATH
    if not path:
        return None
    return Path(path).read_bytes()


def _db() -> DatabaseManager:
    return current_app.extensions[EXTENSION_KEY]['db']


def _workflow() -> LabelWorkflow:
    return current_app.extensions[EXTENSION_KEY]['workflow']


# =============================================================================
# Error Handlers
# =============================================================================

def handle_service_error(error: LabelServiceError):
    body = {'success': False, 'error': error.message}
    if error.job is not None:
        body['job'] = error.job.to_dict()
    return jsonify(body), error.status_code


def handle_unexpected_error(error: Exception):
    if isinstance(error, HTTPException):
        return jsonify({'success': False, 'error': error.description}), error.code

    logger.exception("Unhandled error on %s %s", request.method, request.path)
    message = str(error) if current_app.config['EXPOSE_ERROR_DETAIL'] else 'Internal server error'
    return jsonify({'success': False, 'error': message}), 500


# =============================================================================
# Health & Info Endpoints
# =============================================================================

@api.route('/api', methods=['GET'])
def api_info():
    """API info (JSON)."""
    return jsonify({
        'service': 'RFID Print Service',
        'version': __version__,
        'status': 'running',
        'label_classes': list(LABEL_CLASSES),
        'endpoints': {
            'health': '/health',
            'labels': '/api/labels/<label_class>',
            'print': '/api/labels/<label_class>/print?destination=<name>',
            'render': '/api/labels/<label_class>/render',
            'batch_lookup': '/api/labels/batch-lookup',
            'printers': '/api/printers',
            'usb_devices': '/api/devices/usb',
            'orders': '/api/orders',
        }
    })


@api.route('/health', methods=['GET'])
def health():
    """Health check with system info."""
    db_ok = _db().health_check()

    return jsonify({
        'status': 'online' if db_ok else 'degraded',
        'database': 'ok' if db_ok else 'unavailable',
        'version': __version__,
        'hostname': socket.gethostname(),
        'platform': platform.system(),
        'python': sys.version.split()[0],
        'destinations_configured': len(_workflow().destinations),
        'atomicity_policy': _workflow().policy,
        'timestamp': datetime.now().isoformat(),
    })


# =============================================================================
# Label API
# =============================================================================

@api.route('/api/labels/batch-lookup', methods=['POST'])
def batch_lookup():
    """Labels for an uploaded newline-delimited RFID list."""
    labels = lookup_by_rfids(_db(), _uploaded_rfids())
    return jsonify({
        'success': True,
        'labels': labels,
        'count': len(labels)
    })


@api.route('/api/labels/batch-lookup/xlsx', methods=['POST'])
def batch_lookup_xlsx():
    """Same as batch-lookup, as a spreadsheet download."""
    labels = lookup_by_rfids(_db(), _uploaded_rfids())
    return send_file(
        io.BytesIO(labels_to_xlsx(labels)),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=XLSX_FILENAME,
    )


def _uploaded_rfids():
    upload = request.files.get('file')
    if upload is None:
        raise ValidationError('file required (multipart upload of RFID codes, one per line)')
    return parse_rfid_list(upload.read())


@api.route('/api/labels/<label_class>', methods=['GET'])
def get_labels(label_class):
    """List persisted labels of a class, with their extras."""
    labels = list_labels(_db(), label_class)
    return jsonify({
        'success': True,
        'labels': labels,
        'count': len(labels)
    })


@api.route('/api/labels/<label_class>', methods=['POST'])
def submit_label(label_class):
    """Persist a label without printing it."""
    job, result = _workflow().submit(label_class, request.get_json(silent=True))
    return jsonify({
        'success': True,
        'job': job.to_dict(),
        **result
    })


@api.route('/api/labels/<label_class>', methods=['PUT'])
def put_label(label_class):
    """Overwrite a label located by its RFID."""
    record = update_label(_db(), label_class, request.get_json(silent=True))
    return jsonify({
        'success': True,
        'record': record
    })


@api.route('/api/labels/<label_class>/print', methods=['POST'])
def print_label(label_class):
    """Run the full workflow and print to a destination.

    Query params:
        destination=<name> - Destination table key (required)
        layout=<name> - Override the class's default layout
        persist=false - Print without storing anything
    """
    persist = request.args.get('persist', 'true').lower() != 'false'
    job, result = _workflow().print_label(
        label_class,
        request.get_json(silent=True),
        request.args.get('destination'),
        layout=request.args.get('layout'),
        persist=persist,
    )
    return jsonify({
        'success': True,
        'job': job.to_dict(),
        **result
    })


@api.route('/api/labels/<label_class>/render', methods=['POST'])
def render_label(label_class):
    """Render a label without storing or sending it."""
    command = _workflow().preview(
        label_class, request.get_json(silent=True), layout=request.args.get('layout')
    )
    return jsonify({
        'success': True,
        'command': command
    })


# =============================================================================
# Printer API
# =============================================================================

@api.route('/api/printers', methods=['GET'])
def list_printers():
    """List configured destinations."""
    destinations = _workflow().destinations.all()
    return jsonify({
        'success': True,
        'printers': [d.to_dict() for d in destinations],
        'count': len(destinations)
    })


def _handler(name):
    workflow = _workflow()
    destination = workflow.destinations.get(name)
    return workflow.handler_factory(destination, timeout=workflow.timeout)


@api.route('/api/printers/<name>/status', methods=['GET'])
def printer_status(name):
    """Get printer status."""
    return jsonify(_handler(name).get_status())


@api.route('/api/printers/<name>/test', methods=['POST'])
def test_printer(name):
    """Test connection to printer."""
    return jsonify(_handler(name).test_connection())


@api.route('/api/printers/<name>/raw', methods=['POST'])
def send_raw(name):
    """Send a raw command, either JSON {"command": ...} or a text body."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        command = data.get('command')
    else:
        command = request.get_data(as_text=True)

    result = _workflow().send_raw(name, command)
    return jsonify(result)


@api.route('/api/print/simple', methods=['POST'])
def print_simple():
    """Print a single line of text."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    try:
        x = int(data.get('x', 50))
        y = int(data.get('y', 50))
    except (TypeError, ValueError):
        raise ValidationError('x and y must be integers')

    job = _workflow().print_simple(data.get('text'), data.get('destination'), x=x, y=y)
    return jsonify({
        'success': True,
        'job': job.to_dict()
    })


@api.route('/api/devices/usb', methods=['GET'])
def usb_devices():
    """Enumerate printers attached to this host."""
    devices = list_usb_devices()
    return jsonify({
        'success': True,
        'devices': devices,
        'count': len(devices)
    })


# =============================================================================
# Order Catalog
# =============================================================================

@api.route('/api/orders', methods=['GET'])
@api.route('/api/orders/<last_process>', methods=['GET'])
def get_orders(last_process=None):
    """Work orders, optionally filtered by last completed process."""
    orders = list_orders(_db(), last_process)
    return jsonify({
        'success': True,
        'orders': orders,
        'count': len(orders)
    })


# =============================================================================
# Application Setup
# =============================================================================

def create_app(database_url: Optional[str] = None, destinations=None,
               handler_factory=None, policy: Optional[str] = None,
               timeout: Optional[float] = None, logo: Optional[bytes] = None,
               seed_counters: bool = SEED_COUNTERS,
               expose_error_detail: bool = EXPOSE_ERROR_DETAIL) -> Flask:
    """
    Build the Flask application.

    Args:
        database_url: SQLAlchemy URL (default: DATABASE_URL)
        destinations: DestinationTable or list of destination dicts
            (default: RFID_PRINT_DESTINATIONS file or the built-in table)
        handler_factory: Callable(destination, timeout=...) -> handler
        policy: Atomicity policy (default: ATOMICITY_POLICY)
        timeout: Transmit timeout in seconds (default: TRANSMIT_TIMEOUT)
        logo: Logo image bytes (default: RFID_PRINT_LOGO file, if set)
        seed_counters: Create missing id counter rows on startup
        expose_error_detail: Raw exception text in unexpected 500 responses
    """
    app = Flask(__name__)
    app.config['EXPOSE_ERROR_DETAIL'] = expose_error_detail
    CORS(app)

    if destinations is None:
        destinations = load_destinations()
    elif not isinstance(destinations, DestinationTable):
        destinations = DestinationTable.from_list(destinations)

    db = DatabaseManager(database_url or DATABASE_URL)
    if seed_counters:
        db.seed_counters()

    workflow = LabelWorkflow(
        db,
        destinations,
        policy=policy or ATOMICITY_POLICY,
        timeout=TRANSMIT_TIMEOUT if timeout is None else timeout,
        handler_factory=handler_factory or handler_for,
        logo=logo if logo is not None else load_logo(),
    )

    app.extensions[EXTENSION_KEY] = {'db': db, 'workflow': workflow}
    app.register_blueprint(api)
    app.register_error_handler(LabelServiceError, handle_service_error)
    app.register_error_handler(Exception, handle_unexpected_error)
    return app


# =============================================================================
# Main
# =============================================================================

def main():
    """Run the service."""
    log_path = setup_logging()
    app = create_app()
    workflow = app.extensions[EXTENSION_KEY]['workflow']

    print("=" * 60)
    print("  RFID Print Service")
    print("=" * 60)
    print(f"  Version: {__version__}")
    print(f"  Port: {PORT}")
    print(f"  Data: {DATA_DIR}")
    print(f"  Log: {log_path}")
    print(f"  Atomicity: {workflow.policy}")
    print("=" * 60)
    print("  API Endpoints:")
    print("    GET  /health                              - Health check")
    print("    GET  /api/labels/{class}                  - List labels")
    print("    POST /api/labels/{class}                  - Store label")
    print("    PUT  /api/labels/{class}                  - Update label by RFID")
    print("    POST /api/labels/{class}/print            - Store and print")
    print("    POST /api/labels/{class}/render           - Preview command")
    print("    POST /api/labels/batch-lookup[/xlsx]      - Lookup by RFID list")
    print("    GET  /api/printers                        - List destinations")
    print("    GET  /api/printers/{name}/status          - Get status")
    print("    POST /api/printers/{name}/test            - Test connection")
    print("    POST /api/printers/{name}/raw             - Send raw command")
    print("    POST /api/print/simple                    - Print text line")
    print("    GET  /api/devices/usb                     - Local USB printers")
    print("    GET  /api/orders[/{last_process}]         - Work orders")
    print("=" * 60)
    print(f"  Loaded {len(workflow.destinations)} destination(s)")
    print("=" * 60)

    app.run(host=HOST, port=PORT, debug=DEBUG)


if __name__ == '__main__':
    main()
