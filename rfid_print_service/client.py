"""
RFID Print Service Client
=========================

Python SDK for interacting with the RFID Print Service.

Usage:
    from rfid_print_service.client import LabelClient

    client = LabelClient('http://localhost:5100')

    # Store and print a Destiny placard
    result = client.print_label('DESTINY', label, destination='bioflex-1')

    # Look up labels by a list of RFID codes
    labels = client.batch_lookup(['E2801160600002', 'E2801160600003'])
"""

import requests
from typing import Dict, Any, Optional, List, Iterable


class LabelClient:
    """Client for the RFID Print Service."""

    def __init__(self, base_url: str = 'http://localhost:5100', timeout: float = 30):
        """
        Initialize client.

        Args:
            base_url: Base URL of the print service
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _send(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        return requests.request(method, f'{self.base_url}{endpoint}', timeout=self.timeout, **kwargs)

    def _request(self, method: str, endpoint: str, data: Dict = None, **kwargs) -> Dict[str, Any]:
        """Make API request."""
        try:
            response = self._send(method, endpoint, json=data, **kwargs)
            return response.json()

        except requests.exceptions.Timeout:
            return {'success': False, 'error': 'Request timeout'}
        except requests.exceptions.ConnectionError:
            return {'success': False, 'error': f'Cannot connect to {self.base_url}'}
        except ValueError:
            return {'success': False, 'error': f'Invalid response from {self.base_url}{endpoint}'}

    @staticmethod
    def _rfid_file(rfids: Iterable[str]) -> Dict[str, Any]:
        content = '\n'.join(rfids).encode('utf-8')
        return {'file': ('rfids.txt', content, 'text/plain')}

    # =========================================================================
    # Health
    # =========================================================================

    def health(self) -> Dict[str, Any]:
        """Check service health."""
        return self._request('GET', '/health')

    def is_online(self) -> bool:
        """Check if service is online."""
        result = self.health()
        return result.get('status') == 'online'

    # =========================================================================
    # Labels
    # =========================================================================

    def list_labels(self, label_class: str) -> List[Dict[str, Any]]:
        """List stored labels of a class."""
        result = self._request('GET', f'/api/labels/{label_class}')
        return result.get('labels', [])

    def submit_label(self, label_class: str, label: Dict[str, Any]) -> Dict[str, Any]:
        """Store a label without printing it."""
        return self._request('POST', f'/api/labels/{label_class}', label)

    def update_label(self, label_class: str, label: Dict[str, Any]) -> Dict[str, Any]:
        """Overwrite the stored label with the same RFID."""
        return self._request('PUT', f'/api/labels/{label_class}', label)

    def print_label(self, label_class: str, label: Dict[str, Any], destination: str,
                    layout: Optional[str] = None, persist: bool = True) -> Dict[str, Any]:
        """
        Store and print a label.

        Args:
            label_class: BIOFLEX, DESTINY or QUALITY
            label: Label fields, with 'extras' for DESTINY/QUALITY
            destination: Destination name (see list_printers)
            layout: Override the class's default layout
            persist: False prints without storing anything
        """
        params = {'destination': destination}
        if layout:
            params['layout'] = layout
        if not persist:
            params['persist'] = 'false'
        return self._request('POST', f'/api/labels/{label_class}/print', label, params=params)

    def render_label(self, label_class: str, label: Dict[str, Any],
                     layout: Optional[str] = None) -> Optional[str]:
        """Rendered command text for a label, or None on error."""
        params = {'layout': layout} if layout else None
        result = self._request('POST', f'/api/labels/{label_class}/render', label, params=params)
        return result.get('command') if result.get('success') else None

    def batch_lookup(self, rfids: Iterable[str]) -> List[Dict[str, Any]]:
        """Stored labels matching a list of RFID codes."""
        result = self._request('POST', '/api/labels/batch-lookup', files=self._rfid_file(rfids))
        return result.get('labels', [])

    def batch_lookup_xlsx(self, rfids: Iterable[str]) -> bytes:
        """Spreadsheet of the stored labels matching a list of RFID codes."""
        response = self._send('POST', '/api/labels/batch-lookup/xlsx', files=self._rfid_file(rfids))
        response.raise_for_status()
        return response.content

    # =========================================================================
    # Printers
    # =========================================================================

    def list_printers(self) -> List[Dict[str, Any]]:
        """List configured destinations."""
        result = self._request('GET', '/api/printers')
        return result.get('printers', [])

    def get_status(self, name: str) -> Dict[str, Any]:
        """Get detailed printer status (paper, ribbon, head status, etc.)."""
        return self._request('GET', f'/api/printers/{name}/status')

    def test_connection(self, name: str) -> Dict[str, Any]:
        """Test printer connection."""
        return self._request('POST', f'/api/printers/{name}/test')

    def is_printer_online(self, name: str) -> bool:
        """Quick check if a specific printer is reachable."""
        result = self.test_connection(name)
        return result.get('success', False)

    def send_raw(self, name: str, command: str) -> Dict[str, Any]:
        """Send an already rendered command to a printer."""
        return self._request('POST', f'/api/printers/{name}/raw', {'command': command})

    def print_text(self, destination: str, text: str, x: int = 50, y: int = 50) -> Dict[str, Any]:
        """Print a single line of text."""
        data = {'destination': destination, 'text': text, 'x': x, 'y': y}
        return self._request('POST', '/api/print/simple', data)

    def list_usb_devices(self) -> List[Dict[str, Any]]:
        """Printers attached to the service host."""
        result = self._request('GET', '/api/devices/usb')
        return result.get('devices', [])

    # =========================================================================
    # Orders
    # =========================================================================

    def list_orders(self, last_process: Optional[str] = None) -> List[Dict[str, Any]]:
        """Work orders, optionally only those whose last process matches."""
        endpoint = f'/api/orders/{last_process}' if last_process else '/api/orders'
        result = self._request('GET', endpoint)
        return result.get('orders', [])
