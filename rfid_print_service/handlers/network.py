"""
Network Handler
===============

Raw TCP printing (port 9100) for SATO printers in ZPL emulation and Zebra
printers. There is no application level acknowledgement: a write that
completes without a socket error counts as printed.
"""

import socket
import logging
from typing import Dict, Any

from .base import BaseHandler

logger = logging.getLogger(__name__)


class NetworkHandler(BaseHandler):
    """Handler for printers reachable over TCP."""

    def _get_connection(self) -> tuple:
        """Get host and port for connection."""
        return self.destination.host, self.destination.port

    def send(self, command: str) -> Dict[str, Any]:
        """Send a command string to the printer."""
        host, port = self._get_connection()

        if not host:
            return {'success': False, 'error': f'Destination {self.destination.name} has no host configured'}

        data = self.encode(command)
        try:
            with socket.create_connection((host, port), timeout=self.timeout) as sock:
                sock.settimeout(self.timeout)
                sock.sendall(data)

            logger.debug("Sent %d bytes to %s:%s", len(data), host, port)
            return {
                'success': True,
                'host': host,
                'port': port,
                'bytes_sent': len(data)
            }

        except socket.timeout:
            return {'success': False, 'error': f'Connection timeout to {host}:{port}'}
        except ConnectionRefusedError:
            return {'success': False, 'error': f'Connection refused by {host}:{port}'}
        except OSError as e:
            return {'success': False, 'error': f'Send to {host}:{port} failed: {e}'}

    def get_status(self) -> Dict[str, Any]:
        """Get printer status via ~HS command."""
        host, port = self._get_connection()

        if not host:
            return {'success': False, 'error': 'Printer host not configured'}

        try:
            with socket.create_connection((host, port), timeout=self.timeout) as sock:
                sock.settimeout(self.timeout)
                sock.sendall(b'~HS')
                response = sock.recv(1024).decode('utf-8', errors='ignore')

            status = 'unknown'
            if response:
                upper = response.upper()
                if 'PAUSE' in upper:
                    status = 'paused'
                elif 'HEAD OPEN' in upper:
                    status = 'error_head_open'
                elif 'RIBBON OUT' in upper:
                    status = 'error_ribbon'
                elif 'PAPER OUT' in upper:
                    status = 'error_paper'
                else:
                    status = 'ready'

            return {
                'success': True,
                'host': host,
                'port': port,
                'status': status,
                'raw_response': response[:200] if response else None
            }

        except socket.timeout:
            return {'success': False, 'error': 'Status query timeout', 'status': 'offline'}
        except ConnectionRefusedError:
            return {'success': False, 'error': 'Connection refused', 'status': 'offline'}
        except OSError as e:
            return {'success': False, 'error': str(e), 'status': 'error'}

    def test_connection(self) -> Dict[str, Any]:
        """Test connection to printer."""
        host, port = self._get_connection()

        if not host:
            return {'success': False, 'error': 'Printer host not configured'}

        try:
            with socket.create_connection((host, port), timeout=min(self.timeout, 5)):
                pass

            return {
                'success': True,
                'host': host,
                'port': port,
                'message': 'TCP connection successful'
            }

        except socket.timeout:
            return {'success': False, 'error': f'Connection timeout to {host}:{port}'}
        except ConnectionRefusedError:
            return {'success': False, 'error': f'Connection refused by {host}:{port}'}
        except OSError as e:
            return {'success': False, 'error': str(e)}
