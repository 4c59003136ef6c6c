"""
Base Handler
============

Abstract base class for printer transports.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any

from ..config import TRANSMIT_TIMEOUT, COMMAND_ENCODING
from ..models import Destination


class BaseHandler(ABC):
    """Sends rendered command strings to one destination."""

    def __init__(self, destination: Destination, timeout: float = TRANSMIT_TIMEOUT,
                 encoding: str = COMMAND_ENCODING):
        """Initialize handler with destination configuration."""
        self.destination = destination
        self.timeout = timeout
        self.encoding = encoding

    def encode(self, command: str) -> bytes:
        return command.encode(self.encoding, errors='replace')

    @abstractmethod
    def send(self, command: str) -> Dict[str, Any]:
        """
        Transmit a command string.

        Args:
            command: Complete printer command (^XA ... ^XZ)

        Returns:
            Dict with success status and details
        """
        pass

    @abstractmethod
    def test_connection(self) -> Dict[str, Any]:
        """
        Test connection to printer.

        Returns:
            Dict with connection test results
        """
        pass

    def get_status(self) -> Dict[str, Any]:
        """Get printer status (override in handlers that support it)."""
        return {'success': False, 'error': 'Status query not supported'}
