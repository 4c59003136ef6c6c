"""
RFID Print Service Handlers
===========================

Transports that deliver rendered commands to a destination.
"""

from .base import BaseHandler
from .network import NetworkHandler
from .usb import UsbHandler, list_usb_devices

__all__ = ['BaseHandler', 'NetworkHandler', 'UsbHandler', 'list_usb_devices', 'get_handler', 'handler_for']

# Handler registry, keyed by connection mode
HANDLERS = {
    'network': NetworkHandler,
    'usb': UsbHandler,
}


def get_handler(connection_mode: str) -> type:
    """Get handler class by connection mode."""
    return HANDLERS.get(connection_mode)


def handler_for(destination, **kwargs) -> BaseHandler:
    """Instantiate the handler for a destination."""
    handler_class = get_handler(destination.connection_mode)
    if handler_class is None:
        raise ValueError(f"No handler for connection mode '{destination.connection_mode}'")
    return handler_class(destination, **kwargs)
