"""
USB Handler
===========

Handler for printers attached to the service host.

- Linux: the usblp character device (/dev/usb/lp0, ...) is written directly.
- Windows: a RAW job is submitted to the spooler via pywin32, the device
  being the Windows printer name.

Device writes can block indefinitely when the printer is offline, so the
write runs in a worker thread bounded by the handler timeout.
"""

import os
import sys
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from pathlib import Path
from typing import Dict, Any, List

from .base import BaseHandler

logger = logging.getLogger(__name__)

USB_DEVICE_DIR = Path('/dev/usb')


def list_usb_devices() -> List[Dict[str, Any]]:
    """Enumerate locally attached printers."""
    devices = []

    if sys.platform == 'win32':
        try:
            import win32print
        except ImportError:
            logger.warning("pywin32 not installed, cannot enumerate Windows printers")
            return devices

        printers = win32print.EnumPrinters(
            win32print.PRINTER_ENUM_LOCAL | win32print.PRINTER_ENUM_CONNECTIONS
        )
        for p in printers:
            devices.append({
                'name': p[2],
                'device': p[2],
                'is_sato': 'sato' in p[2].lower(),
            })
        return devices

    if USB_DEVICE_DIR.exists():
        for path in sorted(USB_DEVICE_DIR.glob('lp*')):
            devices.append({
                'name': path.name,
                'device': str(path),
                'is_sato': None,  # usblp exposes no model name
            })
    return devices


class UsbHandler(BaseHandler):
    """Handler for locally attached printers."""

    def _write_device(self, data: bytes) -> int:
        with open(self.destination.device, 'wb') as printer:
            printer.write(data)
        return len(data)

    def _write_spooler(self, data: bytes) -> int:
        import win32print

        handle = win32print.OpenPrinter(self.destination.device)
        try:
            win32print.StartDocPrinter(handle, 1, ('RFID label', None, 'RAW'))
            try:
                win32print.StartPagePrinter(handle)
                written = win32print.WritePrinter(handle, data)
                win32print.EndPagePrinter(handle)
            finally:
                win32print.EndDocPrinter(handle)
        finally:
            win32print.ClosePrinter(handle)
        return written

    def _write(self, data: bytes) -> int:
        if sys.platform == 'win32':
            return self._write_spooler(data)
        return self._write_device(data)

    def send(self, command: str) -> Dict[str, Any]:
        """Write a command string to the local device."""
        device = self.destination.device
        if not device:
            return {'success': False, 'error': f'Destination {self.destination.name} has no device configured'}

        data = self.encode(command)
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self._write, data)
        try:
            written = future.result(timeout=self.timeout)
        except FutureTimeout:
            return {'success': False, 'error': f'Write to {device} timed out after {self.timeout}s'}
        except ImportError:
            return {'success': False, 'error': 'pywin32 required for Windows USB printing'}
        except OSError as e:
            error = f'Failed to write to printer at {device}: {e}'
            if USB_DEVICE_DIR.exists():
                error += f'. Available devices in {USB_DEVICE_DIR}: {os.listdir(USB_DEVICE_DIR)}'
            return {'success': False, 'error': error}
        finally:
            # A hung write keeps its thread; never wait on it
            executor.shutdown(wait=False)

        return {
            'success': True,
            'device': device,
            'bytes_sent': written
        }

    def test_connection(self) -> Dict[str, Any]:
        """Check that the device is present."""
        device = self.destination.device
        if not device:
            return {'success': False, 'error': 'Printer device not configured'}

        if sys.platform == 'win32':
            found = any(d['device'] == device for d in list_usb_devices())
        else:
            found = os.path.exists(device) and os.access(device, os.W_OK)

        if found:
            return {'success': True, 'device': device, 'message': 'Device available'}
        return {'success': False, 'device': device, 'error': f'Device {device} not available'}
