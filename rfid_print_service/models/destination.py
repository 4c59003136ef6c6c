"""
Destination Model
=================

A named physical printer that rendered labels are sent to.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, Iterable

from ..config import RAW_PORT
from ..errors import NotFoundError, ValidationError

CONNECTION_MODES = ('network', 'usb')


@dataclass
class Destination:
    """Printer address resolved from the destination table."""

    name: str
    connection_mode: str = "network"  # network, usb
    host: Optional[str] = None  # For network printers
    port: int = RAW_PORT  # For network printers

    # Device path (/dev/usb/lp0) or Windows printer name for USB printers
    device: Optional[str] = None

    description: str = ""

    def __post_init__(self):
        if self.connection_mode not in CONNECTION_MODES:
            raise ValidationError(
                f"Invalid connection mode '{self.connection_mode}' for {self.name}. "
                f"Valid: {list(CONNECTION_MODES)}"
            )

    @property
    def address(self) -> str:
        if self.connection_mode == 'network':
            return f"{self.host}:{self.port}"
        return self.device or ''

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data['address'] = self.address
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Destination':
        """Create from dictionary."""
        if not data.get('name'):
            raise ValidationError('Destination name required')
        fields = ('name', 'connection_mode', 'host', 'port', 'device', 'description')
        return cls(**{k: data[k] for k in fields if k in data})


class DestinationTable:
    """Lookup of destinations by name."""

    def __init__(self, destinations: Iterable[Destination]):
        self._by_name = {d.name: d for d in destinations}

    @classmethod
    def from_list(cls, entries: Iterable[Dict[str, Any]]) -> 'DestinationTable':
        return cls(Destination.from_dict(entry) for entry in entries)

    def get(self, name: Optional[str]) -> Destination:
        if not name:
            raise ValidationError('destination required')
        destination = self._by_name.get(name)
        if destination is None:
            raise NotFoundError(f"Destination '{name}' not found")
        return destination

    def all(self):
        return list(self._by_name.values())

    def __contains__(self, name) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)
