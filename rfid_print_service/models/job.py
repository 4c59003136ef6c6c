"""
Print Job Model
===============

Tracks one label submission as it moves through the workflow states.
"""

import uuid
import logging
from datetime import datetime
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List

# Workflow states in order; 'failed' may follow any of them
RECEIVED = "received"
NORMALIZED = "normalized"
DUPLICATE_CHECKED = "duplicate_checked"
PERSISTED = "persisted"
ID_ALLOCATED = "id_allocated"
EXTRAS_PERSISTED = "extras_persisted"
RENDERED = "rendered"
TRANSMITTED = "transmitted"
COMPLETED = "completed"
FAILED = "failed"

STATES = (
    RECEIVED, NORMALIZED, DUPLICATE_CHECKED, PERSISTED, ID_ALLOCATED,
    EXTRAS_PERSISTED, RENDERED, TRANSMITTED, COMPLETED, FAILED,
)

logger = logging.getLogger(__name__)


@dataclass
class PrintJob:
    """Print job state for one submission."""

    # Identification
    id: str = field(default_factory=lambda: f"JOB-{str(uuid.uuid4())[:8].upper()}")
    label_class: str = ""
    destination: Optional[str] = None
    layout: Optional[str] = None

    # Status
    status: str = RECEIVED
    history: List[str] = field(default_factory=lambda: [RECEIVED])
    error_message: Optional[str] = None

    # Outcome
    record_id: Optional[int] = None
    extras_id: Optional[int] = None
    duplicate: bool = False
    bytes_sent: int = 0

    # Timestamps
    created_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        for key in ['created_at', 'completed_at']:
            if data.get(key):
                data[key] = data[key].isoformat()
        return data

    def advance(self, state: str):
        """Move to the next workflow state."""
        if state not in STATES:
            raise ValueError(f"Unknown job state: {state}")
        logger.debug("Job %s: %s -> %s", self.id, self.status, state)
        self.status = state
        self.history.append(state)

    def complete(self):
        """Mark job as completed."""
        self.advance(COMPLETED)
        self.completed_at = datetime.now()

    def fail(self, error: str):
        """Mark job as failed."""
        self.advance(FAILED)
        self.completed_at = datetime.now()
        self.error_message = error

    @property
    def finished(self) -> bool:
        return self.status in (COMPLETED, FAILED)
