"""
Label Submission Workflow
=========================

One parameterized pipeline for every label class and destination:

    received -> normalized -> duplicate_checked -> persisted
        -> (id_allocated -> extras_persisted) -> rendered -> transmitted -> completed

Any step may end in 'failed'. How persistence and transmission relate is an
explicit policy:

- persist-then-print: records are committed before the printer is
  contacted. A failed transmission leaves them in place, so a record can
  exist with no physical label.
- print-then-persist: the transaction stays open while the label is sent and
  is rolled back if the send fails. The counter row stays locked for at most
  the transmit timeout.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..config import (
    LABEL_CLASSES, ATOMICITY_POLICY, ATOMICITY_POLICIES, PRINT_THEN_PERSIST, TRANSMIT_TIMEOUT
)
from ..database import DatabaseManager
from ..errors import (
    LabelServiceError, NotFoundError, ValidationError, TransmissionError, PersistenceError
)
from ..handlers import handler_for
from ..models import (
    DestinationTable, Destination, LabelPayload, LabelRecord, PrintJob, EXTRAS_MODELS
)
from ..models import job as states
from ..zpl import render
from .allocator import allocate_next, ensure_counter

logger = logging.getLogger(__name__)


def resolve_label_class(name: Optional[str]) -> Tuple[str, Dict[str, Any]]:
    """Look up a label class by (case-insensitive) name."""
    key = (name or '').upper()
    config = LABEL_CLASSES.get(key)
    if config is None:
        raise NotFoundError(f"Unknown label class '{name}'. Valid: {list(LABEL_CLASSES)}")
    return key, config


class LabelWorkflow:
    """Validates, persists, renders and transmits label submissions."""

    def __init__(self, db: DatabaseManager, destinations: DestinationTable,
                 policy: str = ATOMICITY_POLICY, timeout: float = TRANSMIT_TIMEOUT,
                 handler_factory: Callable = handler_for, logo: Optional[bytes] = None):
        if policy not in ATOMICITY_POLICIES:
            raise ValueError(f"Unknown atomicity policy '{policy}'. Valid: {list(ATOMICITY_POLICIES)}")
        self.db = db
        self.destinations = destinations
        self.policy = policy
        self.timeout = timeout
        self.handler_factory = handler_factory
        self.logo = logo

    # =========================================================================
    # Steps
    # =========================================================================

    @contextmanager
    def _unit_of_work(self):
        try:
            with self.db.session() as session:
                yield session
        except SQLAlchemyError as e:
            raise PersistenceError(f"Storage write failed: {e}") from e

    def _parse(self, job: PrintJob, config: Dict[str, Any], data) -> LabelPayload:
        payload = LabelPayload.from_dict(data, config['extras'])
        job.advance(states.NORMALIZED)
        return payload

    @staticmethod
    def _find_record(session, traceability: str) -> Optional[LabelRecord]:
        return session.scalar(select(LabelRecord).where(LabelRecord.traceability == traceability))

    def _persist(self, job: PrintJob, session, class_name: str, config: Dict[str, Any],
                 payload: LabelPayload):
        existing = self._find_record(session, payload.traceability)
        job.advance(states.DUPLICATE_CHECKED)

        if existing is None:
            record = LabelRecord(label_class=class_name, **payload.record_fields())
            session.add(record)
            try:
                session.flush()
            except IntegrityError:
                # A concurrent submission stored the same traceability code first.
                # The insert is the first write of this transaction.
                session.rollback()
                existing = self._find_record(session, payload.traceability)
                if existing is None:
                    raise
            else:
                job.advance(states.PERSISTED)

        if existing is not None:
            logger.info("Traceability %s already recorded as #%d, reusing it",
                        payload.traceability, existing.id)
            record = existing
            job.duplicate = True

        variant = config['extras']
        extras = None
        if variant is None:
            ensure_counter(session, config['counter'])
        else:
            extras = record.extras_for(variant)
            if extras is None:
                new_id = allocate_next(session, config['counter'])
                job.advance(states.ID_ALLOCATED)

                extras = EXTRAS_MODELS[variant](id=new_id, label_record_id=record.id, **payload.extras)
                session.add(extras)
                session.flush()
                job.advance(states.EXTRAS_PERSISTED)

        job.record_id = record.id
        job.extras_id = extras.id if extras is not None else None
        return record, extras

    def _render(self, job: PrintJob, layout: str, record, extras=None) -> str:
        command = render(layout, record, extras, logo=self.logo)
        job.advance(states.RENDERED)
        return command

    def _transmit(self, job: PrintJob, destination: Destination, command: str) -> Dict[str, Any]:
        handler = self.handler_factory(destination, timeout=self.timeout)
        result = handler.send(command)
        if not result.get('success'):
            raise TransmissionError(
                f"Failed to send the command to {destination.name}: {result.get('error', 'unknown error')}"
            )
        job.bytes_sent = result.get('bytes_sent', 0)
        job.advance(states.TRANSMITTED)
        return result

    @staticmethod
    def _result(record, extras) -> Dict[str, Any]:
        return {
            'record': record.to_dict() if record is not None else None,
            'extras': extras.to_dict() if extras is not None else None,
        }

    def _run(self, job: PrintJob, steps: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        try:
            result = steps()
        except LabelServiceError as e:
            job.fail(e.message)
            e.job = job
            logger.warning("Job %s failed at %s: %s", job.id, job.history[-2], e.message)
            raise
        except Exception as e:
            job.fail(str(e))
            logger.exception("Job %s failed unexpectedly", job.id)
            raise

        job.complete()
        logger.info("Job %s completed (%s, record %s, extras %s, destination %s)",
                    job.id, job.label_class, job.record_id, job.extras_id, job.destination)
        return result

    # =========================================================================
    # Operations
    # =========================================================================

    def submit(self, class_name: str, data) -> Tuple[PrintJob, Dict[str, Any]]:
        """Persist a label (and its extras) without printing it."""
        class_name, config = resolve_label_class(class_name)
        job = PrintJob(label_class=class_name)

        def steps():
            payload = self._parse(job, config, data)
            with self._unit_of_work() as session:
                record, extras = self._persist(job, session, class_name, config, payload)
                return self._result(record, extras)

        return job, self._run(job, steps)

    def print_label(self, class_name: str, data, destination_name: str,
                    layout: Optional[str] = None, persist: bool = True) -> Tuple[PrintJob, Dict[str, Any]]:
        """
        Run the full workflow against a named destination.

        Args:
            class_name: BIOFLEX, DESTINY or QUALITY
            data: Label JSON (base fields plus 'extras' for extras classes)
            destination_name: Key into the destination table
            layout: Override the class's default layout
            persist: False renders and transmits without touching storage

        Returns:
            (job, {'record': ..., 'extras': ...})
        """
        class_name, config = resolve_label_class(class_name)
        destination = self.destinations.get(destination_name)
        layout = layout or config['layout']
        job = PrintJob(label_class=class_name, destination=destination.name, layout=layout)

        def print_only():
            payload = self._parse(job, config, data)
            command = self._render(job, layout, payload.record_fields(), payload.extras)
            self._transmit(job, destination, command)
            return {'record': None, 'extras': None}

        def persist_then_print():
            payload = self._parse(job, config, data)
            with self._unit_of_work() as session:
                record, extras = self._persist(job, session, class_name, config, payload)
                command = self._render(job, layout, record, extras)
                result = self._result(record, extras)
            self._transmit(job, destination, command)
            return result

        def print_then_persist():
            payload = self._parse(job, config, data)
            with self._unit_of_work() as session:
                record, extras = self._persist(job, session, class_name, config, payload)
                command = self._render(job, layout, record, extras)
                result = self._result(record, extras)
                self._transmit(job, destination, command)
            return result

        if not persist:
            steps = print_only
        elif self.policy == PRINT_THEN_PERSIST:
            steps = print_then_persist
        else:
            steps = persist_then_print

        return job, self._run(job, steps)

    def preview(self, class_name: str, data, layout: Optional[str] = None) -> str:
        """Render a label from request data without persisting or sending it."""
        class_name, config = resolve_label_class(class_name)
        payload = LabelPayload.from_dict(data, config['extras'])
        return render(layout or config['layout'], payload.record_fields(), payload.extras, logo=self.logo)

    def print_simple(self, text: str, destination_name: str, x: int = 50, y: int = 50) -> PrintJob:
        """Print a single line of text."""
        if not text:
            raise ValidationError('text required')
        destination = self.destinations.get(destination_name)
        job = PrintJob(label_class='SIMPLE', destination=destination.name, layout='simple')

        def steps():
            command = self._render(job, 'simple', {'text': text, 'x': x, 'y': y})
            self._transmit(job, destination, command)
            return {}

        self._run(job, steps)
        return job

    def send_raw(self, destination_name: str, command: str) -> Dict[str, Any]:
        """Send an already rendered command string."""
        if not command or not command.strip():
            raise ValidationError('Command body required')
        destination = self.destinations.get(destination_name)
        job = PrintJob(label_class='RAW', destination=destination.name)
        return self._run(job, lambda: self._transmit(job, destination, command))
