"""
Label Queries
=============

Read and update operations on persisted labels and the order catalog.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from ..database import DatabaseManager
from ..errors import NotFoundError, ValidationError, PersistenceError
from ..models import LabelPayload, LabelRecord, Order
from .workflow import resolve_label_class

logger = logging.getLogger(__name__)


def _with_extras(record: LabelRecord, variant: Optional[str]) -> Dict[str, Any]:
    data = record.to_dict()
    if variant:
        extras = record.extras_for(variant)
        data['extras'] = extras.to_dict() if extras is not None else None
    return data


def _belongs_to(class_name: str, variant: Optional[str]):
    # A record first stored under another class joins this one once it has extras of it
    if variant == 'destiny':
        return or_(LabelRecord.label_class == class_name, LabelRecord.destiny_extras.has())
    if variant == 'quality':
        return or_(LabelRecord.label_class == class_name, LabelRecord.quality_extras.has())
    return LabelRecord.label_class == class_name


def list_labels(db: DatabaseManager, class_name: str) -> List[Dict[str, Any]]:
    """All persisted labels of a class, each joined with its extras."""
    class_name, config = resolve_label_class(class_name)
    stmt = (
        select(LabelRecord)
        .where(_belongs_to(class_name, config['extras']))
        .options(selectinload(LabelRecord.destiny_extras), selectinload(LabelRecord.quality_extras))
        .order_by(LabelRecord.id)
    )
    with db.session() as session:
        return [_with_extras(r, config['extras']) for r in session.scalars(stmt)]


def update_label(db: DatabaseManager, class_name: str, data) -> Dict[str, Any]:
    """
    Overwrite the base fields of the label with the given RFID.

    Extras rows and the id counters are left untouched. The creation
    timestamp is kept unless the body carries one.
    """
    class_name, config = resolve_label_class(class_name)
    payload = LabelPayload.from_dict(data)
    fields = payload.record_fields()
    if not data.get('timestamp'):
        fields.pop('timestamp')

    try:
        with db.session() as session:
            record = session.scalar(
                select(LabelRecord)
                .where(_belongs_to(class_name, config['extras']), LabelRecord.rfid == payload.rfid)
                .order_by(LabelRecord.id.desc())
            )
            if record is None:
                raise NotFoundError(f"No {class_name} label with RFID {payload.rfid}")

            for key, value in fields.items():
                setattr(record, key, value)
            session.flush()
            logger.info("Updated label #%d (RFID %s)", record.id, payload.rfid)
            return record.to_dict()
    except SQLAlchemyError as e:
        raise PersistenceError(f"Storage write failed: {e}") from e


def lookup_by_rfids(db: DatabaseManager, rfids: Iterable[str]) -> List[Dict[str, Any]]:
    """Labels whose RFID is in the given list, in storage order."""
    rfids = list(dict.fromkeys(rfids))
    if not rfids:
        raise ValidationError('No RFID codes supplied')

    stmt = select(LabelRecord).where(LabelRecord.rfid.in_(rfids)).order_by(LabelRecord.id)
    with db.session() as session:
        return [r.to_dict() for r in session.scalars(stmt)]


def list_orders(db: DatabaseManager, last_process: Optional[str] = None) -> List[Dict[str, Any]]:
    """Work order catalog, optionally filtered by the last completed process."""
    stmt = select(Order).order_by(Order.id)
    if last_process:
        stmt = stmt.where(Order.last_process == last_process)
    with db.session() as session:
        return [o.to_dict() for o in session.scalars(stmt)]
