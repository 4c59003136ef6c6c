"""
Identifier Allocator
====================

Hands out extras ids from the per-class counter rows in ``id_counters``.

The increment is one ``UPDATE ... SET max_id = max_id + 1 ... RETURNING``
statement run in the caller's session: concurrent callers serialize on the
row lock, and the new value commits or rolls back together with whatever the
caller persists alongside it.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import IdCounter

logger = logging.getLogger(__name__)


def _missing(label_class: str) -> NotFoundError:
    return NotFoundError(f"No id counter configured for label class {label_class}")


def allocate_next(session: Session, label_class: str) -> int:
    """
    Reserve the next id for a label class.

    Args:
        session: Open session; the increment is part of its transaction
        label_class: BIOFLEX, DESTINY or QUALITY

    Returns:
        The new maximum, strictly greater than every id issued before

    Raises:
        NotFoundError: no counter row for the class
    """
    stmt = (
        update(IdCounter)
        .where(IdCounter.label_class == label_class)
        .values(max_id=IdCounter.max_id + 1)
        .returning(IdCounter.max_id)
        .execution_options(synchronize_session=False)
    )
    value = session.execute(stmt).scalar_one_or_none()
    if value is None:
        raise _missing(label_class)

    logger.debug("Allocated %s id %d", label_class, value)
    return value


def current_max(session: Session, label_class: str) -> int:
    """Highest id issued so far for a label class."""
    value = session.scalar(
        select(IdCounter.max_id).where(IdCounter.label_class == label_class)
    )
    if value is None:
        raise _missing(label_class)
    return value


def ensure_counter(session: Session, label_class: str) -> None:
    """Fail with NotFoundError unless the counter row exists."""
    current_max(session, label_class)
