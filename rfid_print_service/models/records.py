"""
Label Records
=============

SQLAlchemy ORM models for persisted label events, their class-specific
extras, the per-class id counters and the work order catalog.
"""

from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy import (
    Integer, String, Float, DateTime, ForeignKey, Index
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class LabelRecord(Base):
    """One physical label event."""

    __tablename__ = 'label_records'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label_class: Mapped[str] = mapped_column(String(20), nullable=False, default='BIOFLEX', index=True)
    area: Mapped[str] = mapped_column(String(100), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
    product_code: Mapped[str] = mapped_column(String(50), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    operator_code: Mapped[str] = mapped_column(String(50), nullable=False)
    operator_name: Mapped[str] = mapped_column(String(200), nullable=False)
    shift: Mapped[str] = mapped_column(String(20), nullable=False)
    tare_weight: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    gross_weight: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    net_weight: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    pieces: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    traceability: Mapped[str] = mapped_column(String(100), nullable=False)
    order: Mapped[str] = mapped_column(String(100), nullable=False)
    rfid: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    uom: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    destiny_extras: Mapped[Optional['DestinyExtras']] = relationship(
        back_populates='label_record', uselist=False
    )
    quality_extras: Mapped[Optional['QualityExtras']] = relationship(
        back_populates='label_record', uselist=False
    )

    __table_args__ = (
        Index('ix_label_records_traceability', 'traceability', unique=True),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'label_class': self.label_class,
            'area': self.area,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'product_code': self.product_code,
            'product_name': self.product_name,
            'operator_code': self.operator_code,
            'operator_name': self.operator_name,
            'shift': self.shift,
            'tare_weight': self.tare_weight,
            'gross_weight': self.gross_weight,
            'net_weight': self.net_weight,
            'pieces': self.pieces,
            'traceability': self.traceability,
            'order': self.order,
            'rfid': self.rfid,
            'status': self.status,
            'uom': self.uom or '',
        }

    def extras_for(self, variant: Optional[str]):
        """Return the extras row of the given variant, if any."""
        if variant == 'destiny':
            return self.destiny_extras
        if variant == 'quality':
            return self.quality_extras
        return None

    def __repr__(self):
        return f"<LabelRecord {self.id} {self.traceability}>"


class DestinyExtras(Base):
    """Shipping data for the Destiny pallet placard."""

    __tablename__ = 'destiny_extras'

    # Allocated from the DESTINY counter, never autoincremented
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    label_record_id: Mapped[int] = mapped_column(
        ForeignKey('label_records.id'), nullable=False, unique=True
    )
    shipping_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    uom: Mapped[Optional[str]] = mapped_column(String(20))
    inventory_lot: Mapped[Optional[str]] = mapped_column(String(100))
    individual_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pallet_id: Mapped[Optional[str]] = mapped_column(String(100))
    customer_po: Mapped[Optional[str]] = mapped_column(String(100))
    total_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    product_description: Mapped[Optional[str]] = mapped_column(String(200))
    item_number: Mapped[Optional[str]] = mapped_column(String(100))

    label_record: Mapped[LabelRecord] = relationship(back_populates='destiny_extras')

    FIELDS = (
        'shipping_units', 'uom', 'inventory_lot', 'individual_units', 'pallet_id',
        'customer_po', 'total_units', 'product_description', 'item_number',
    )

    def to_dict(self) -> Dict[str, Any]:
        data = {'id': self.id, 'label_record_id': self.label_record_id}
        data.update({name: getattr(self, name) for name in self.FIELDS})
        return data


class QualityExtras(Base):
    """Quality hold data for the quality placard."""

    __tablename__ = 'quality_extras'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    label_record_id: Mapped[int] = mapped_column(
        ForeignKey('label_records.id'), nullable=False, unique=True
    )
    individual_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    item_description: Mapped[Optional[str]] = mapped_column(String(200))
    item_number: Mapped[Optional[str]] = mapped_column(String(100))
    total_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    shipping_units: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    inventory_lot: Mapped[Optional[str]] = mapped_column(String(100))
    customer_name: Mapped[Optional[str]] = mapped_column(String(200))
    traceability_reference: Mapped[Optional[str]] = mapped_column(String(100))
    uom: Mapped[Optional[str]] = mapped_column(String(20))

    label_record: Mapped[LabelRecord] = relationship(back_populates='quality_extras')

    FIELDS = (
        'individual_units', 'item_description', 'item_number', 'total_units',
        'shipping_units', 'inventory_lot', 'customer_name', 'traceability_reference', 'uom',
    )

    def to_dict(self) -> Dict[str, Any]:
        data = {'id': self.id, 'label_record_id': self.label_record_id}
        data.update({name: getattr(self, name) for name in self.FIELDS})
        return data


class IdCounter(Base):
    """Highest extras id issued so far for one label class."""

    __tablename__ = 'id_counters'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label_class: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    max_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<IdCounter {self.label_class}: {self.max_id}>"


class Order(Base):
    """Work order catalog entry."""

    __tablename__ = 'orders'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[Optional[str]] = mapped_column(String(100))
    product_code: Mapped[Optional[str]] = mapped_column(String(50))
    product_name: Mapped[Optional[str]] = mapped_column(String(200))
    last_process: Mapped[Optional[str]] = mapped_column(String(100), index=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'order_number': self.order_number or '',
            'product_code': self.product_code or '',
            'product_name': self.product_name or '',
            'last_process': self.last_process or '',
        }


EXTRAS_MODELS = {
    'destiny': DestinyExtras,
    'quality': QualityExtras,
}
