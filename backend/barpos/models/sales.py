from __future__ import annotations

import uuid

from ..extensions import db
from barpos.time_utils import utcnow


def _uuid() -> str:
    return str(uuid.uuid4())


class Transaction(db.Model):
    """
    Current sale record written at checkout.

    One row per paid order; ``items`` holds the cart as JSON. Shares the
    ``order_id`` key space with ``orders`` and wins when both hold a row.
    """
    __tablename__ = "transactions"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    order_id = db.Column(db.String(64), nullable=False, unique=True)
    staff_name = db.Column(db.String(120), nullable=False, default="staff")
    total_amount = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False)
    payment_method = db.Column(db.String(32), nullable=False, default="COMPLIMENTARY")
    items = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Transaction order_id={self.order_id!r} total={self.total_amount}>"


class Order(db.Model):
    """
    Previous-generation order record. Still read so history written before
    ``transactions`` existed keeps showing up in reports.
    """
    __tablename__ = "orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(64), nullable=False, unique=True)
    staff_name = db.Column(db.String(120), nullable=True)
    total_amount = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)
    payment_method = db.Column(db.String(32), nullable=False, default="COMPLIMENTARY")
    status = db.Column(db.String(16), nullable=False, default="completed")
    items = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<Order id={self.id} order_id={self.order_id!r}>"


class OrderItem(db.Model):
    """Normalized order line. ``order_id`` holds either the business id or the numeric row id."""
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(64), nullable=False, index=True)
    item_id = db.Column(db.String(64), nullable=True)
    quantity = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False, default=1)
    unit_price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)


class Sale(db.Model):
    """
    Legacy flat sales ledger: one row per item sold, no order grouping.

    Only consulted when neither ``transactions`` nor ``orders`` has data
    for the requested window.
    """
    __tablename__ = "sales"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, nullable=True)
    item_name = db.Column(db.String(255), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=True)
    amount = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=True)
    line_total = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=True)
    staff_name = db.Column(db.String(120), nullable=True)
    is_voided = db.Column(db.Boolean, nullable=False, default=False)
    void_reason = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<Sale id={self.id} item_name={self.item_name!r} voided={self.is_voided}>"


class VoidLog(db.Model):
    """Audit row written whenever an order or sale line is voided."""
    __tablename__ = "void_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(64), nullable=True)
    amount = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=True)
    reason = db.Column(db.String(255), nullable=True)
    voided_by = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
