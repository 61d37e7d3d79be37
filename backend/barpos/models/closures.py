from __future__ import annotations

import uuid

from ..extensions import db
from barpos.time_utils import utcnow


class MonthClosure(db.Model):
    """
    Month-end accounting snapshot.

    Reports never reach back past the most recent closure: ``created_at`` of
    the latest row is the earliest instant a report window may start at.
    """
    __tablename__ = "month_closures"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    month_key = db.Column(db.String(7), nullable=False, unique=True)  # YYYY-MM
    period_start = db.Column(db.DateTime(timezone=True), nullable=False)
    period_end = db.Column(db.DateTime(timezone=True), nullable=False)
    total_sales = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    total_orders = db.Column(db.Integer, nullable=False, default=0)
    top_item_name = db.Column(db.String(255), nullable=True)
    top_item_quantity = db.Column(db.Integer, nullable=False, default=0)
    closed_by_email = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<MonthClosure month_key={self.month_key!r}>"
