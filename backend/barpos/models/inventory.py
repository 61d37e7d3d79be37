from __future__ import annotations

from ..extensions import db
from barpos.time_utils import utcnow


class InventoryItem(db.Model):
    """
    Stock catalog entry.

    ``item_name`` replaced the older ``name`` column; both are kept because
    rows created before the rename only carry ``name``.
    """
    __tablename__ = "inventory"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    item_name = db.Column(db.String(255), nullable=True)
    name = db.Column(db.String(255), nullable=True)
    category = db.Column(db.String(120), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    unit_price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=True, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def display_name(self) -> str | None:
        return self.item_name or self.name

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} name={self.display_name!r} qty={self.quantity}>"
