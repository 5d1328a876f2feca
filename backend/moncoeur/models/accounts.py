from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class BankAccount(db.Model):
    """Attribution label for purchase and sale cash flows (no banking integration)."""
    __tablename__ = "bank_accounts"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    label = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    created_by = db.relationship("User")

    def to_summary(self) -> dict:
        return {"id": self.id, "label": self.label}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "isActive": self.is_active,
            "createdBy": self.created_by.to_summary() if self.created_by else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
