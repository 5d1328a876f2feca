from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Bag(db.Model):
    """
    A handbag in stock, from purchase order to resale.

    The staged sale fields (sale_date, sale_price, sale_platform, sale_notes)
    are copied into a Sale when the bag moves to "vendu". status == "vendu"
    holds exactly when one Sale references the bag.
    """
    __tablename__ = "bags"
    __table_args__ = (
        db.CheckConstraint("purchase_price >= 0", name="ck_bags_purchase_price_nonneg"),
        db.CheckConstraint("refurbishment_cost >= 0", name="ck_bags_refurbishment_cost_nonneg"),
        db.CheckConstraint("sale_price IS NULL OR sale_price >= 0", name="ck_bags_sale_price_nonneg"),
        db.Index("ix_bags_status", "status"),
        db.Index("ix_bags_brand", "brand"),
        db.Index("ix_bags_purchase_bank_account", "purchase_bank_account_id"),
        db.Index("ix_bags_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    reference = db.Column(db.String(32), nullable=False, unique=True)

    brand = db.Column(db.String(128), nullable=False)
    model = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    color = db.Column(db.String(64), nullable=True)
    size = db.Column(db.String(64), nullable=True)
    condition = db.Column(db.String(32), nullable=False)

    purchase_date = db.Column(db.DateTime(timezone=True), nullable=False)
    purchase_price = db.Column(db.Float, nullable=False)
    purchase_platform = db.Column(db.String(32), nullable=False)
    purchase_bank_account_id = db.Column(db.Integer, db.ForeignKey("bank_accounts.id"), nullable=False)

    refurbishment_cost = db.Column(db.Float, nullable=False, default=0)
    refurbishment_provider = db.Column(db.String(128), nullable=True)
    refurbishment_notes = db.Column(db.Text, nullable=True)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=True)
    sale_price = db.Column(db.Float, nullable=True)
    sale_platform = db.Column(db.String(32), nullable=True)
    sale_notes = db.Column(db.Text, nullable=True)

    photos = db.Column(db.JSON, nullable=False, default=list)
    qr_code_url = db.Column(db.String(512), nullable=True)

    status = db.Column(db.String(32), nullable=False, default="en_commande")

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    purchase_bank_account = db.relationship("BankAccount", backref=db.backref("bags", lazy=True))
    created_by = db.relationship("User", backref=db.backref("bags", lazy=True))

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "reference": self.reference,
            "brand": self.brand,
            "model": self.model,
            "purchasePrice": self.purchase_price,
            "refurbishmentCost": self.refurbishment_cost,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "reference": self.reference,
            "brand": self.brand,
            "model": self.model,
            "description": self.description,
            "color": self.color,
            "size": self.size,
            "condition": self.condition,
            "purchaseDate": to_utc_z(self.purchase_date),
            "purchasePrice": self.purchase_price,
            "purchasePlatform": self.purchase_platform,
            "purchaseBankAccountId": self.purchase_bank_account_id,
            "purchaseBankAccount": self.purchase_bank_account.to_summary() if self.purchase_bank_account else None,
            "refurbishmentCost": self.refurbishment_cost,
            "refurbishmentProvider": self.refurbishment_provider,
            "refurbishmentNotes": self.refurbishment_notes,
            "saleDate": to_utc_z(self.sale_date) if self.sale_date else None,
            "salePrice": self.sale_price,
            "salePlatform": self.sale_platform,
            "saleNotes": self.sale_notes,
            "photos": list(self.photos or []),
            "qrCodeUrl": self.qr_code_url,
            "status": self.status,
            "createdBy": self.created_by.to_summary() if self.created_by else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class ReferenceSequence(db.Model):
    """
    Per-year counter behind bag references (MC-{year}-{NNNNN}).

    next_number is incremented with a single UPDATE so concurrent creations
    never receive the same reference.
    """
    __tablename__ = "reference_sequences"
    __table_args__ = (
        db.UniqueConstraint("year", name="uq_reference_sequences_year"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    year = db.Column(db.Integer, nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
