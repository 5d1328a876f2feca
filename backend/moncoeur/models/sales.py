from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Sale(db.Model):
    """
    Completed resale of exactly one bag.

    margin and margin_percent are computed from the bag's cost fields when the
    sale is written and are never set by clients.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("bag_id", name="uq_sales_bag_id"),
        db.CheckConstraint("sale_price >= 0", name="ck_sales_sale_price_nonneg"),
        db.CheckConstraint("platform_fees >= 0", name="ck_sales_platform_fees_nonneg"),
        db.CheckConstraint("shipping_cost >= 0", name="ck_sales_shipping_cost_nonneg"),
        db.Index("ix_sales_sale_date", "sale_date"),
        db.Index("ix_sales_bank_account", "bank_account_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bag_id = db.Column(db.Integer, db.ForeignKey("bags.id"), nullable=False)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False)
    sale_price = db.Column(db.Float, nullable=False)
    sale_platform = db.Column(db.String(32), nullable=False)
    platform_fees = db.Column(db.Float, nullable=False, default=0)
    shipping_cost = db.Column(db.Float, nullable=False, default=0)

    bank_account_id = db.Column(db.Integer, db.ForeignKey("bank_accounts.id"), nullable=False)

    margin = db.Column(db.Float, nullable=False, default=0)
    margin_percent = db.Column(db.Float, nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    sold_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    bag = db.relationship("Bag", backref=db.backref("sale", uselist=False, lazy=True))
    bank_account = db.relationship("BankAccount", backref=db.backref("sales", lazy=True))
    sold_by = db.relationship("User", backref=db.backref("sales", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bagId": self.bag_id,
            "bag": self.bag.to_summary() if self.bag else None,
            "saleDate": to_utc_z(self.sale_date),
            "salePrice": self.sale_price,
            "salePlatform": self.sale_platform,
            "platformFees": self.platform_fees,
            "shippingCost": self.shipping_cost,
            "bankAccountId": self.bank_account_id,
            "bankAccount": self.bank_account.to_summary() if self.bank_account else None,
            "margin": self.margin,
            "marginPercent": self.margin_percent,
            "notes": self.notes,
            "soldBy": self.sold_by.to_summary() if self.sold_by else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
