# Overview: Service-layer operations for sales; encapsulates business logic and database work.

# backend/moncoeur/services/sales_service.py
"""
Sales Service

A Sale is the completed resale of one bag. Whatever path creates or edits
it (direct sale, bag status change, workbook import), the margin comes from
compute_margin and the bag and sale rows are written in the same
transaction.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.exc import IntegrityError

from ..constants import PLATFORMS, RELISTED_STATUS, SOLD_STATUS
from ..extensions import db
from ..models import Bag, Sale
from ..time_utils import end_of_day_exclusive, parse_iso_datetime, utcnow
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError, ValidationError, validate_payload
from .bank_account_service import get_bank_account
from .concurrency import atomic, lock_for_update
from .pagination import paginate


SALE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "saleDate", "salePrice", "salePlatform", "platformFees",
        "shippingCost", "bankAccountId", "notes",
    }),
    required_on_create=("bagId", "saleDate", "salePrice", "salePlatform", "bankAccountId"),
    choices={"salePlatform": tuple(PLATFORMS)},
    non_negative=frozenset({"salePrice", "platformFees", "shippingCost"}),
    messages={
        "bagId.required": "Sac est requis",
        "saleDate.required": "Date de vente est requise",
        "salePrice.required": "Prix de vente est requis",
        "salePrice.min": "Le prix ne peut pas etre negatif",
        "salePlatform.required": "Plateforme de vente est requise",
        "salePlatform.choice": "Plateforme de vente invalide",
        "bankAccountId.required": "Compte bancaire est requis",
        "platformFees.min": "Les frais ne peuvent pas etre negatifs",
        "shippingCost.min": "Les frais ne peuvent pas etre negatifs",
    },
)


def compute_margin(
    purchase_price: float | None,
    refurbishment_cost: float | None,
    sale_price: float | None,
    platform_fees: float | None = 0,
    shipping_cost: float | None = 0,
) -> tuple[float, float]:
    """
    margin = sale - (purchase + refurbishment) - (fees + shipping)
    margin_percent = margin / (purchase + refurbishment) * 100, 0 for a zero cost.

    Both rounded to 2 decimals.
    """
    total_cost = (purchase_price or 0) + (refurbishment_cost or 0)
    margin = (sale_price or 0) - total_cost - ((platform_fees or 0) + (shipping_cost or 0))
    margin_percent = (margin / total_cost) * 100 if total_cost > 0 else 0
    return round(margin, 2), round(margin_percent, 2)


def apply_margin(sale: Sale, bag: Bag) -> None:
    sale.margin, sale.margin_percent = compute_margin(
        bag.purchase_price,
        bag.refurbishment_cost,
        sale.sale_price,
        sale.platform_fees,
        sale.shipping_cost,
    )


def add_sale_for_bag(
    bag: Bag,
    *,
    sale_date: datetime | None,
    sale_price: float,
    sale_platform: str,
    bank_account_id: int,
    sold_by_user_id: int,
    platform_fees: float = 0,
    shipping_cost: float = 0,
    notes: str | None = None,
) -> Sale:
    """
    Stage a Sale for `bag` and mark the bag sold, inside the caller's
    transaction (flush only).
    """
    sale = Sale(
        bag=bag,
        sale_date=sale_date or utcnow(),
        sale_price=sale_price,
        sale_platform=sale_platform,
        platform_fees=platform_fees or 0,
        shipping_cost=shipping_cost or 0,
        bank_account_id=bank_account_id,
        notes=notes,
        sold_by_user_id=sold_by_user_id,
    )
    apply_margin(sale, bag)
    bag.status = SOLD_STATUS
    db.session.add(sale)
    db.session.flush()
    return sale


def create_sale(payload: dict, sold_by_user_id: int) -> Sale:
    """
    Record a direct sale.

    Raises:
        ValidationError: invalid payload
        NotFoundError: bag or bank account missing
        ConflictError: bag already sold or already has a sale
    """
    patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=False)
    bag_id = payload.get("bagId")
    if isinstance(bag_id, str) and bag_id.strip().isdigit():
        bag_id = int(bag_id)
    if not isinstance(bag_id, int) or isinstance(bag_id, bool):
        raise NotFoundError("Sac non trouve")

    try:
        with atomic():
            bag = lock_for_update(db.session.query(Bag).filter_by(id=bag_id)).first()
            if not bag:
                raise NotFoundError("Sac non trouve")
            if bag.status == SOLD_STATUS:
                raise ConflictError("Ce sac a deja ete vendu", {"bag_id": bag.id})
            if db.session.query(Sale.id).filter_by(bag_id=bag.id).first():
                raise ConflictError("Une vente existe deja pour ce sac", {"bag_id": bag.id})

            get_bank_account(patch["bank_account_id"])

            sale = add_sale_for_bag(
                bag,
                sold_by_user_id=sold_by_user_id,
                **patch,
            )
    except IntegrityError:
        raise ConflictError("Une vente existe deja pour ce sac", {"bag_id": bag_id})

    return sale


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if not sale:
        raise NotFoundError("Vente non trouvee")
    return sale


def delete_sale(sale_id: int) -> None:
    """Delete a sale and put its bag back on sale, atomically."""
    with atomic():
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if not sale:
            raise NotFoundError("Vente non trouvee")
        bag = sale.bag
        if bag is not None:
            bag.status = RELISTED_STATUS
        db.session.delete(sale)


def _parse_filter_date(value: str | None, name: str) -> datetime | None:
    if not value:
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{name} invalide")


def sales_query(
    *,
    bank_account_id: int | None = None,
    platform: str | None = None,
    brand: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
):
    """Filtered sales, newest sale date first. end_date includes the whole day."""
    query = db.session.query(Sale)

    if bank_account_id:
        query = query.filter(Sale.bank_account_id == bank_account_id)
    if platform and platform != "all":
        query = query.filter(Sale.sale_platform == platform)
    if brand and brand != "all":
        query = query.join(Bag, Sale.bag_id == Bag.id).filter(Bag.brand == brand)

    start = _parse_filter_date(start_date, "startDate")
    end = _parse_filter_date(end_date, "endDate")
    if start:
        query = query.filter(Sale.sale_date >= start)
    if end:
        query = query.filter(Sale.sale_date < end_of_day_exclusive(end))

    return query.order_by(Sale.sale_date.desc(), Sale.id.desc())


def list_sales(*, page: int | None = None, limit: int | None = None, **filters) -> dict:
    sales, pagination = paginate(sales_query(**filters), page, limit)
    return {
        "sales": [s.to_dict() for s in sales],
        "pagination": pagination,
    }
