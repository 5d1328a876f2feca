# Overview: Service-layer operations for bags; encapsulates business logic and database work.

# backend/moncoeur/services/bag_service.py
"""
Bag (stock) Service

Status changes drive the bag's Sale:
- into "vendu": a Sale is created from the staged sale fields (sale price
  and platform required), unless one already exists
- out of "vendu": the Sale is deleted
- staying "vendu": edits to the staged sale fields are copied to the Sale;
  the margin is recomputed only when the sale price changes

Bag and Sale are always written in one transaction.
"""

from __future__ import annotations

import re

from sqlalchemy.exc import IntegrityError

from ..constants import BAG_STATUSES, CONDITIONS, PLATFORMS, SOLD_STATUS
from ..extensions import db
from ..models import Bag, Sale
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)
from .bank_account_service import get_bank_account
from .concurrency import atomic, lock_for_update
from .pagination import paginate
from .reference_service import next_bag_reference
from .sales_service import add_sale_for_bag, apply_margin


BAG_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "brand", "model", "description", "color", "size", "condition",
        "purchaseDate", "purchasePrice", "purchasePlatform", "purchaseBankAccountId",
        "refurbishmentCost", "refurbishmentProvider", "refurbishmentNotes",
        "saleDate", "salePrice", "salePlatform", "saleNotes",
        "photos", "qrCodeUrl", "status",
    }),
    required_on_create=(
        "brand", "model", "description", "condition", "purchaseDate",
        "purchasePrice", "purchasePlatform", "purchaseBankAccountId",
    ),
    choices={
        "condition": tuple(CONDITIONS),
        "purchasePlatform": tuple(PLATFORMS),
        "salePlatform": tuple(PLATFORMS),
        "status": BAG_STATUSES,
    },
    non_negative=frozenset({"purchasePrice", "refurbishmentCost", "salePrice"}),
    messages={
        "brand.required": "Marque est requise",
        "model.required": "Modele est requis",
        "description.required": "Description est requise",
        "condition.required": "Etat est requis",
        "condition.choice": "Etat invalide",
        "purchaseDate.required": "Date d'achat est requise",
        "purchasePrice.required": "Prix d'achat est requis",
        "purchasePrice.min": "Le prix ne peut pas etre negatif",
        "purchasePlatform.required": "Plateforme d'achat est requise",
        "purchasePlatform.choice": "Plateforme d'achat invalide",
        "purchaseBankAccountId.required": "Compte bancaire est requis",
        "refurbishmentCost.min": "Les frais de remise en etat ne peuvent pas etre negatifs",
        "salePrice.min": "Le prix ne peut pas etre negatif",
        "salePlatform.choice": "Plateforme de vente invalide",
        "status.choice": "Statut invalide",
    },
)

SALE_SYNC_FIELDS = {
    "sale_date": "sale_date",
    "sale_price": "sale_price",
    "sale_platform": "sale_platform",
    "sale_notes": "notes",
}

_STOCK_URL_RE = re.compile(r"/stock/(\d+)/?(?:[?#].*)?$")


def _missing_sale_fields(bag: Bag) -> list[str]:
    missing = []
    if bag.sale_price is None:
        missing.append("prix de vente")
    if not bag.sale_platform:
        missing.append("plateforme de vente")
    return missing


def _sell_bag(bag: Bag, user_id: int) -> Sale:
    missing = _missing_sale_fields(bag)
    if missing:
        message = " et ".join(missing)
        raise ValidationError(f"{message[0].upper()}{message[1:]} requis pour marquer le sac comme vendu")

    sale = add_sale_for_bag(
        bag,
        sale_date=bag.sale_date,
        sale_price=bag.sale_price,
        sale_platform=bag.sale_platform,
        bank_account_id=bag.purchase_bank_account_id,
        sold_by_user_id=user_id,
        notes=bag.sale_notes,
    )
    bag.sale_date = sale.sale_date
    return sale


def get_bag(bag_id: int) -> Bag:
    bag = db.session.get(Bag, bag_id)
    if not bag:
        raise NotFoundError("Sac non trouve")
    return bag


def list_bags(
    *,
    status: str | None = None,
    brand: str | None = None,
    search: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    """Newest first. "all" disables the status/brand filters."""
    query = db.session.query(Bag)

    if status and status != "all":
        query = query.filter(Bag.status == status)
    if brand and brand != "all":
        query = query.filter(Bag.brand == brand)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Bag.reference.ilike(pattern),
            Bag.brand.ilike(pattern),
            Bag.model.ilike(pattern),
            Bag.description.ilike(pattern),
        ))

    query = query.order_by(Bag.created_at.desc(), Bag.id.desc())
    bags, pagination = paginate(query, page, limit)
    return {
        "bags": [b.to_dict() for b in bags],
        "pagination": pagination,
    }


def create_bag(payload: dict, user_id: int) -> tuple[Bag, Sale | None]:
    """
    Create a bag with a freshly allocated reference.

    A bag created directly as "vendu" gets its Sale in the same transaction.
    Returns (bag, sale_or_None).
    """
    patch = validate_payload(model=Bag, payload=payload, policy=BAG_POLICY, partial=False)
    patch.setdefault("refurbishment_cost", 0)
    patch.setdefault("photos", [])
    patch.setdefault("status", "en_commande")

    with atomic():
        get_bank_account(patch["purchase_bank_account_id"])

        bag = Bag(reference=next_bag_reference(), created_by_user_id=user_id, **patch)
        db.session.add(bag)
        db.session.flush()

        sale = None
        if bag.status == SOLD_STATUS:
            sale = _sell_bag(bag, user_id)

    return bag, sale


def update_bag(bag_id: int, payload: dict, user_id: int) -> tuple[Bag, Sale | None]:
    """
    Patch a bag and keep its Sale in step with the status.

    Returns (bag, sale_created_by_this_update_or_None). Raises ConflictError
    when a concurrent request sold the bag first.
    """
    patch = validate_payload(model=Bag, payload=payload, policy=BAG_POLICY, partial=True)

    try:
        with atomic():
            bag = lock_for_update(db.session.query(Bag).filter_by(id=bag_id)).first()
            if not bag:
                raise NotFoundError("Sac non trouve")

            if "purchase_bank_account_id" in patch:
                get_bank_account(patch["purchase_bank_account_id"])

            for key, value in patch.items():
                setattr(bag, key, value)
            if bag.refurbishment_cost is None:
                bag.refurbishment_cost = 0

            sale = db.session.query(Sale).filter_by(bag_id=bag.id).first()
            created = None

            if bag.status == SOLD_STATUS:
                if sale is None:
                    created = _sell_bag(bag, user_id)
                else:
                    _sync_sale(sale, bag, patch)
            elif sale is not None:
                db.session.delete(sale)
    except IntegrityError:
        raise ConflictError("Une vente existe deja pour ce sac", {"bag_id": bag_id})

    return bag, created


def _sync_sale(sale: Sale, bag: Bag, patch: dict) -> None:
    touched = [k for k in SALE_SYNC_FIELDS if k in patch]
    for key in touched:
        if key == "sale_date" and patch[key] is None:
            continue
        if key in ("sale_price", "sale_platform") and patch[key] is None:
            raise ValidationError(f"{'Prix' if key == 'sale_price' else 'Plateforme'} de vente requis pour un sac vendu")
        setattr(sale, SALE_SYNC_FIELDS[key], patch[key])
    if "sale_price" in touched:
        apply_margin(sale, bag)


def delete_bag(bag_id: int) -> None:
    with atomic():
        bag = lock_for_update(db.session.query(Bag).filter_by(id=bag_id)).first()
        if not bag:
            raise NotFoundError("Sac non trouve")
        if db.session.query(Sale.id).filter_by(bag_id=bag.id).first():
            raise ConflictError("Ce sac a ete vendu. Supprimez d'abord la vente.")
        db.session.delete(bag)


def find_bag_by_code(code: str | None) -> Bag:
    """
    Resolve a scanned QR payload: a ".../stock/{id}" URL, a bare id, or a
    bag reference.
    """
    code = (code or "").strip()
    if not code:
        raise ValidationError("QR code non reconnu")

    match = _STOCK_URL_RE.search(code)
    if match:
        return get_bag(int(match.group(1)))
    if code.isdigit():
        return get_bag(int(code))

    bag = db.session.query(Bag).filter(db.func.upper(Bag.reference) == code.upper()).first()
    if not bag:
        raise ValidationError("QR code non reconnu")
    return bag
