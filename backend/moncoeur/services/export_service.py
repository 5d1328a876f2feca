# Overview: CSV exports of sales and stock for spreadsheet tools.

from __future__ import annotations

import csv
import io
from typing import Any, Iterable

from ..extensions import db
from ..models import Bag
from ..time_utils import format_fr_date, utcnow
from ..validation import ValidationError
from .sales_service import sales_query


EXPORT_TYPES = ("sales", "stock")
EXPORT_FORMATS = ("csv",)

DELIMITER = ";"

SALES_HEADERS = [
    "Date", "Reference", "Marque", "Modele", "Prix achat", "Frais remise en etat",
    "Prix vente", "Frais plateforme", "Frais expedition", "Marge", "Marge %",
    "Plateforme", "Compte bancaire", "Vendeur",
]

STOCK_HEADERS = [
    "Reference", "Marque", "Modele", "Description", "Couleur", "Taille", "Etat",
    "Date achat", "Prix achat", "Plateforme achat", "Frais remise en etat",
    "Prestataire", "Statut", "Compte bancaire", "Cree par",
]


def render_csv(headers: list[str], rows: Iterable[list[Any]]) -> str:
    """';'-delimited, one row per line; cells with ';', '"' or newlines are quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=DELIMITER, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def _number(value: float | None) -> str:
    if value is None:
        return ""
    value = round(float(value), 2)
    return str(int(value)) if value.is_integer() else str(value)


def sales_rows(**filters) -> Iterable[list[Any]]:
    for sale in sales_query(**filters).all():
        bag = sale.bag
        yield [
            format_fr_date(sale.sale_date),
            bag.reference if bag else "",
            bag.brand if bag else "",
            bag.model if bag else "",
            _number(bag.purchase_price) if bag else "",
            _number(bag.refurbishment_cost) if bag else "",
            _number(sale.sale_price),
            _number(sale.platform_fees),
            _number(sale.shipping_cost),
            _number(sale.margin),
            f"{sale.margin_percent or 0:.1f}%",
            sale.sale_platform,
            sale.bank_account.label if sale.bank_account else "",
            sale.sold_by.name if sale.sold_by else "",
        ]


def stock_rows() -> Iterable[list[Any]]:
    bags = db.session.query(Bag).order_by(Bag.created_at.desc(), Bag.id.desc()).all()
    for bag in bags:
        yield [
            bag.reference,
            bag.brand,
            bag.model,
            bag.description,
            bag.color,
            bag.size,
            bag.condition,
            format_fr_date(bag.purchase_date),
            _number(bag.purchase_price),
            bag.purchase_platform,
            _number(bag.refurbishment_cost),
            bag.refurbishment_provider,
            bag.status,
            bag.purchase_bank_account.label if bag.purchase_bank_account else "",
            bag.created_by.name if bag.created_by else "",
        ]


def build_export(export_type: str | None, export_format: str | None = "csv", **filters) -> tuple[str, str]:
    """
    Returns (filename, csv_text).

    Raises ValidationError for an unknown type or format.
    """
    export_type = export_type or "sales"
    if export_type not in EXPORT_TYPES:
        raise ValidationError("Type invalide")
    if (export_format or "csv") not in EXPORT_FORMATS:
        raise ValidationError("Format non supporte")

    today = utcnow().strftime("%Y-%m-%d")
    if export_type == "sales":
        return f"ventes_export_{today}.csv", render_csv(SALES_HEADERS, sales_rows(**filters))
    return f"stock_export_{today}.csv", render_csv(STOCK_HEADERS, stock_rows())
