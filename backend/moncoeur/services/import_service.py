# Overview: Service-layer operations for workbook imports; encapsulates business logic and database work.

"""
Workbook Import

Reads the historical .xlsx ledger and creates bags (and sales for sold
rows). Partial success is the normal outcome: each row is committed on its
own and failures are collected as "Ligne {n} ({sheet}): {message}" strings.

Sheets (names matched case-insensitively):
- achats: purchases only, bags in status "recu" on the default account
- one sheet per seller account: sold bags + sales credited to that account
- historique: sold bags + sales with their own dates, default account
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, BinaryIO, Iterable, Iterator

from openpyxl import load_workbook

from ..extensions import db
from ..models import Bag
from ..time_utils import parse_iso_datetime, utcnow
from ..validation import ValidationError, parse_amount
from .bank_account_service import ensure_bank_account
from .concurrency import atomic
from .reference_service import next_bag_reference
from .sales_service import add_sale_for_bag


class WorkbookImportError(Exception):
    """Raised when the uploaded file cannot be read as a workbook."""


DEFAULT_ACCOUNT_LABEL = "Non specifie"
DEFAULT_BRAND = "Autre"
UNKNOWN_MODEL = "Non specifie"
REFURBISHMENT_PROVIDER = "Gianni"

# Ordered: the first keyword found in the description wins.
BRAND_RULES: list[tuple[str, str]] = [
    ("Lancel", "Lancel"),
    ("Longchamp", "Longchamp"),
    ("Louis Vuitton", "Louis Vuitton"),
    ("LV", "Louis Vuitton"),
    ("Chanel", "Chanel"),
    ("Hermes", "Hermes"),
    ("Burberry", "Burberry"),
    ("Maje", "Maje"),
    ("Gerard Darel", "Gerard Darel"),
    ("See by Chloe", "See by Chloe"),
    ("Celine", "Celine"),
    ("Balenciaga", "Balenciaga"),
    ("Fossil", "Fossil"),
    ("Sezane", "Sezane"),
    ("Brigitte Bardot", "Brigitte Bardot"),
    ("Michael Kors", "Michael Kors"),
    ("Coach", "Coach"),
    ("Guess", "Guess"),
    ("Lancaster", "Lancaster"),
    ("Furla", "Furla"),
]

# Generic words dropped from the start of the model once the brand is removed
NOISE_WORDS = ("sac",)

# Days between 1899-12-30 (Excel day 0) and 1970-01-01
EXCEL_EPOCH_OFFSET = 25569


@dataclass
class ImportResult:
    bags_created: int = 0
    sales_created: int = 0
    bank_accounts_created: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "bagsCreated": self.bags_created,
            "salesCreated": self.sales_created,
            "bankAccountsCreated": self.bank_accounts_created,
            "errors": list(self.errors),
        }


def extract_brand_and_model(
    description: str,
    rules: Iterable[tuple[str, str]] = BRAND_RULES,
    noise_words: Iterable[str] = NOISE_WORDS,
) -> tuple[str, str]:
    """
    "Sac Louis Vuitton Neverfull" -> ("Louis Vuitton", "Neverfull")

    The first keyword contained in the description (case-insensitive) gives
    the brand. The model is the description with every occurrence of that
    keyword and the leading noise words removed; "Non specifie" when nothing
    is left. Without a match the brand is "Autre" and the model is the first
    100 characters of the description.
    """
    lowered = description.lower()
    for keyword, brand in rules:
        if keyword.lower() not in lowered:
            continue
        model = re.sub(re.escape(keyword), "", description, flags=re.IGNORECASE)
        model = re.sub(r"\s+", " ", model).strip(" -")
        for word in noise_words:
            model = re.sub(rf"^{re.escape(word)}\b[\s-]*", "", model, flags=re.IGNORECASE)
        model = model.strip(" -")
        return brand, model or UNKNOWN_MODEL

    return DEFAULT_BRAND, description[:100]


def excel_serial_to_datetime(serial: float) -> datetime:
    """Excel day serial -> midnight UTC of that day."""
    return datetime(1970, 1, 1) + timedelta(days=int(serial) - EXCEL_EPOCH_OFFSET)


_FR_DATE_RE = re.compile(r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{2}|\d{4})$")


def _compact_date(value: float) -> datetime | None:
    """270524 -> 2024-05-27. Only six-digit whole numbers forming a real DDMMYY day."""
    if value != int(value) or not 100000 <= value <= 999999:
        return None
    digits = f"{int(value):06d}"
    day, month, year = int(digits[:2]), int(digits[2:4]), 2000 + int(digits[4:])
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


def parse_sheet_date(value: Any, default: datetime | None = None) -> datetime:
    """Excel serials, datetime cells, ISO strings and dd/mm/yyyy strings; else default/now."""
    fallback = default or utcnow()
    if value is None or value == "":
        return fallback
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value <= 0:
            return fallback
        compact = _compact_date(value)
        if compact is not None:
            return compact
        return excel_serial_to_datetime(value)

    text = str(value).strip()
    match = _FR_DATE_RE.match(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        if year < 100:
            year += 2000
        try:
            return datetime(year, month, day)
        except ValueError:
            return fallback
    try:
        return parse_iso_datetime(text) or fallback
    except ValueError:
        return fallback


def _amount(row: dict, *names: str) -> float:
    """First non-empty column among `names`, parsed as an amount (0 if absent)."""
    for name in names:
        value = row.get(name)
        if value is None or value == "":
            continue
        return parse_amount(value, name)
    return 0.0


def _text(row: dict, *names: str) -> str:
    for name in names:
        value = row.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def iter_sheet_rows(sheet) -> Iterator[tuple[int, dict]]:
    """Yield (spreadsheet line number, {lower-cased header: value}) for data rows."""
    rows = sheet.iter_rows(values_only=True)
    header = next(rows, None)
    if not header:
        return
    keys = [str(h).strip().lower() if h is not None else "" for h in header]
    for offset, values in enumerate(rows):
        if values is None or all(v is None or v == "" for v in values):
            continue
        yield offset + 2, {k: v for k, v in zip(keys, values) if k}


def _description_exists(description: str) -> bool:
    prefix = description[:50].replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return (
        db.session.query(Bag.id)
        .filter(Bag.description.ilike(f"%{prefix}%", escape="\\"))
        .first()
        is not None
    )


def _new_bag(*, description: str, purchase_price: float, purchase_date: datetime,
             bank_account_id: int, user_id: int, status: str,
             refurbishment_cost: float = 0) -> Bag:
    brand, model = extract_brand_and_model(description)
    bag = Bag(
        reference=next_bag_reference(),
        brand=brand,
        model=model,
        description=description,
        condition="tres_bon",
        purchase_date=purchase_date,
        purchase_price=purchase_price,
        purchase_platform="autre",
        purchase_bank_account_id=bank_account_id,
        refurbishment_cost=refurbishment_cost,
        refurbishment_provider=REFURBISHMENT_PROVIDER if refurbishment_cost > 0 else None,
        photos=[],
        status=status,
        created_by_user_id=user_id,
    )
    db.session.add(bag)
    db.session.flush()
    return bag


def _import_purchase_row(row: dict, ctx: "_Context") -> None:
    description = _text(row, "descriptif")
    price = _amount(row, "prix")
    if not description or price <= 0:
        return
    if _description_exists(description):
        return

    with atomic():
        _new_bag(
            description=description,
            purchase_price=price,
            purchase_date=parse_sheet_date(row.get("date")),
            bank_account_id=ctx.default_account_id,
            user_id=ctx.user_id,
            status="recu",
        )
    ctx.result.bags_created += 1


def _import_sold_row(
    row: dict,
    ctx: "_Context",
    *,
    description: str,
    purchase_price: float,
    sale_price: float,
    refurbishment_cost: float,
    bank_account_id: int,
) -> None:
    if not description or sale_price <= 0:
        return
    if purchase_price < 0 or refurbishment_cost < 0:
        raise ValidationError("Les montants ne peuvent pas etre negatifs")

    when = parse_sheet_date(row.get("date"))
    with atomic():
        bag = _new_bag(
            description=description,
            purchase_price=purchase_price,
            purchase_date=when,
            bank_account_id=bank_account_id,
            user_id=ctx.user_id,
            status="vendu",
            refurbishment_cost=refurbishment_cost,
        )
        add_sale_for_bag(
            bag,
            sale_date=when,
            sale_price=sale_price,
            sale_platform="autre",
            bank_account_id=bank_account_id,
            sold_by_user_id=ctx.user_id,
        )
        bag.sale_price = sale_price
        bag.sale_platform = "autre"
        bag.sale_date = when
    ctx.result.bags_created += 1
    ctx.result.sales_created += 1


def _import_seller_row(row: dict, ctx: "_Context", bank_account_id: int) -> None:
    _import_sold_row(
        row,
        ctx,
        description=_text(row, "descriptif"),
        purchase_price=_amount(row, "prix achat"),
        sale_price=_amount(row, "prix vente"),
        refurbishment_cost=_amount(row, "frais gianni", "frais"),
        bank_account_id=bank_account_id,
    )


def _import_history_row(row: dict, ctx: "_Context") -> None:
    _import_sold_row(
        row,
        ctx,
        description=_text(row, "achats libelle", "descriptif"),
        purchase_price=_amount(row, "prix achats", "prix achat"),
        sale_price=_amount(row, "prix vente"),
        refurbishment_cost=0,
        bank_account_id=ctx.default_account_id,
    )


@dataclass
class _Context:
    user_id: int
    default_account_id: int
    result: ImportResult


def import_workbook(
    stream: BinaryIO,
    user_id: int,
    seller_sheets: Iterable[str] = ("Beatrice", "Tiziana", "Goergio", "Jenacha"),
) -> ImportResult:
    """
    Import every recognised sheet of an .xlsx workbook.

    Raises WorkbookImportError if the file is not a readable workbook; row
    level problems never abort the import.
    """
    try:
        workbook = load_workbook(stream, read_only=True, data_only=True)
    except Exception as e:
        raise WorkbookImportError(f"Fichier Excel illisible: {e}")

    result = ImportResult()

    with atomic():
        seller_accounts: dict[str, int] = {}
        for label in seller_sheets:
            account, created = ensure_bank_account(label.capitalize(), user_id)
            if created:
                account.description = "Compte importe depuis Excel"
                result.bank_accounts_created += 1
            seller_accounts[label.lower()] = account.id

        default_account, created = ensure_bank_account(DEFAULT_ACCOUNT_LABEL, user_id)
        if created:
            default_account.description = "Compte par defaut pour les achats sans compte specifie"
            result.bank_accounts_created += 1

    ctx = _Context(user_id=user_id, default_account_id=default_account.id, result=result)

    try:
        for sheet_name in workbook.sheetnames:
            key = sheet_name.strip().lower()
            if key == "achats":
                handler = _import_purchase_row
                extra = ()
            elif key in seller_accounts:
                handler = _import_seller_row
                extra = (seller_accounts[key],)
            elif key == "historique":
                handler = _import_history_row
                extra = ()
            else:
                continue

            for line, row in iter_sheet_rows(workbook[sheet_name]):
                try:
                    handler(row, ctx, *extra)
                except Exception as e:
                    result.errors.append(f"Ligne {line} ({sheet_name}): {e}")
    finally:
        workbook.close()

    return result
