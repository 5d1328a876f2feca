# Overview: Service-layer operations for bank accounts; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Bag, BankAccount, Sale
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError, validate_payload
from .concurrency import atomic


BANK_ACCOUNT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"label", "description", "isActive"}),
    required_on_create=("label",),
    messages={"label.required": "Libelle est requis"},
)


def _label_taken(label: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(BankAccount.id).filter(db.func.lower(BankAccount.label) == label.lower())
    if exclude_id is not None:
        query = query.filter(BankAccount.id != exclude_id)
    return query.first() is not None


def list_bank_accounts(*, active_only: bool = False) -> list[BankAccount]:
    query = db.session.query(BankAccount)
    if active_only:
        query = query.filter(BankAccount.is_active.is_(True))
    return query.order_by(BankAccount.label.asc()).all()


def get_bank_account(account_id: int) -> BankAccount:
    account = db.session.get(BankAccount, account_id)
    if not account:
        raise NotFoundError("Compte non trouve")
    return account


def create_bank_account(payload: dict, user_id: int | None) -> BankAccount:
    patch = validate_payload(model=BankAccount, payload=payload, policy=BANK_ACCOUNT_POLICY, partial=False)
    with atomic():
        if _label_taken(patch["label"]):
            raise ConflictError("Un compte avec ce libelle existe deja")
        account = BankAccount(created_by_user_id=user_id, **patch)
        db.session.add(account)
    return account


def update_bank_account(account_id: int, payload: dict) -> BankAccount:
    patch = validate_payload(model=BankAccount, payload=payload, policy=BANK_ACCOUNT_POLICY, partial=True)
    with atomic():
        account = get_bank_account(account_id)
        if "label" in patch and _label_taken(patch["label"], exclude_id=account.id):
            raise ConflictError("Un compte avec ce libelle existe deja")
        for key, value in patch.items():
            setattr(account, key, value)
    return account


def usage_counts(account_id: int) -> tuple[int, int]:
    """(bags purchased with the account, sales credited to it)"""
    bags = db.session.query(Bag).filter_by(purchase_bank_account_id=account_id).count()
    sales = db.session.query(Sale).filter_by(bank_account_id=account_id).count()
    return bags, sales


def delete_bank_account(account_id: int) -> None:
    """Refused while any bag or sale references the account."""
    with atomic():
        account = get_bank_account(account_id)
        bags, sales = usage_counts(account.id)
        if bags or sales:
            raise ConflictError(
                f"Ce compte est utilise dans {bags} sac(s) et {sales} vente(s). "
                "Impossible de le supprimer."
            )
        db.session.delete(account)


def ensure_bank_account(label: str, user_id: int | None = None) -> tuple[BankAccount, bool]:
    """
    Return the account whose label matches case-insensitively, creating it
    if needed. Returns (account, created). Flushes without committing.
    """
    account = (
        db.session.query(BankAccount)
        .filter(db.func.lower(BankAccount.label) == label.lower())
        .first()
    )
    if account:
        return account, False
    account = BankAccount(label=label, is_active=True, created_by_user_id=user_id)
    db.session.add(account)
    db.session.flush()
    return account, True
