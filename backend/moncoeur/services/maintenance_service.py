# Overview: Service-layer operations for maintenance; seeding and one-off data repairs.

from __future__ import annotations

from datetime import datetime

from ..constants import SOLD_STATUS
from ..extensions import db
from ..models import Bag, Sale, User
from .auth_service import hash_password
from .bank_account_service import ensure_bank_account
from .concurrency import atomic


# (email, name, role, initial password). Change the passwords after first login.
DEFAULT_USERS = [
    ("nadia@moncoeur.app", "Nadia", "admin", "nadia123"),
    ("jeff@moncoeur.app", "Jeff", "admin", "jeff123"),
    ("jeannette@moncoeur.app", "Jeannette", "seller", "jeannette123"),
]

DEFAULT_BANK_ACCOUNTS = ["Beatrice", "Tiziana", "Goergio", "Jenacha"]


def seed_defaults() -> dict:
    """
    Idempotently create the default users and bank accounts.

    Returns {"users": [emails created], "bankAccounts": [labels created]}.
    """
    created_users: list[str] = []
    created_accounts: list[str] = []

    with atomic():
        for email, name, role, password in DEFAULT_USERS:
            if db.session.query(User.id).filter_by(email=email).first():
                continue
            db.session.add(User(
                email=email,
                name=name,
                role=role,
                password_hash=hash_password(password),
                is_active=True,
            ))
            created_users.append(email)
        db.session.flush()

        owner = db.session.query(User).filter_by(role="admin").order_by(User.id.asc()).first()
        for label in DEFAULT_BANK_ACCOUNTS:
            _, created = ensure_bank_account(label, owner.id if owner else None)
            if created:
                created_accounts.append(label)

    return {"users": created_users, "bankAccounts": created_accounts}


def fix_sale_dates(target: datetime) -> tuple[int, int]:
    """
    Set every sale date, and the purchase and staged sale date of every sold
    bag, to `target`. Returns (sales_updated, bags_updated).
    """
    with atomic():
        sales = db.session.query(Sale).update({Sale.sale_date: target}, synchronize_session=False)
        bags = (
            db.session.query(Bag)
            .filter(Bag.status == SOLD_STATUS)
            .update({Bag.purchase_date: target, Bag.sale_date: target}, synchronize_session=False)
        )
    return sales, bags
