# Overview: Service-layer operations for user management; encapsulates business logic and database work.

from __future__ import annotations

from ..constants import USER_ROLES
from ..extensions import db
from ..models import Bag, BankAccount, Sale, User
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError, ValidationError, validate_payload
from .auth_service import PasswordValidationError, hash_password, normalize_email
from .concurrency import atomic
from .session_service import revoke_all_user_sessions


USER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"email", "name", "role", "isActive"}),
    required_on_create=("email", "password", "name"),
    choices={"role": tuple(USER_ROLES)},
    messages={
        "email.required": "Email est requis",
        "password.required": "Mot de passe est requis",
        "name.required": "Nom est requis",
        "role.choice": "Role invalide",
    },
)


def _validate_email(email: str) -> str:
    email = normalize_email(email)
    local, _, domain = email.partition("@")
    if not local or "." not in domain or domain.startswith(".") or domain.endswith("."):
        raise ValidationError("Email invalide")
    return email


def _email_taken(email: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _password_hash(password) -> str:
    if not isinstance(password, str):
        raise ValidationError("Mot de passe invalide")
    try:
        return hash_password(password)
    except PasswordValidationError as e:
        raise ValidationError(str(e))


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.name.asc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("Utilisateur non trouve")
    return user


def create_user(payload: dict) -> User:
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
    patch["email"] = _validate_email(patch["email"])
    password_hash = _password_hash(payload.get("password"))

    with atomic():
        if _email_taken(patch["email"]):
            raise ConflictError("Un utilisateur avec cet email existe deja")
        user = User(password_hash=password_hash, **patch)
        db.session.add(user)
    return user


def update_user(user_id: int, payload: dict, acting_user_id: int) -> User:
    """
    Patch a user. A new password is rehashed; changing another user's
    password or deactivating them revokes their sessions. Users cannot
    deactivate themselves.
    """
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
    if "email" in patch:
        patch["email"] = _validate_email(patch["email"])

    password = payload.get("password") if isinstance(payload, dict) else None
    if password:
        patch["password_hash"] = _password_hash(password)

    with atomic():
        user = get_user(user_id)
        if user.id == acting_user_id and patch.get("is_active") is False:
            raise ConflictError("Vous ne pouvez pas desactiver votre propre compte")
        if "email" in patch and _email_taken(patch["email"], exclude_id=user.id):
            raise ConflictError("Un utilisateur avec cet email existe deja")

        for key, value in patch.items():
            setattr(user, key, value)

        if user.id != acting_user_id and ("password_hash" in patch or patch.get("is_active") is False):
            revoke_all_user_sessions(user.id, reason="Account updated", commit=False)
    return user


def delete_user(user_id: int, acting_user_id: int) -> None:
    """Refused for the acting user and for users who created bags or sales."""
    with atomic():
        user = get_user(user_id)
        if user.id == acting_user_id:
            raise ConflictError("Vous ne pouvez pas supprimer votre propre compte")

        bags = db.session.query(Bag).filter_by(created_by_user_id=user.id).count()
        sales = db.session.query(Sale).filter_by(sold_by_user_id=user.id).count()
        if bags or sales:
            raise ConflictError(
                f"Cet utilisateur a cree {bags} sac(s) et {sales} vente(s). "
                "Desactivez-le plutot que de le supprimer."
            )
        db.session.query(BankAccount).filter_by(created_by_user_id=user.id).update(
            {"created_by_user_id": None}, synchronize_session=False
        )
        db.session.delete(user)
