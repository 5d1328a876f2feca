from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .time_utils import parse_iso_datetime


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """Business rule conflict (double sale, referenced account, duplicate label...)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class NotFoundError(LookupError):
    """Referenced record does not exist."""


_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def to_attribute(wire_key: str) -> str:
    """purchaseBankAccountId -> purchase_bank_account_id"""
    return _CAMEL_RE.sub("_", wire_key).lower()


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: camelCase keys clients are allowed to set (security boundary)
    - required_on_create: keys required for POST, checked in order
    - choices: allowed values for enum-like string columns
    - non_negative: numeric keys that must be >= 0
    - messages: per-key overrides, "<key>.required" / "<key>.min" / "<key>.choice"
    """
    writable_fields: frozenset[str]
    required_on_create: tuple[str, ...] = ()
    choices: dict[str, tuple[str, ...]] = field(default_factory=dict)
    non_negative: frozenset[str] = frozenset()
    messages: dict[str, str] = field(default_factory=dict)

    def message(self, key: str, kind: str, default: str) -> str:
        return self.messages.get(f"{key}.{kind}", default)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def parse_amount(value: Any, key: str) -> float:
    """Accept ints, floats and numeric strings (comma or dot decimal separator)."""
    if isinstance(value, bool):
        raise ValidationError(f"{key} doit etre un nombre")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        stripped = value.strip().replace("€", "").replace(" ", "").replace(" ", "").replace(",", ".")
        if not stripped:
            raise ValidationError(f"{key} doit etre un nombre")
        try:
            return float(stripped)
        except ValueError:
            raise ValidationError(f"{key} doit etre un nombre")
    raise ValidationError(f"{key} doit etre un nombre")


def _coerce_value(col, key: str, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers (ids): reject floats, booleans and decimal strings
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.isdigit():
                return int(stripped)
        raise ValidationError(f"{key} invalide")

    if isinstance(coltype, Float):
        return parse_amount(value, key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{key} doit etre une date ISO-8601")
            if dt is None:
                raise ValidationError(f"{key} doit etre une date ISO-8601")
            return dt
        raise ValidationError(f"{key} doit etre une date")

    if isinstance(coltype, JSON):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValidationError(f"{key} doit etre une liste")
        return list(value)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes an incoming camelCase JSON body against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - the policy allowlist, enum choices and non-negative amounts
    - required_on_create (if partial=False)

    Returns a patch dict keyed by model attribute names. Unknown keys are
    ignored; the first violated field raises ValidationError.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Corps JSON invalide")

    if not partial:
        for key in policy.required_on_create:
            raw = payload.get(key)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                raise ValidationError(policy.message(key, "required", f"{key} est requis"))

    cols = _columns_by_key(model)
    patch: dict = {}

    for key, raw in payload.items():
        if key not in policy.writable_fields:
            continue
        attr = to_attribute(key)
        col = cols.get(attr)
        if col is None:
            continue

        if raw is None or (isinstance(raw, str) and not raw.strip()):
            if not col.nullable:
                raise ValidationError(policy.message(key, "required", f"{key} est requis"))
            patch[attr] = None
            continue

        val = _coerce_value(col, key, raw)

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{key} depasse {col.type.length} caracteres")

        if key in policy.choices and val is not None and val not in policy.choices[key]:
            raise ValidationError(policy.message(key, "choice", f"{key} invalide"))

        if key in policy.non_negative and val is not None and val < 0:
            raise ValidationError(policy.message(key, "min", f"{key} ne peut pas etre negatif"))

        patch[attr] = val

    return patch
