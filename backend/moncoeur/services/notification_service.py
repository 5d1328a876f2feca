# Overview: Admin e-mail notifications through the ZeptoMail HTTP API.

from __future__ import annotations

import html
import logging
import re

import httpx
from flask import current_app

from ..extensions import db
from ..models import Bag, Sale, User

logger = logging.getLogger(__name__)

FROM_NAME = "MonCoeur"
REQUEST_TIMEOUT = 10.0

_TAG_RE = re.compile(r"<[^>]*>")


def format_eur(amount: float | None) -> str:
    """1234.5 -> '1 234,50 EUR'"""
    value = f"{amount or 0:,.2f}"
    return value.replace(",", " ").replace(".", ",") + " EUR"


def strip_html(body: str) -> str:
    text = re.sub(r"<br\s*/?>", "\n", body, flags=re.IGNORECASE)
    text = re.sub(r"</p>", "\n\n", text, flags=re.IGNORECASE)
    text = _TAG_RE.sub("", text)
    return html.unescape(text).strip()


def send_email(to: list[str], subject: str, html_body: str, text_body: str | None = None) -> bool:
    """
    POST one message to ZeptoMail. Returns False (never raises) when the API
    key is missing or the provider rejects the request.
    """
    api_key = current_app.config.get("ZEPTOMAIL_API_KEY")
    if not api_key:
        logger.warning("ZeptoMail API key not configured, skipping email")
        return False
    if not to:
        return False

    payload = {
        "from": {
            "address": current_app.config["ZEPTOMAIL_FROM_EMAIL"],
            "name": FROM_NAME,
        },
        "to": [{"email_address": {"address": address}} for address in to],
        "subject": subject,
        "htmlbody": html_body,
        "textbody": text_body or strip_html(html_body),
    }
    headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "Authorization": api_key,
    }

    try:
        response = httpx.post(
            current_app.config["ZEPTOMAIL_API_URL"],
            json=payload,
            headers=headers,
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
    except (httpx.RequestError, httpx.HTTPStatusError) as e:
        logger.error(f"ZeptoMail error: {e}")
        return False
    return True


def admin_emails() -> list[str]:
    rows = (
        db.session.query(User.email)
        .filter(User.role == "admin", User.is_active.is_(True))
        .all()
    )
    return [email for (email,) in rows]


def _layout(title: str, intro: str, rows: list[tuple[str, str]], background: str = "#fdf2f8") -> str:
    cells = "".join(
        f'<tr><td style="padding: 8px;"><strong>{html.escape(label)}</strong></td>'
        f'<td style="padding: 8px;">{html.escape(value)}</td></tr>'
        for label, value in rows
    )
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<div style="background-color: #f472b6; padding: 20px; text-align: center;">'
        '<h1 style="color: white; margin: 0;">MonCoeur</h1></div>'
        f'<div style="padding: 20px; background-color: {background};">'
        f"<h2>{html.escape(title)}</h2><p>{intro}</p>"
        f'<table style="width: 100%; border-collapse: collapse;">{cells}</table></div>'
        '<div style="padding: 20px; text-align: center; color: #9ca3af; font-size: 12px;">'
        "<p>Cet email a ete envoye automatiquement par MonCoeur.</p></div></div>"
    )


def new_bag_email(bag: Bag, created_by_name: str) -> tuple[str, str]:
    subject = f"[MonCoeur] Nouveau sac enregistre: {bag.brand} {bag.model}"
    body = _layout(
        "Nouveau sac enregistre",
        f"Un nouveau sac a ete ajoute au stock par <strong>{html.escape(created_by_name)}</strong>.",
        [
            ("Reference", bag.reference),
            ("Marque", bag.brand),
            ("Modele", bag.model),
            ("Prix d'achat", format_eur(bag.purchase_price)),
        ],
    )
    return subject, body


def sale_email(sale: Sale, sold_by_name: str) -> tuple[str, str]:
    bag = sale.bag
    subject = (
        f"[MonCoeur] Vente realisee: {bag.brand} {bag.model} - Marge: {format_eur(sale.margin)}"
    )
    body = _layout(
        "Vente realisee",
        f"Une vente a ete enregistree par <strong>{html.escape(sold_by_name)}</strong>.",
        [
            ("Reference", bag.reference),
            ("Sac", f"{bag.brand} - {bag.model}"),
            ("Prix de vente", format_eur(sale.sale_price)),
            ("Marge", f"{format_eur(sale.margin)} ({sale.margin_percent:.1f}%)"),
        ],
        background="#f0fdf4",
    )
    return subject, body


def notify_new_bag(bag: Bag, created_by: User) -> bool:
    """Best effort: failures are logged and reported as False."""
    try:
        subject, body = new_bag_email(bag, created_by.name or "Utilisateur")
        return send_email(admin_emails(), subject, body)
    except Exception:
        current_app.logger.exception("Failed to send new bag notification")
        return False


def notify_sale(sale: Sale, sold_by: User) -> bool:
    """Best effort: failures are logged and reported as False."""
    try:
        subject, body = sale_email(sale, sold_by.name or "Utilisateur")
        return send_email(admin_emails(), subject, body)
    except Exception:
        current_app.logger.exception("Failed to send sale notification")
        return False
