# backend/moncoeur/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/moncoeur.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///moncoeur.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Local image storage, served back under /uploads/<path>
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", "static/uploads")
    MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))

    # Base URL encoded in bag QR codes ("{PUBLIC_BASE_URL}/stock/{id}")
    PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "http://localhost:3000")

    # Transactional e-mail (ZeptoMail). No key means notifications are skipped.
    ZEPTOMAIL_API_KEY = os.environ.get("ZEPTOMAIL_API_KEY")
    ZEPTOMAIL_FROM_EMAIL = os.environ.get("ZEPTOMAIL_FROM_EMAIL", "noreply@moncoeur.app")
    ZEPTOMAIL_API_URL = os.environ.get("ZEPTOMAIL_API_URL", "https://api.zeptomail.eu/v1.1/email")

    # Workbook sheets imported as sold bags, one bank account per sheet
    IMPORT_SELLER_SHEETS = [
        s.strip()
        for s in os.environ.get("IMPORT_SELLER_SHEETS", "Beatrice,Tiziana,Goergio,Jenacha").split(",")
        if s.strip()
    ]

    CORS_ALLOWED_ORIGINS = {
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    }
