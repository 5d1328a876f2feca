# Overview: Local storage of bag photos under the configured upload folder.

from __future__ import annotations

import secrets
import string
import time
from pathlib import Path
from urllib.parse import urlparse

from flask import current_app
from werkzeug.datastructures import FileStorage

from ..validation import NotFoundError, ValidationError


ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}

URL_PREFIX = "/uploads/"
SUBFOLDER = "bags"

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def upload_root() -> Path:
    root = Path(current_app.config["UPLOAD_FOLDER"])
    if not root.is_absolute():
        root = Path(current_app.root_path).parent / root
    return root


def _size(file: FileStorage) -> int:
    stream = file.stream
    position = stream.tell()
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(position)
    return size


def save_upload(file: FileStorage | None) -> dict:
    """
    Store an image as bags/{timestamp}-{random}.{ext}.

    Returns {"url", "filename"}; raises ValidationError for a missing file,
    a disallowed type or a file above MAX_UPLOAD_BYTES.
    """
    if file is None or not file.filename:
        raise ValidationError("Aucun fichier fourni")

    if file.mimetype not in ALLOWED_CONTENT_TYPES:
        raise ValidationError("Type de fichier non autorise. Utilisez JPG, PNG, WebP ou GIF.")

    max_bytes = current_app.config["MAX_UPLOAD_BYTES"]
    if _size(file) > max_bytes:
        raise ValidationError(f"Fichier trop volumineux. Maximum {max_bytes // (1024 * 1024)}MB.")

    random_part = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(6))
    extension = ALLOWED_CONTENT_TYPES[file.mimetype]
    filename = f"{SUBFOLDER}/{int(time.time() * 1000)}-{random_part}.{extension}"

    destination = upload_root() / filename
    destination.parent.mkdir(parents=True, exist_ok=True)
    file.save(destination)

    return {"url": f"{URL_PREFIX}{filename}", "filename": filename}


def resolve_upload_path(url: str) -> Path:
    """Map a /uploads/... URL (absolute or relative) to a file inside the upload root."""
    path = urlparse(url).path
    if not path.startswith(URL_PREFIX):
        raise ValidationError("URL du fichier invalide")

    root = upload_root().resolve()
    target = (root / path[len(URL_PREFIX):]).resolve()
    if root not in target.parents:
        raise ValidationError("URL du fichier invalide")
    return target


def delete_upload(url: str | None) -> None:
    if not url:
        raise ValidationError("URL du fichier manquante")
    target = resolve_upload_path(url)
    if not target.is_file():
        raise NotFoundError("Fichier non trouve")
    target.unlink()
