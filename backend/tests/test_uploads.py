"""Photo upload tests (local storage under UPLOAD_FOLDER)."""

from io import BytesIO
from pathlib import Path

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _upload(client, headers, data=PNG_BYTES, filename="photo.png", content_type="image/png"):
    return client.post(
        "/api/upload",
        data={"file": (BytesIO(data), filename, content_type)},
        content_type="multipart/form-data",
        headers=headers,
    )


class TestUploads:

    def test_upload_serve_delete(self, app, client, seller_headers):
        resp = _upload(client, seller_headers)
        assert resp.status_code == 200

        url = resp.json["url"]
        assert url.startswith("/uploads/bags/")
        assert url.endswith(".png")
        assert resp.json["filename"] == url[len("/uploads/"):]
        assert (Path(app.config["UPLOAD_FOLDER"]) / resp.json["filename"]).is_file()

        served = client.get(url)
        assert served.status_code == 200
        assert served.data == PNG_BYTES
        served.close()

        resp = client.delete("/api/upload", query_string={"url": url}, headers=seller_headers)
        assert resp.status_code == 200
        assert not (Path(app.config["UPLOAD_FOLDER"]) / url[len("/uploads/"):]).exists()

        resp = client.delete("/api/upload", query_string={"url": url}, headers=seller_headers)
        assert resp.status_code == 404
        assert resp.json["error"] == "Fichier non trouve"

    def test_absolute_url_delete(self, client, seller_headers):
        url = _upload(client, seller_headers).json["url"]
        resp = client.delete(
            "/api/upload",
            query_string={"url": f"http://localhost:3000{url}"},
            headers=seller_headers,
        )
        assert resp.status_code == 200

    def test_missing_file(self, client, seller_headers):
        resp = client.post("/api/upload", data={}, content_type="multipart/form-data", headers=seller_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Aucun fichier fourni"

    def test_rejects_other_types(self, client, seller_headers):
        resp = _upload(client, seller_headers, data=b"hello", filename="notes.txt", content_type="text/plain")
        assert resp.status_code == 400

    def test_rejects_large_files(self, app, client, seller_headers, monkeypatch):
        monkeypatch.setitem(app.config, "MAX_UPLOAD_BYTES", 1024 * 1024)
        resp = _upload(client, seller_headers, data=b"\x00" * (1024 * 1024 + 1))
        assert resp.status_code == 400
        assert resp.json["error"] == "Fichier trop volumineux. Maximum 1MB."

    def test_delete_requires_url(self, client, seller_headers):
        resp = client.delete("/api/upload", headers=seller_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "URL du fichier manquante"

    def test_delete_outside_upload_folder(self, client, seller_headers):
        resp = client.delete("/api/upload", query_string={"url": "/uploads/../config.py"}, headers=seller_headers)
        assert resp.status_code == 400

    def test_extension_follows_content_type(self, app, client, seller_headers):
        resp = _upload(client, seller_headers, data=b"<script>alert(1)</script>", filename="x.html")
        assert resp.status_code == 200
        assert resp.json["url"].endswith(".png")
        assert not list(Path(app.config["UPLOAD_FOLDER"]).rglob("*.html"))

    def test_only_image_files_are_served(self, app, client, db_session):
        page = Path(app.config["UPLOAD_FOLDER"]) / "bags" / "page.html"
        page.parent.mkdir(parents=True, exist_ok=True)
        page.write_text("<html></html>")

        resp = client.get("/uploads/bags/page.html")
        assert resp.status_code == 404
