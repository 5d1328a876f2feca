"""Bank account tests: admin-only mutations, unique labels, guarded deletion."""

from moncoeur.extensions import db
from moncoeur.models import BankAccount


class TestBankAccounts:

    def test_create(self, client, admin_headers, admin_user):
        resp = client.post(
            "/api/bank-accounts",
            json={"label": "  Tiziana ", "description": "Compte de Tiziana"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["label"] == "Tiziana"
        assert resp.json["isActive"] is True
        assert resp.json["createdBy"] == {"id": admin_user.id, "name": "Nadia"}

    def test_label_required(self, client, admin_headers):
        resp = client.post("/api/bank-accounts", json={"label": ""}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Libelle est requis"

    def test_duplicate_label_case_insensitive(self, client, admin_headers, bank_account):
        resp = client.post("/api/bank-accounts", json={"label": "BEATRICE"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Un compte avec ce libelle existe deja"

    def test_list_sorted_and_active_filter(self, client, admin_headers, bank_account):
        client.post("/api/bank-accounts", json={"label": "Zeta", "isActive": False}, headers=admin_headers)
        client.post("/api/bank-accounts", json={"label": "Alpha"}, headers=admin_headers)

        resp = client.get("/api/bank-accounts", headers=admin_headers)
        assert [a["label"] for a in resp.json] == ["Alpha", "Beatrice", "Zeta"]

        resp = client.get("/api/bank-accounts?active=1", headers=admin_headers)
        assert [a["label"] for a in resp.json] == ["Alpha", "Beatrice"]

    def test_update(self, client, admin_headers, bank_account):
        resp = client.put(
            f"/api/bank-accounts/{bank_account.id}",
            json={"isActive": False, "description": "Ferme"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json["isActive"] is False
        assert resp.json["description"] == "Ferme"

    def test_rename_to_existing_label(self, client, admin_headers, bank_account):
        other = client.post("/api/bank-accounts", json={"label": "Goergio"}, headers=admin_headers).json
        resp = client.put(f"/api/bank-accounts/{other['id']}", json={"label": "beatrice"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_delete_unused(self, client, admin_headers, bank_account):
        resp = client.delete(f"/api/bank-accounts/{bank_account.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert db.session.get(BankAccount, bank_account.id) is None

    def test_delete_used_account_is_refused(self, client, admin_headers, make_bag, bank_account):
        make_bag()
        sold = make_bag()
        sale = client.post("/api/sales", json={
            "bagId": sold.id,
            "saleDate": "2025-03-10",
            "salePrice": 200,
            "salePlatform": "vinted",
            "bankAccountId": bank_account.id,
        }, headers=admin_headers)
        assert sale.status_code == 201

        resp = client.delete(f"/api/bank-accounts/{bank_account.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == (
            "Ce compte est utilise dans 2 sac(s) et 1 vente(s). Impossible de le supprimer."
        )

    def test_missing_account(self, client, admin_headers):
        assert client.get("/api/bank-accounts/9999", headers=admin_headers).status_code == 404
        assert client.delete("/api/bank-accounts/9999", headers=admin_headers).status_code == 404
