"""
Sales tests.

Verifies margin computation, the one-sale-per-bag rule, admin-only deletion
(which puts the bag back on sale) and list filters.
"""

import pytest

from moncoeur.extensions import db
from moncoeur.models import Bag, Sale
from moncoeur.services.sales_service import compute_margin


def _sale_body(bag, bank_account, **overrides):
    body = {
        "bagId": bag.id,
        "saleDate": "2025-03-10",
        "salePrice": 200,
        "salePlatform": "vinted",
        "platformFees": 10,
        "shippingCost": 5,
        "bankAccountId": bank_account.id,
    }
    body.update(overrides)
    return body


class TestComputeMargin:

    def test_reference_scenario(self):
        assert compute_margin(100, 20, 200, 10, 5) == (65, 54.17)

    def test_zero_cost_has_zero_percent(self):
        assert compute_margin(0, 0, 50) == (50, 0)

    def test_loss(self):
        margin, percent = compute_margin(100, 0, 80)
        assert margin == -20
        assert percent == -20

    def test_missing_values_count_as_zero(self):
        assert compute_margin(None, None, 100, None, None) == (100, 0)


class TestCreateSale:

    def test_create_sale(self, client, seller_headers, make_bag, bank_account):
        bag = make_bag(status="en_vente")
        resp = client.post("/api/sales", json=_sale_body(bag, bank_account), headers=seller_headers)
        assert resp.status_code == 201

        body = resp.json
        assert body["margin"] == 65
        assert body["marginPercent"] == 54.17
        assert body["bag"]["reference"] == bag.reference
        assert body["bankAccount"]["label"] == "Beatrice"
        assert body["soldBy"]["name"] == "Jeannette"
        assert body["saleDate"] == "2025-03-10T00:00:00Z"

        assert db.session.get(Bag, bag.id).status == "vendu"

    def test_cannot_sell_twice(self, client, admin_headers, make_bag, bank_account):
        bag = make_bag(status="en_vente")
        assert client.post("/api/sales", json=_sale_body(bag, bank_account), headers=admin_headers).status_code == 201

        resp = client.post("/api/sales", json=_sale_body(bag, bank_account), headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Ce sac a deja ete vendu"
        assert resp.json["details"] == {"bag_id": bag.id}
        assert db.session.query(Sale).count() == 1

    def test_existing_sale_blocks_new_sale(self, client, admin_headers, make_bag, bank_account, db_session):
        bag = make_bag(status="vendu", salePrice=200, salePlatform="vinted")
        # Status edited out of band while the sale row stayed
        db_session.get(Bag, bag.id).status = "en_vente"
        db_session.commit()

        resp = client.post("/api/sales", json=_sale_body(bag, bank_account), headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Une vente existe deja pour ce sac"
        assert resp.json["details"] == {"bag_id": bag.id}
        assert db.session.query(Sale).count() == 1

    def test_missing_bag_id(self, client, admin_headers, bank_account):
        body = {"saleDate": "2025-03-10", "salePrice": 200, "salePlatform": "vinted", "bankAccountId": bank_account.id}
        resp = client.post("/api/sales", json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Sac est requis"

    def test_unknown_bag(self, client, admin_headers, bank_account, make_bag):
        bag = make_bag()
        resp = client.post("/api/sales", json=_sale_body(bag, bank_account, bagId=9999), headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json["error"] == "Sac non trouve"

    def test_unknown_bank_account(self, client, admin_headers, make_bag, bank_account):
        bag = make_bag()
        resp = client.post("/api/sales", json=_sale_body(bag, bank_account, bankAccountId=9999), headers=admin_headers)
        assert resp.status_code == 404
        assert db.session.get(Bag, bag.id).status == "en_commande"

    @pytest.mark.parametrize("field", ["salePrice", "platformFees", "shippingCost"])
    def test_negative_amounts(self, client, admin_headers, make_bag, bank_account, field):
        bag = make_bag()
        resp = client.post("/api/sales", json=_sale_body(bag, bank_account, **{field: -1}), headers=admin_headers)
        assert resp.status_code == 400

    def test_invalid_platform(self, client, admin_headers, make_bag, bank_account):
        bag = make_bag()
        resp = client.post("/api/sales", json=_sale_body(bag, bank_account, salePlatform="ebay"), headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Plateforme de vente invalide"


class TestDeleteSale:

    def test_seller_cannot_delete(self, client, seller_headers, make_bag, bank_account):
        bag = make_bag()
        sale_id = client.post("/api/sales", json=_sale_body(bag, bank_account), headers=seller_headers).json["id"]

        resp = client.delete(f"/api/sales/{sale_id}", headers=seller_headers)
        assert resp.status_code == 403

    def test_admin_delete_relists_bag(self, client, admin_headers, make_bag, bank_account):
        bag = make_bag()
        sale_id = client.post("/api/sales", json=_sale_body(bag, bank_account), headers=admin_headers).json["id"]

        resp = client.delete(f"/api/sales/{sale_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert db.session.get(Sale, sale_id) is None
        assert db.session.get(Bag, bag.id).status == "en_vente"

        # The bag can be sold again
        resp = client.post("/api/sales", json=_sale_body(bag, bank_account), headers=admin_headers)
        assert resp.status_code == 201

    def test_delete_missing_sale(self, client, admin_headers):
        resp = client.delete("/api/sales/9999", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json["error"] == "Vente non trouvee"


class TestListSales:

    def _sell(self, client, headers, make_bag, bank_account, **overrides):
        bag = make_bag(brand=overrides.pop("brand", "Louis Vuitton"))
        resp = client.post("/api/sales", json=_sale_body(bag, bank_account, **overrides), headers=headers)
        assert resp.status_code == 201
        return resp.json

    def test_newest_first(self, client, admin_headers, make_bag, bank_account):
        self._sell(client, admin_headers, make_bag, bank_account, saleDate="2025-01-05")
        self._sell(client, admin_headers, make_bag, bank_account, saleDate="2025-03-05")

        resp = client.get("/api/sales", headers=admin_headers)
        dates = [s["saleDate"] for s in resp.json["sales"]]
        assert dates == ["2025-03-05T00:00:00Z", "2025-01-05T00:00:00Z"]
        assert resp.json["pagination"]["total"] == 2

    def test_filters(self, client, admin_headers, make_bag, bank_account):
        self._sell(client, admin_headers, make_bag, bank_account, saleDate="2025-01-05", salePlatform="leboncoin")
        self._sell(client, admin_headers, make_bag, bank_account, saleDate="2025-03-05T15:30:00", brand="Chanel")

        resp = client.get("/api/sales?platform=leboncoin", headers=admin_headers)
        assert [s["salePlatform"] for s in resp.json["sales"]] == ["leboncoin"]

        resp = client.get("/api/sales?brand=Chanel", headers=admin_headers)
        assert [s["bag"]["brand"] for s in resp.json["sales"]] == ["Chanel"]

        # endDate covers the whole day
        resp = client.get("/api/sales?startDate=2025-03-01&endDate=2025-03-05", headers=admin_headers)
        assert resp.json["pagination"]["total"] == 1

        resp = client.get(f"/api/sales?bankAccountId={bank_account.id}", headers=admin_headers)
        assert resp.json["pagination"]["total"] == 2

    def test_invalid_date_filter(self, client, admin_headers, db_session):
        resp = client.get("/api/sales?startDate=demain", headers=admin_headers)
        assert resp.status_code == 400

    def test_get_sale(self, client, admin_headers, make_bag, bank_account):
        sale = self._sell(client, admin_headers, make_bag, bank_account)
        resp = client.get(f"/api/sales/{sale['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["margin"] == 65
