"""CSV export tests."""

from moncoeur.services.export_service import SALES_HEADERS, STOCK_HEADERS, render_csv


class TestCsvHelpers:

    def test_render_csv(self):
        assert render_csv(["A", "B"], [[1, None], ["x;y", 2.5]]) == 'A;B\n1;\n"x;y";2.5\n'

    def test_quoting(self):
        text = render_csv(["Description"], [["simple"], ['dit "neuf"'], ["ligne\nsuivante"]])
        assert text == 'Description\nsimple\n"dit ""neuf"""\n"ligne\nsuivante"\n'


class TestExportRoute:

    def test_sales_export(self, client, admin_headers, make_bag, bank_account):
        bag = make_bag()
        client.post("/api/sales", json={
            "bagId": bag.id,
            "saleDate": "2025-03-10",
            "salePrice": 200,
            "salePlatform": "vinted",
            "platformFees": 10,
            "shippingCost": 5,
            "bankAccountId": bank_account.id,
        }, headers=admin_headers)

        resp = client.get("/api/export?type=sales&format=csv", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.content_type == "text/csv; charset=utf-8"
        assert 'filename="ventes_export_' in resp.headers["Content-Disposition"]

        lines = resp.get_data(as_text=True).split("\n")
        assert lines[0] == ";".join(SALES_HEADERS)
        assert lines[1] == (
            f"10/03/2025;{bag.reference};Louis Vuitton;Neverfull;100;20;200;10;5;65;54.2%;vinted;Beatrice;Nadia"
        )

    def test_sales_is_default_type(self, client, admin_headers, db_session):
        resp = client.get("/api/export", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_data(as_text=True) == ";".join(SALES_HEADERS) + "\n"

    def test_stock_export(self, client, seller_headers, make_bag):
        bag = make_bag(description="Sac LV; bandouliere \"cuir\"")

        resp = client.get("/api/export?type=stock", headers=seller_headers)
        assert resp.status_code == 200
        assert 'filename="stock_export_' in resp.headers["Content-Disposition"]

        lines = resp.get_data(as_text=True).split("\n")
        assert lines[0] == ";".join(STOCK_HEADERS)
        assert lines[1] == (
            f'{bag.reference};Louis Vuitton;Neverfull;"Sac LV; bandouliere ""cuir""";;;tres_bon;'
            "15/01/2025;100;vinted;20;;en_commande;Beatrice;Nadia"
        )

    def test_invalid_type(self, client, admin_headers):
        resp = client.get("/api/export?type=clients", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Type invalide"

    def test_unsupported_format(self, client, admin_headers):
        resp = client.get("/api/export?type=sales&format=xlsx", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Format non supporte"
