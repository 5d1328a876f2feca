"""Flask CLI command tests."""

from datetime import datetime

from openpyxl import Workbook

from moncoeur.extensions import db
from moncoeur.models import Bag, BankAccount, Sale, User


class TestSystemCommands:

    def test_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0, result.output
        assert "PASS Created user: nadia@moncoeur.app" in result.output
        assert db_session.query(User).count() == 3
        assert db_session.query(BankAccount).count() == 4
        assert db_session.query(User).filter_by(email="jeannette@moncoeur.app").one().role == "seller"

        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0
        assert "Nothing to create" in result.output
        assert db_session.query(User).count() == 3


class TestUserCommands:

    def test_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create",
            "--email", "anna@moncoeur.app",
            "--name", "Anna",
            "--password", "secret1",
            "--role", "admin",
        ])
        assert result.exit_code == 0, result.output
        assert "PASS Created user anna@moncoeur.app" in result.output

        result = runner.invoke(args=["users", "list"])
        assert "anna@moncoeur.app" in result.output
        assert "admin" in result.output

    def test_create_rejects_short_password(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create",
            "--email", "anna@moncoeur.app",
            "--name", "Anna",
            "--password", "abc",
        ])
        assert result.exit_code == 1
        assert "Le mot de passe doit contenir au moins 6 caracteres" in result.output


class TestDataCommands:

    def test_import_excel(self, app, admin_user, tmp_path):
        wb = Workbook()
        ws = wb.active
        ws.title = "Historique"
        ws.append(["Achats libelle", "Prix achats", "Prix vente"])
        ws.append(["Sac Celine Luggage", 400, 650])
        path = tmp_path / "historique.xlsx"
        wb.save(path)

        result = app.test_cli_runner().invoke(args=[
            "data", "import-excel", str(path), "--user-email", "Nadia@moncoeur.app",
        ])
        assert result.exit_code == 0, result.output
        assert "PASS 1 bags, 1 sales, 5 bank accounts created" in result.output
        assert db.session.query(Bag).filter_by(brand="Celine").one().model == "Luggage"

    def test_import_excel_unknown_user(self, app, db_session, tmp_path):
        path = tmp_path / "vide.xlsx"
        Workbook().save(path)
        result = app.test_cli_runner().invoke(args=[
            "data", "import-excel", str(path), "--user-email", "personne@moncoeur.app",
        ])
        assert result.exit_code == 1

    def test_fix_dates(self, app, client, admin_headers, make_bag, bank_account):
        bag = make_bag()
        sale_id = client.post("/api/sales", json={
            "bagId": bag.id,
            "saleDate": "2025-03-10",
            "salePrice": 200,
            "salePlatform": "vinted",
            "bankAccountId": bank_account.id,
        }, headers=admin_headers).json["id"]
        unsold = make_bag()

        result = app.test_cli_runner().invoke(args=["data", "fix-dates", "--date", "2025-12-31", "--yes"])
        assert result.exit_code == 0, result.output
        assert "PASS Updated 1 sales and 1 bags" in result.output

        assert db.session.get(Sale, sale_id).sale_date == datetime(2025, 12, 31)
        assert db.session.get(Bag, bag.id).purchase_date == datetime(2025, 12, 31)
        assert db.session.get(Bag, unsold.id).purchase_date == datetime(2025, 1, 15)


class TestMaintenanceCommands:

    def test_cleanup_sessions(self, app, admin_headers):
        result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-sessions"])
        assert result.exit_code == 0
        assert "PASS Deleted 0 sessions" in result.output


class TestHealth:

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["database"]["status"] == "healthy"
