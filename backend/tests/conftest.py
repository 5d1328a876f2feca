"""
Pytest fixtures for MonCoeur backend tests.

Provides an in-memory database, the test client, admin/seller accounts with
ready-made bearer headers, a bank account and a bag factory.
"""

import pytest
from moncoeur import create_app
from moncoeur.extensions import db
from moncoeur.models import BankAccount, User
from moncoeur.services.auth_service import hash_password
from moncoeur.services.bag_service import create_bag
from moncoeur.services.session_service import create_session


ADMIN_PASSWORD = "nadia123"
SELLER_PASSWORD = "jeannette123"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp('uploads')),
        'ZEPTOMAIL_API_KEY': None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='session')
def password_hashes():
    """bcrypt is slow on purpose; hash the fixture passwords once."""
    return {
        ADMIN_PASSWORD: hash_password(ADMIN_PASSWORD),
        SELLER_PASSWORD: hash_password(SELLER_PASSWORD),
    }


@pytest.fixture(scope='function')
def admin_user(db_session, password_hashes):
    user = User(
        email="nadia@moncoeur.app",
        name="Nadia",
        role="admin",
        password_hash=password_hashes[ADMIN_PASSWORD],
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def seller_user(db_session, password_hashes):
    user = User(
        email="jeannette@moncoeur.app",
        name="Jeannette",
        role="seller",
        password_hash=password_hashes[SELLER_PASSWORD],
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    _, token = create_session(admin_user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def seller_headers(seller_user):
    _, token = create_session(seller_user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def bank_account(db_session, admin_user):
    account = BankAccount(label="Beatrice", is_active=True, created_by_user_id=admin_user.id)
    db_session.add(account)
    db_session.commit()
    return account


@pytest.fixture(scope='function')
def bag_payload(bank_account):
    """Build a valid camelCase bag body; keyword overrides win."""
    def _payload(**overrides):
        payload = {
            "brand": "Louis Vuitton",
            "model": "Neverfull",
            "description": "Sac Louis Vuitton Neverfull MM monogramme",
            "condition": "tres_bon",
            "purchaseDate": "2025-01-15",
            "purchasePrice": 100,
            "purchasePlatform": "vinted",
            "purchaseBankAccountId": bank_account.id,
            "refurbishmentCost": 20,
        }
        payload.update(overrides)
        return payload
    return _payload


@pytest.fixture(scope='function')
def make_bag(admin_user, bag_payload):
    """Create a bag through the service layer."""
    def _make(**overrides):
        bag, _ = create_bag(bag_payload(**overrides), admin_user.id)
        return bag
    return _make


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
