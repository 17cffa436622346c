import pytest

from product_service import create_app, db

TEST_CONFIG = {
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'TESTING': True,
    'LOG_LEVEL': 'DEBUG',
    'DB_CONNECT_RETRIES': 1,
    'DB_CONNECT_DELAY': 0,
}


@pytest.fixture
def app_config():
    return dict(TEST_CONFIG)


@pytest.fixture
def app(app_config):
    """Application bound to a fresh in-memory SQLite database."""
    app = create_app(app_config)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions['product_store']
