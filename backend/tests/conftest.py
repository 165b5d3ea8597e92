"""
Pytest fixtures for stockyard backend tests.

Provides an in-memory database, seeded locations, a sample item and a
test client.
"""

import pytest

from stockyard import create_app
from stockyard.extensions import db
from stockyard.services import catalog_service, project_service, stock_service
from stockyard.services.concurrency import run_in_transaction
from stockyard.workflow import HUB_FARM, HUB_MKE, HUB_TRANSIT, TRANSIT_LOCATION_ID, ZONE_VIRTUAL


ACTOR = "tester@example.com"
SKU = "CDR-2x6x12"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'NOTIFICATIONS_ENABLED': 'false',
        'MAIL_SMTP_HOST': '',
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


@pytest.fixture(scope='function')
def actor():
    return ACTOR


@pytest.fixture(scope='function')
def locations(db_session):
    """Two Farm zones, one MKE zone and the virtual TRANSIT zone."""
    catalog_service.create_location("FARM-WS", "Farm Woodshop", HUB_FARM)
    catalog_service.create_location("FARM-YARD", "Farm Yard", HUB_FARM)
    catalog_service.create_location("MKE-SHOP", "MKE Shop", HUB_MKE)
    catalog_service.create_location(TRANSIT_LOCATION_ID, "In Transit", HUB_TRANSIT, zone_type=ZONE_VIRTUAL)
    return ["FARM-WS", "FARM-YARD", "MKE-SHOP", TRANSIT_LOCATION_ID]


@pytest.fixture(scope='function')
def item(db_session, locations, actor):
    """Cedar 2x6 12ft with a Farm par of 50 and no MKE par."""
    return catalog_service.create_item(actor, {
        "sku": SKU,
        "description": "Cedar 2x6 12ft",
        "category": "Lumber",
        "species": "Cedar",
        "farm_par_level": 50,
        "mke_par_level": 0,
    })


@pytest.fixture(scope='function')
def put_stock(db_session):
    """Write a ledger row directly, without an audit entry."""
    def _put(sku, location_id, quantity):
        return run_in_transaction(lambda: stock_service.set_quantity(sku, location_id, quantity))
    return _put


@pytest.fixture(scope='function')
def stocked_item(item, put_stock):
    """The sample item with 100 units at FARM-WS."""
    put_stock(SKU, "FARM-WS", 100)
    return item


@pytest.fixture(scope='function')
def project(db_session, actor):
    return project_service.create_project(actor, {
        "project_name": "Cedar pergola",
        "client": "Lakeview Homes",
        "assigned_hub": HUB_FARM,
    })


def actor_headers(email: str = ACTOR) -> dict:
    """Helper to create the upstream identity header."""
    return {'X-Authenticated-Email': email}
