# tests/conftest.py
"""
Pytest fixtures for Siteledger tests.

Engines are built with a FixedClock so ages, journal dates and snapshot
dates are deterministic. The seeded chart is the default chart of accounts.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from accounting.chart import seed_chart
from accounting.clock import FixedClock
from accounting.ledger import LedgerEngine
from projects.models import Billing, Client, Project, ProjectCost
from projects.transitions import StatusTransitionMachine
from wip.engine import WipEngine


User = get_user_model()

TODAY = date(2025, 6, 30)


# =============================================================================
# Clock & Engines
# =============================================================================

@pytest.fixture
def fixed_clock():
    return FixedClock(TODAY)


@pytest.fixture
def ledger(fixed_clock):
    return LedgerEngine(clock=fixed_clock)


@pytest.fixture
def machine(ledger):
    return StatusTransitionMachine(ledger=ledger)


@pytest.fixture
def engine(ledger):
    return WipEngine(ledger=ledger)


# =============================================================================
# Chart, Users & Clients
# =============================================================================

@pytest.fixture
def chart(db):
    """Seed the default chart of accounts."""
    seed_chart()


@pytest.fixture
def user(db):
    return User.objects.create_user(
        username="finance",
        email="finance@example.com",
        password="testpass123",
    )


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def client_record(db):
    """A project client (named to avoid clashing with pytest-django's client)."""
    return Client.objects.create(name="PT Tanah Keras", email="ops@tanahkeras.example")


# =============================================================================
# Projects & Billable Events
# =============================================================================

@pytest.fixture
def make_project(db, client_record):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        values = {
            "code": f"PRJ-{counter['n']:03d}",
            "name": f"Soil investigation {counter['n']}",
            "client": client_record,
            "start_date": TODAY - timedelta(days=45),
            "total_value": Decimal("1000000.00"),
            "status": Project.Status.ONGOING,
        }
        values.update(overrides)
        return Project.objects.create(**values)

    return _make


@pytest.fixture
def project(make_project):
    return make_project()


@pytest.fixture
def make_billing(project):
    def _make(amount="300000.00", target=None, **overrides):
        values = {
            "project": target or project,
            "amount": Decimal(amount),
            "category": "boring",
            "date": TODAY,
            "invoice_number": "INV-001",
        }
        values.update(overrides)
        return Billing.objects.create(**values)

    return _make


@pytest.fixture
def make_cost(project):
    def _make(amount="350000.00", target=None, **overrides):
        values = {
            "project": target or project,
            "amount": Decimal(amount),
            "category": ProjectCost.Category.MATERIAL,
            "date": TODAY,
        }
        values.update(overrides)
        return ProjectCost.objects.create(**values)

    return _make


@pytest.fixture
def billing(chart, make_billing):
    return make_billing()


@pytest.fixture
def cost(chart, make_cost):
    return make_cost()
