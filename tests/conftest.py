"""Shared fixtures. No test touches the network or the real data directory."""

import pytest

from rateease.models import DEFAULT_ADMIN, Bop, Property, User, UserRole
from rateease.services.storage import MemoryStorage


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def admin():
    return DEFAULT_ADMIN.model_copy()


@pytest.fixture
def clerk():
    return User(
        id="user-clerk",
        name="Data Clerk",
        email="clerk@rateease.gov",
        role=UserRole.DATA_ENTRY,
        password="secret1",
    )


@pytest.fixture
def overdue_property():
    return Property.model_validate({
        "id": "prop-1",
        "Owner Name": "Kwame Mensah",
        "Phone Number": "0241234567",
        "Town": "Ho",
        "Property No": "HO-001",
        "Property Type": "Residential",
        "Rateable Value": 100,
        "Rate Impost": 0.5,
        "Sanitation Charged": 0,
        "Previous Balance": 0,
        "Total Payment": 0,
    })


@pytest.fixture
def paid_bop():
    return Bop.model_validate({
        "id": "bop-1",
        "Business Name": "Mensah Ventures",
        "Owner Name": "Kwame Mensah",
        "Phone Number": "0241234567",
        "Town": "Ho",
        "Permit Fee": 200,
        "Payment": 200,
    })
