"""
Pytest configuration and fixtures for the Whisky Catalog test suite.
"""

import pytest


@pytest.fixture
def api_client():
    """Create a test API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def staff_user(db):
    """Create a staff user allowed to trigger rebuilds."""
    from django.contrib.auth import get_user_model

    return get_user_model().objects.create_user(
        username="catalog-admin",
        password="secret",
        is_staff=True,
    )


@pytest.fixture
def scotland(db):
    """Create Scotland with its French name."""
    from catalog.models import Country

    return Country.objects.create(code="GB", name="Scotland", name_fr="Écosse")


@pytest.fixture
def japan(db):
    """Create Japan without a French name."""
    from catalog.models import Country

    return Country.objects.create(code="JP", name="Japan")


@pytest.fixture
def glenfarclas(db, scotland):
    """Create a Speyside distiller."""
    from catalog.models import Distiller

    return Distiller.objects.create(name="Glenfarclas", country=scotland)


@pytest.fixture
def macallan(db, scotland):
    """Create a second Speyside distiller."""
    from catalog.models import Distiller

    return Distiller.objects.create(name="Macallan", country=scotland)


@pytest.fixture
def signatory(db):
    """Create an independent bottler."""
    from catalog.models import Bottler

    return Bottler.objects.create(name="Signatory Vintage")


@pytest.fixture
def make_whisky(db):
    """
    Factory creating whiskies directly through the ORM.

    Bypasses catalog_mutations so no related rebuild is triggered.
    """
    from catalog.models import Whisky

    def _make(name, **fields):
        return Whisky.objects.create(name=name, **fields)

    return _make
