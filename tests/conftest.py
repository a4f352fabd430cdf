# ===============================================================================
# PYTEST CONFIGURATION FOR COMPUCAR PLATFORM
# ===============================================================================
"""
Global test configuration for CompuCar Platform.

Test Structure:
- tests/ mirrors apps/ structure for app-specific tests
- Naming convention: tests/{app}/test_{feature}.py

Run specific app tests: pytest tests/tuning/
"""

from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache

from apps.products.models import Product

User = get_user_model()


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters and carrier responses live in the cache"""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def customer(db):
    return User.objects.create_user(email='client@compucar.dz', password='testpass123', first_name='Karim')


@pytest.fixture
def file_admin(db):
    return User.objects.create_user(
        email='files@compucar.dz', password='testpass123', is_staff=True, staff_role='file_admin'
    )


@pytest.fixture
def product(db):
    return Product.objects.create(
        slug='obd-scanner', name='OBD2 Scanner', sku='OBD-01', price_cents=450_000,
        weight_gr=800, length_cm=25, width_cm=18, height_cm=6,
    )
