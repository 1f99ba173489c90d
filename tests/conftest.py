"""
tests/conftest.py
─────────────────────────────────────────────────────────────────────
Shared fixtures: users per role, an open competition, JSON clients.
Run with:  python -m pytest -v
"""
from __future__ import annotations

import json
from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.test import Client
from django.utils import timezone

from archalley.models import Competition, CustomUser, RegistrationType, Role


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def payhere_settings(settings):
    settings.PAYHERE_MERCHANT_ID     = "1221149"
    settings.PAYHERE_MERCHANT_SECRET = "test-secret"
    settings.PAYHERE_SANDBOX         = True
    settings.CART_EXPIRY_MINUTES     = 30
    settings.CART_EXPIRY_DISABLED    = False
    return settings


# ════════════════════════════════════════════════════════════════════
#  Users
# ════════════════════════════════════════════════════════════════════

def make_user(email: str, role: str = Role.MEMBER, **extra) -> CustomUser:
    return CustomUser.objects.create_user(email=email, password="pass-1234", name=email.split("@")[0], role=role, **extra)


@pytest.fixture
def member(db):
    return make_user("member@example.com")


@pytest.fixture
def other_member(db):
    return make_user("other@example.com")


@pytest.fixture
def moderator(db):
    return make_user("mod@example.com", Role.MODERATOR)


@pytest.fixture
def site_admin(db):
    return make_user("admin@example.com", Role.ADMIN)


@pytest.fixture
def super_admin(db):
    return make_user("root@example.com", Role.SUPER_ADMIN)


# ════════════════════════════════════════════════════════════════════
#  Competition
# ════════════════════════════════════════════════════════════════════

@pytest.fixture
def competition(db):
    now = timezone.now()
    return Competition.objects.create(
        title                  = "Archalley Christmas Tree 2025",
        slug                   = "christmas-tree-2025",
        status                 = Competition.Status.REGISTRATION_OPEN,
        registration_deadline  = now + timedelta(days=20),
        end_date               = now + timedelta(days=30),
        kids_end_date          = now + timedelta(days=25),
    )


@pytest.fixture
def individual_type(competition):
    return RegistrationType.objects.create(
        competition=competition, name="Individual", type=RegistrationType.Type.INDIVIDUAL,
        fee=Decimal("5000.00"), max_members=1,
    )


@pytest.fixture
def team_type(competition):
    return RegistrationType.objects.create(
        competition=competition, name="Team", type=RegistrationType.Type.TEAM,
        fee=Decimal("8000.00"), max_members=3,
    )


@pytest.fixture
def student_type(competition):
    return RegistrationType.objects.create(
        competition=competition, name="Student", type=RegistrationType.Type.STUDENT,
        fee=Decimal("2500.00"), max_members=1,
    )


def member_payload(**overrides) -> dict:
    data = {"name": "Nimal Perera", "email": "nimal@example.com", "phone": "+94 77 123 4567"}
    data.update(overrides)
    return data


def cart_payload(competition, reg_type, members=None, **overrides) -> dict:
    data = {
        "competition":             competition.pk,
        "registration_type":       reg_type.pk,
        "country":                 "Sri Lanka",
        "participant_type":        "LOCAL",
        "members":                 members if members is not None else [member_payload()],
        "agree_to_terms":          True,
        "agree_to_website_terms":  True,
        "agree_to_privacy_policy": True,
        "agree_to_refund_policy":  True,
    }
    data.update(overrides)
    return data


def checkout_payload(method: str = "CARD", **overrides) -> dict:
    data = {
        "first_name":      "Nimal",
        "last_name":       "Perera",
        "email":           "nimal@example.com",
        "phone":           "+94771234567",
        "country":         "Sri Lanka",
        "payment_method":  method,
    }
    if method == "BANK_TRANSFER":
        data["bank_slip_url"] = "https://blob.example.com/slips/slip-1.jpg"
    data.update(overrides)
    return data


# ════════════════════════════════════════════════════════════════════
#  HTTP
# ════════════════════════════════════════════════════════════════════

class JsonClient(Client):
    """Django test client that sends JSON bodies."""

    def post_json(self, path, data=None, **kwargs):
        return self.post(path, data=json.dumps(data or {}), content_type="application/json", **kwargs)

    def patch_json(self, path, data=None, **kwargs):
        return self.patch(path, data=json.dumps(data or {}), content_type="application/json", **kwargs)


def client_for(user) -> JsonClient:
    client = JsonClient()
    if user is not None:
        client.force_login(user)
    return client


@pytest.fixture
def anon_client():
    return JsonClient()


@pytest.fixture
def member_client(member):
    return client_for(member)


@pytest.fixture
def other_client(other_member):
    return client_for(other_member)


@pytest.fixture
def moderator_client(moderator):
    return client_for(moderator)


@pytest.fixture
def admin_role_client(site_admin):
    return client_for(site_admin)


@pytest.fixture
def super_admin_client(super_admin):
    return client_for(super_admin)
