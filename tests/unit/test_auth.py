"""Unit tests for token decoding and company access rules."""

import uuid

import pytest
from fastapi import HTTPException
from jose import JWTError, jwt
from libs.auth.dependencies import decode_access_token
from libs.auth.models import Role
from libs.common.config import get_settings
from services.distribution_service.routers._helpers import ensure_company_access
from tests.conftest import make_user
from tests.factories import CompanyFactory


def _token(claims, secret=None):
    settings = get_settings()
    return jwt.encode(
        claims, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM
    )


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_decode_access_token_maps_claims():
    user = decode_access_token(
        _token(
            {
                "sub": "user-1",
                "email": "manager@lilium.iq",
                "role": Role.COMPANY_MANAGER,
                "company_id": "c-1",
                "zones": ["KARKH"],
            }
        )
    )
    assert user.user_id == "user-1"
    assert user.role == Role.COMPANY_MANAGER
    assert user.company_id == "c-1"
    assert user.zones == ["KARKH"]
    assert not user.is_admin


@pytest.mark.unit
def test_decode_rejects_wrong_secret():
    with pytest.raises(JWTError):
        decode_access_token(_token({"sub": "user-1"}, secret="not-the-secret"))


@pytest.mark.unit
def test_admin_flags():
    assert make_user(Role.ADMIN).is_admin
    assert make_user(Role.SUPER_ADMIN).is_super_admin
    assert not make_user(Role.VENDOR).is_admin


# ---------------------------------------------------------------------------
# Company access
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_super_admin_sees_every_company():
    company = CompanyFactory.create(zones=["RUSAFA"])
    ensure_company_access(make_user(Role.SUPER_ADMIN, zones=[]), company)


@pytest.mark.unit
def test_admin_needs_shared_zone():
    company = CompanyFactory.create(zones=["RUSAFA"])
    ensure_company_access(make_user(Role.ADMIN, zones=["RUSAFA"]), company)
    with pytest.raises(HTTPException) as exc:
        ensure_company_access(make_user(Role.ADMIN, zones=["KARKH"]), company)
    assert exc.value.status_code == 403


@pytest.mark.unit
@pytest.mark.parametrize("role", [Role.COMPANY_MANAGER, Role.VENDOR])
def test_company_staff_limited_to_own_company(role):
    company = CompanyFactory.create()
    ensure_company_access(make_user(role, company_id=str(company.id)), company)
    with pytest.raises(HTTPException) as exc:
        ensure_company_access(make_user(role, company_id=str(uuid.uuid4())), company)
    assert exc.value.status_code == 403


@pytest.mark.unit
def test_shop_owner_never_has_company_access():
    company = CompanyFactory.create()
    with pytest.raises(HTTPException) as exc:
        ensure_company_access(
            make_user(Role.SHOP_OWNER, company_id=str(company.id)), company
        )
    assert exc.value.status_code == 403
