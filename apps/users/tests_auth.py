import re
from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from .models import OneTimeCode, Role
from .sessions import Scope, SessionPrincipal

pytestmark = pytest.mark.django_db

PASSWORD = "s3cret-pass"


def _otp_from(mail):
    return re.search(r"code is (\d+)", mail.body).group(1)


def test_register_signs_customer_in(api):
    res = api.post("/api/auth/register", {"email": "New@Test.com", "password": PASSWORD, "name": "Newt"})
    assert res.status_code == 201, res.content
    assert res.json()["user"]["email"] == "new@test.com"
    assert res.json()["session"] == {"id": res.json()["user"]["id"], "role": "CUSTOMER", "type": "user"}

    assert api.get("/api/auth/session").json()["user"]["name"] == "Newt"


def test_register_rejects_taken_email_and_short_password(api, customer):
    res = api.post("/api/auth/register", {"email": "U@test.com", "password": PASSWORD})
    assert res.status_code == 400
    assert "email" in res.json()["details"]

    res = api.post("/api/auth/register", {"email": "other@test.com", "password": "short"})
    assert res.status_code == 400
    assert "password" in res.json()["details"]


def test_login_and_logout(api, customer):
    assert api.get("/api/auth/session").status_code == 401

    res = api.post("/api/auth/login", {"email": customer.email, "password": PASSWORD})
    assert res.status_code == 200
    assert api.get("/api/auth/session").json()["session"]["type"] == "user"

    assert api.post("/api/auth/logout").status_code == 204
    assert api.get("/api/auth/session").status_code == 401


def test_wrong_password_is_unauthorized(api, customer):
    res = api.post("/api/auth/login", {"email": customer.email, "password": "nope-nope"})
    assert res.status_code == 401
    assert res.json() == {"error": "Invalid credentials"}


def test_inactive_user_cannot_log_in(api, customer):
    customer.is_active = False
    customer.save()
    assert api.post("/api/auth/login", {"email": customer.email, "password": PASSWORD}).status_code == 401


def test_scopes_do_not_leak(api, customer, staff):
    # staff cannot sign in to the shop, customers cannot sign in to the back-office
    assert api.post("/api/auth/login", {"email": staff.email, "password": PASSWORD}).status_code == 401
    assert api.post("/api/admin/auth/login", {"email": customer.email, "password": PASSWORD}).status_code == 401

    api.post("/api/auth/login", {"email": customer.email, "password": PASSWORD})
    assert api.get("/api/admin/auth/session").status_code == 401
    assert api.get("/api/admin/products").status_code == 401


def test_admin_session_lifecycle(staff_api, staff):
    body = staff_api.get("/api/admin/auth/session").json()
    assert body["session"] == {"id": staff.pk, "role": "ADMIN", "type": "admin"}
    assert staff_api.get("/api/auth/session").status_code == 401

    assert staff_api.post("/api/admin/auth/logout").status_code == 204
    assert staff_api.get("/api/admin/auth/session").status_code == 401


def test_session_dropped_when_role_changes(shop_api, customer):
    get_user_model().objects.filter(pk=customer.pk).update(role=Role.STAFF)
    assert shop_api.get("/api/auth/session").status_code == 401


def test_otp_sign_in_creates_customer(api, mailoutbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        res = api.post("/api/auth/otp/request", {"email": "Fresh@Test.com"})
    assert res.status_code == 202
    assert mailoutbox[0].to == ["fresh@test.com"]

    res = api.post("/api/auth/otp/verify", {"email": "fresh@test.com", "code": _otp_from(mailoutbox[0])})
    assert res.status_code == 200, res.content
    user = get_user_model().objects.get(email="fresh@test.com")
    assert user.role == Role.CUSTOMER
    assert not user.has_usable_password()
    assert api.get("/api/auth/session").json()["user"]["id"] == user.pk


def test_otp_code_is_single_use(api, customer, mailoutbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        api.post("/api/auth/otp/request", {"email": customer.email})
    code = _otp_from(mailoutbox[0])

    assert api.post("/api/auth/otp/verify", {"email": customer.email, "code": code}).status_code == 200
    assert APIClient().post("/api/auth/otp/verify", {"email": customer.email, "code": code}).status_code == 401


def test_new_otp_replaces_old(api, customer, mailoutbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        api.post("/api/auth/otp/request", {"email": customer.email})
        api.post("/api/auth/otp/request", {"email": customer.email})
    old, new = _otp_from(mailoutbox[0]), _otp_from(mailoutbox[1])

    if old != new:
        assert api.post("/api/auth/otp/verify", {"email": customer.email, "code": old}).status_code == 401
    assert api.post("/api/auth/otp/verify", {"email": customer.email, "code": new}).status_code == 200


def test_expired_or_wrong_otp_rejected(api, customer, mailoutbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        api.post("/api/auth/otp/request", {"email": customer.email})
    code = _otp_from(mailoutbox[0])
    wrong = "000000" if code != "000000" else "111111"

    assert api.post("/api/auth/otp/verify", {"email": customer.email, "code": wrong}).status_code == 401

    OneTimeCode.objects.update(expires_at=timezone.now() - timedelta(seconds=1))
    assert api.post("/api/auth/otp/verify", {"email": customer.email, "code": code}).status_code == 401


def test_otp_never_signs_in_staff(api, staff, mailoutbox, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        api.post("/api/auth/otp/request", {"email": staff.email})
    res = api.post("/api/auth/otp/verify", {"email": staff.email, "code": _otp_from(mailoutbox[0])})
    assert res.status_code == 401


def test_principal_type_must_match_role():
    assert SessionPrincipal.from_dict({"id": 1, "role": "ADMIN", "type": "admin"}).scope is Scope.ADMIN
    assert SessionPrincipal.from_dict({"id": 1, "role": "CUSTOMER", "type": "user"}).scope is Scope.SHOP
    assert SessionPrincipal.from_dict({"id": 1, "role": "CUSTOMER", "type": "admin"}) is None
    assert SessionPrincipal.from_dict({"id": 1, "role": "WIZARD", "type": "user"}) is None
    assert SessionPrincipal.from_dict({"role": "ADMIN"}) is None


def test_unauthorized_response_names_the_scheme(api):
    res = api.get("/api/auth/session")
    assert res.status_code == 401
    assert res["WWW-Authenticate"] == "Session"
    assert api.get("/api/admin/dashboard")["WWW-Authenticate"] == "Session"


def test_requesting_a_code_prunes_stale_ones(api, django_capture_on_commit_callbacks):
    now = timezone.now()
    OneTimeCode.objects.create(email="spent@test.com", code_hash="x", expires_at=now + timedelta(minutes=5),
                               consumed_at=now)
    OneTimeCode.objects.create(email="late@test.com", code_hash="x", expires_at=now - timedelta(minutes=1))
    live = OneTimeCode.objects.create(email="live@test.com", code_hash="x", expires_at=now + timedelta(minutes=5))

    with django_capture_on_commit_callbacks(execute=True):
        api.post("/api/auth/otp/request", {"email": "fresh@test.com"})

    assert set(OneTimeCode.objects.values_list("email", flat=True)) == {"live@test.com", "fresh@test.com"}
    assert OneTimeCode.objects.filter(pk=live.pk).exists()
