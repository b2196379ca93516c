"""Scoped sessions.

The shop and the back-office keep their logins under separate session keys, so
signing in to one never grants the other. Both scopes store the same shape,
``SessionPrincipal``, whose ``role`` decides which scope it may live in.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional

from django.conf import settings

from .models import STAFF_ROLES, Role


class Scope(Enum):
    SHOP = "shop"
    ADMIN = "admin"

    @property
    def session_key(self) -> str:
        if self is Scope.SHOP:
            return settings.SHOP["SHOP_SESSION_KEY"]
        return settings.SHOP["ADMIN_SESSION_KEY"]


@dataclass(frozen=True)
class SessionPrincipal:
    id: int
    role: str

    @property
    def type(self) -> str:
        return "admin" if self.role in STAFF_ROLES else "user"

    @property
    def scope(self) -> Scope:
        return Scope.ADMIN if self.type == "admin" else Scope.SHOP

    @classmethod
    def for_user(cls, user) -> "SessionPrincipal":
        return cls(id=user.pk, role=str(user.role))

    def as_dict(self) -> dict:
        return {**asdict(self), "type": self.type}

    @classmethod
    def from_dict(cls, data) -> Optional["SessionPrincipal"]:
        try:
            principal = cls(id=int(data["id"]), role=str(data["role"]))
        except (KeyError, TypeError, ValueError):
            return None
        if principal.role not in Role.values or data.get("type") != principal.type:
            return None
        return principal


def sign_in(request, user) -> SessionPrincipal:
    principal = SessionPrincipal.for_user(user)
    # new session id on every login to avoid fixation
    request.session.cycle_key()
    request.session[principal.scope.session_key] = principal.as_dict()
    return principal


def sign_out(request, scope: Scope) -> None:
    request.session.pop(scope.session_key, None)


def current_principal(request, scope: Scope) -> Optional[SessionPrincipal]:
    data = request.session.get(scope.session_key)
    if not data:
        return None
    principal = SessionPrincipal.from_dict(data)
    if principal is None or principal.scope is not scope:
        return None
    return principal
