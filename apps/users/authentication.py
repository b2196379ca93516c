from rest_framework.authentication import SessionAuthentication
from rest_framework.permissions import BasePermission

from .models import User
from .sessions import Scope, current_principal


class ScopedSessionAuthentication(SessionAuthentication):
    scope: Scope

    def authenticate(self, request):
        django_request = request._request
        principal = current_principal(django_request, self.scope)
        if principal is None:
            return None

        user = User.objects.filter(pk=principal.id, is_active=True).first()
        if user is None or str(user.role) != principal.role:
            return None

        self.enforce_csrf(request)
        return user, principal

    def authenticate_header(self, request):
        return "Session"


class ShopSessionAuthentication(ScopedSessionAuthentication):
    scope = Scope.SHOP


class AdminSessionAuthentication(ScopedSessionAuthentication):
    scope = Scope.ADMIN


class IsStaffMember(BasePermission):
    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_staff_member)
