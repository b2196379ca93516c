import logging

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from . import services
from .authentication import AdminSessionAuthentication, IsStaffMember, ShopSessionAuthentication
from .models import Role, User
from .serializers import CredentialsIn, OtpRequestIn, OtpVerifyIn, RegisterIn, UserOut
from .sessions import Scope, sign_in, sign_out

logger = logging.getLogger("shop.auth")


def _signed_in(request, user, *, status_code=status.HTTP_200_OK):
    principal = sign_in(request._request, user)
    logger.info(f"login: scope={principal.scope.value} user={user.pk}")
    return Response({"user": UserOut(user).data, "session": principal.as_dict()}, status=status_code)


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def register_view(request):
    ser = RegisterIn(data=request.data)
    ser.is_valid(raise_exception=True)
    user = User.objects.create_user(role=Role.CUSTOMER, **ser.validated_data)
    return _signed_in(request, user, status_code=status.HTTP_201_CREATED)


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def login_view(request):
    ser = CredentialsIn(data=request.data)
    ser.is_valid(raise_exception=True)
    user = services.authenticate_credentials(staff=False, **ser.validated_data)
    if user is None:
        return Response({"error": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED)
    return _signed_in(request, user)


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def otp_request_view(request):
    ser = OtpRequestIn(data=request.data)
    ser.is_valid(raise_exception=True)
    services.request_otp(email=ser.validated_data["email"])
    return Response({"sent": True}, status=status.HTTP_202_ACCEPTED)


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def otp_verify_view(request):
    ser = OtpVerifyIn(data=request.data)
    ser.is_valid(raise_exception=True)
    user = services.verify_otp(**ser.validated_data)
    if user is None:
        return Response({"error": "Invalid or expired code"}, status=status.HTTP_401_UNAUTHORIZED)
    return _signed_in(request, user)


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def logout_view(request):
    sign_out(request._request, Scope.SHOP)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(["GET"])
@authentication_classes([ShopSessionAuthentication])
@permission_classes([IsAuthenticated])
def session_view(request):
    return Response({"user": UserOut(request.user).data, "session": request.auth.as_dict()})


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def admin_login_view(request):
    ser = CredentialsIn(data=request.data)
    ser.is_valid(raise_exception=True)
    user = services.authenticate_credentials(staff=True, **ser.validated_data)
    if user is None:
        return Response({"error": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED)
    return _signed_in(request, user)


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def admin_logout_view(request):
    sign_out(request._request, Scope.ADMIN)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(["GET"])
@authentication_classes([AdminSessionAuthentication])
@permission_classes([IsStaffMember])
def admin_session_view(request):
    return Response({"user": UserOut(request.user).data, "session": request.auth.as_dict()})
