import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.core.mail import send_mail
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from .models import OneTimeCode, Role, User

logger = logging.getLogger("shop.auth")


def authenticate_credentials(*, email: str, password: str, staff: bool) -> User | None:
    user = User.objects.filter(email__iexact=email.strip(), is_active=True).first()
    if user is None or not user.check_password(password):
        return None
    if user.is_staff_member != staff:
        return None
    return user


def _generate_code() -> str:
    length = settings.SHOP["OTP_LENGTH"]
    return "".join(secrets.choice("0123456789") for _ in range(length))


@transaction.atomic
def request_otp(*, email: str) -> OneTimeCode:
    email = email.strip().lower()
    # a new code replaces any outstanding one; spent and expired codes go too
    OneTimeCode.objects.filter(
        Q(email=email) | Q(consumed_at__isnull=False) | Q(expires_at__lte=timezone.now())
    ).delete()

    code = _generate_code()
    otp = OneTimeCode.objects.create(
        email=email,
        code_hash=make_password(code),
        expires_at=timezone.now() + timedelta(seconds=settings.SHOP["OTP_TTL_SECONDS"]),
    )
    transaction.on_commit(lambda: send_mail(
        subject="Your sign-in code",
        message=f"Your sign-in code is {code}. It expires in {settings.SHOP['OTP_TTL_SECONDS'] // 60} minutes.",
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[email],
    ))
    logger.info(f"otp issued: email={email}")
    return otp


@transaction.atomic
def verify_otp(*, email: str, code: str) -> User | None:
    """Consume a valid code and return the customer, creating it on first sign-in."""
    email = email.strip().lower()
    otp = (OneTimeCode.objects.select_for_update()
           .filter(email=email, consumed_at__isnull=True, expires_at__gt=timezone.now())
           .order_by("-created_at")
           .first())
    if otp is None or not check_password(code, otp.code_hash):
        return None

    otp.consumed_at = timezone.now()
    otp.save(update_fields=["consumed_at"])

    user, created = User.objects.get_or_create(email=email, defaults={"role": Role.CUSTOMER})
    if created:
        user.set_unusable_password()
        user.save(update_fields=["password"])
        logger.info(f"customer created via otp: {user.pk}")
    if not user.is_active or user.is_staff_member:
        return None
    return user
