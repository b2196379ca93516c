from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.db import models


class Role(models.TextChoices):
    CUSTOMER = "CUSTOMER", "Customer"
    STAFF = "STAFF", "Staff"
    ADMIN = "ADMIN", "Admin"
    SUPERADMIN = "SUPERADMIN", "Super admin"


STAFF_ROLES = (Role.STAFF, Role.ADMIN, Role.SUPERADMIN)


class UserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, email, password=None, **extra):
        if not email:
            raise ValueError("email is required")
        user = self.model(email=self.normalize_email(email).lower(), **extra)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_staff(self, email, password, role=Role.ADMIN, **extra):
        if role not in STAFF_ROLES:
            raise ValueError(f"not a staff role: {role}")
        return self.create_user(email, password, role=role, **extra)

    def customers(self):
        return self.filter(role=Role.CUSTOMER)

    def staff(self):
        return self.filter(role__in=STAFF_ROLES)


class User(AbstractBaseUser):
    """Shop customers and back-office staff; ``role`` tells them apart."""

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=120, blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.CUSTOMER)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.email

    @property
    def is_staff_member(self) -> bool:
        return self.role in STAFF_ROLES


class OneTimeCode(models.Model):
    email = models.EmailField(db_index=True)
    code_hash = models.CharField(max_length=128)
    expires_at = models.DateTimeField()
    consumed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
