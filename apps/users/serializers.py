from rest_framework import serializers

from .models import STAFF_ROLES, User


class CredentialsIn(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False)


class RegisterIn(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, trim_whitespace=False)
    name = serializers.CharField(max_length=120, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already registered")
        return value.lower()


class OtpRequestIn(serializers.Serializer):
    email = serializers.EmailField()


class OtpVerifyIn(serializers.Serializer):
    email = serializers.EmailField()
    code = serializers.RegexField(r"^\d{4,8}$")


class UserOut(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "name", "phone", "role", "createdAt"]


class StaffSerializer(serializers.ModelSerializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, required=False, min_length=8)
    isActive = serializers.BooleanField(source="is_active", required=False)
    status = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = User
        fields = ["id", "name", "email", "phone", "role", "isActive", "status", "password", "createdAt", "updatedAt"]

    def get_status(self, obj):
        return "active" if obj.is_active else "inactive"

    def validate_email(self, value):
        taken = User.objects.filter(email__iexact=value)
        if self.instance is not None:
            taken = taken.exclude(pk=self.instance.pk)
        if taken.exists():
            raise serializers.ValidationError("Email already registered")
        return value.lower()

    def validate_role(self, value):
        if value not in STAFF_ROLES:
            raise serializers.ValidationError("Role must be a staff role")
        return value

    def validate(self, attrs):
        if self.instance is None and not attrs.get("password"):
            raise serializers.ValidationError({"password": ["This field is required."]})
        return attrs

    def create(self, validated_data):
        password = validated_data.pop("password")
        return User.objects.create_staff(password=password, **validated_data)

    def update(self, instance, validated_data):
        password = validated_data.pop("password", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance
