"""Serializers for registration and sign-in.

- UserMeSerializer: read-only data for the authenticated user.
- RegistrationSerializer: creates users with Django password validation.
- UsernameOrEmailTokenObtainPairSerializer: obtain JWTs using username or email.
"""

from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

from .models import User


class UserMeSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "username", "email", "phone", "first_name", "last_name"]


class RegistrationSerializer(serializers.Serializer):
    """Action serializer to register a new user.

    Validates uniqueness of `username` and `email` and enforces Django
    password validators. Uses `set_password` to hash provided password.
    """

    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=16)

    def validate_username(self, value: str) -> str:
        if User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("Username is already taken.")
        return value

    def validate_email(self, value: str) -> str:
        value = value.strip().lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError("Email is already registered.")
        return value

    def validate_password(self, value: str) -> str:
        from django.contrib.auth.password_validation import validate_password

        user = User(username=self.initial_data.get("username", ""), email=self.initial_data.get("email", ""))
        validate_password(value, user=user)
        return value

    def create(self, validated_data):
        user = User(
            username=validated_data["username"],
            email=validated_data["email"],
            phone=validated_data.get("phone", ""),
        )
        user.set_password(validated_data["password"])
        user.full_clean(exclude=["password"])
        user.save()
        return user


class UsernameOrEmailTokenObtainPairSerializer(serializers.Serializer):
    """Obtain JWTs by authenticating with either username or email.

    Returns `access` and `refresh` tokens on success. Disabled accounts are
    rejected with the same generic message as bad credentials.
    """

    identifier = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        identifier = (attrs.get("identifier") or "").strip()
        password = attrs.get("password") or ""

        if not identifier or not password:
            raise serializers.ValidationError({"detail": "identifier and password are required."})

        lookup = {"email": identifier.lower()} if "@" in identifier else {"username": identifier}
        user = User.objects.filter(**lookup).first()

        if not user or not user.check_password(password) or not user.is_active:
            raise serializers.ValidationError({"detail": "Invalid credentials."})

        refresh = RefreshToken.for_user(user)
        return {"access": str(refresh.access_token), "refresh": str(refresh)}
