"""
Serializers for ReportDesk authentication.

Handles:
- Self-service registration (role `user` only)
- Login with identifier + password, returning a JWT pair
- Admin account creation by superadmins
- Current user representation
"""

import logging

from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

from .models import User

auth_logger = logging.getLogger('reportdesk.auth')


class UserSerializer(serializers.ModelSerializer):
    """Serializer for the current user and staff listings. Role is read-only."""

    role_display = serializers.CharField(source='get_role_display', read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'identifier',
            'display_name',
            'role',
            'role_display',
            'is_active',
            'created_at',
        ]
        read_only_fields = fields


class RegistrationSerializer(serializers.Serializer):
    """
    Register a reporting user.

    Accounts created here always get role `user`.
    """

    identifier = serializers.CharField(max_length=255)
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})
    display_name = serializers.CharField(max_length=150, required=False, allow_blank=True)

    def validate_identifier(self, value):
        value = value.strip()
        if User.all_objects.filter(identifier__iexact=value).exists():
            raise serializers.ValidationError('This identifier is already registered.')
        return value

    def validate_password(self, value):
        validate_password(value)
        return value

    def create(self, validated_data):
        return User.objects.create_user(
            identifier=validated_data['identifier'],
            password=validated_data['password'],
            display_name=validated_data.get('display_name', ''),
        )


class AdminCreateSerializer(RegistrationSerializer):
    """Create an admin account (superadmin only)."""

    def create(self, validated_data):
        return User.objects.create_admin(
            identifier=validated_data['identifier'],
            password=validated_data['password'],
            display_name=validated_data.get('display_name', ''),
        )


class LoginSerializer(serializers.Serializer):
    """
    Identifier + password login.

    Returns:
        dict with refresh, access and user
    """

    identifier = serializers.CharField(max_length=255)
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate(self, attrs):
        request = self.context.get('request')
        user = authenticate(
            request=request,
            identifier=attrs['identifier'],
            password=attrs['password'],
        )

        if user is None:
            auth_logger.info(f"Failed login for identifier={attrs['identifier']!r}")
            raise serializers.ValidationError(
                {'detail': 'Invalid credentials.'},
                code='authorization'
            )

        attrs['user'] = user
        return attrs

    def create(self, validated_data):
        user = validated_data['user']
        refresh = RefreshToken.for_user(user)
        refresh['role'] = user.role

        return {
            'refresh': str(refresh),
            'access': str(refresh.access_token),
            'user': UserSerializer(user).data,
        }
