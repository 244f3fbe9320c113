"""
Authentication models for ReportDesk Backend.

Contains:
- Custom User model with role-based access control
- UserManager with helpers for each role

Every account has exactly one role. Roles are fixed at account creation;
the API never exposes a way to change them.
"""

from django.db import models
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin

from core.models import BaseModel


class UserRole:
    """
    User role constants.

    USER: files reports and follows their progress
    ADMIN: triages reports, can escalate to the superadmin pool
    SUPERADMIN: handles escalations, manages admin accounts
    """
    USER = 'user'
    ADMIN = 'admin'
    SUPERADMIN = 'superadmin'

    CHOICES = [
        (USER, 'User'),
        (ADMIN, 'Admin'),
        (SUPERADMIN, 'Super Admin'),
    ]

    # Roles that can act on other people's reports
    STAFF_ROLES = [ADMIN, SUPERADMIN]


class UserManager(BaseUserManager):
    """
    Custom user manager for the ReportDesk User model.
    """

    def get_queryset(self):
        """Return only non-deleted users by default."""
        return super().get_queryset().filter(is_deleted=False)

    def create_user(self, identifier, password=None, **extra_fields):
        """
        Create and return a user.

        Args:
            identifier: Unique login identifier (email or username)
            password: User password
            **extra_fields: Additional fields
        """
        if not identifier:
            raise ValueError('User must have an identifier')

        extra_fields.setdefault('role', UserRole.USER)
        if extra_fields['role'] not in dict(UserRole.CHOICES):
            raise ValueError(f"Invalid role: {extra_fields['role']}")

        user = self.model(identifier=identifier, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_admin(self, identifier, password, **extra_fields):
        """Create an admin account. Admins must have a password."""
        if not password:
            raise ValueError('Admin users must have a password')

        extra_fields['role'] = UserRole.ADMIN
        extra_fields.setdefault('is_staff', True)
        return self.create_user(identifier, password, **extra_fields)

    def create_superadmin(self, identifier, password, **extra_fields):
        """Create a superadmin account with Django admin access."""
        if not password:
            raise ValueError('Superadmin users must have a password')

        extra_fields['role'] = UserRole.SUPERADMIN
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        return self.create_user(identifier, password, **extra_fields)

    def create_superuser(self, identifier, password, **extra_fields):
        """Used by `manage.py createsuperuser`."""
        return self.create_superadmin(identifier, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin, BaseModel):
    """
    Custom User model for ReportDesk.

    - UUID primary key (inherited from BaseModel)
    - identifier field instead of username
    - exactly one role from UserRole
    """

    identifier = models.CharField(
        max_length=255,
        unique=True,
        help_text="Unique login identifier (email or username)"
    )

    display_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Name shown to staff handling reports"
    )

    role = models.CharField(
        max_length=20,
        choices=UserRole.CHOICES,
        default=UserRole.USER,
        db_index=True,
        help_text="User role determining access level"
    )

    is_staff = models.BooleanField(
        default=False,
        help_text="Designates whether user can access admin site"
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Designates whether user account is active"
    )

    objects = UserManager()

    USERNAME_FIELD = 'identifier'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'reportdesk_users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['identifier']
        indexes = [
            models.Index(fields=['role', 'is_active'], name='users_role_active_idx'),
        ]

    def __str__(self):
        return self.identifier

    @property
    def is_user(self):
        return self.role == UserRole.USER

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    @property
    def is_superadmin(self):
        return self.role == UserRole.SUPERADMIN

    @property
    def is_report_staff(self):
        """Check if user can act on reports filed by others."""
        return self.role in UserRole.STAFF_ROLES
