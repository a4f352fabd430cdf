"""
User models for CompuCar Platform
Email-based authentication for customers and back-office staff.
"""

from __future__ import annotations

from typing import Any, ClassVar

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.db.models import QuerySet
from django.utils.translation import gettext_lazy as _


class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication"""

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any) -> User:
        """Create and return a regular user with email and password"""
        if not email:
            raise ValueError('The Email field must be set')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any) -> User:
        """Create and return a superuser with email and password"""
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('staff_role', 'super_admin')

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)

    def file_admins(self) -> QuerySet[User]:
        """Active staff who receive tuning-file notifications"""
        return self.filter(is_active=True, is_staff=True, staff_role__in=['super_admin', 'file_admin'])


class User(AbstractUser):
    """
    CompuCar user.
    Customers have no staff role; back-office users are flagged with is_staff and a role.
    """

    STAFF_ROLE_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('super_admin', _('Super Administrator')),
        ('file_admin', _('File Administrator')),
    )

    username = None  # Remove username field, using email instead
    email = models.EmailField(_('email address'), unique=True)
    phone = models.CharField(
        max_length=20,
        blank=True,
        help_text=_('Algerian phone number: 0550 12 34 56')
    )

    staff_role = models.CharField(
        max_length=20,
        choices=STAFF_ROLE_CHOICES,
        blank=True,
        default='',
        help_text=_('Staff role for back-office users. Leave empty for customer users.')
    )

    telegram_chat_id = models.CharField(
        max_length=64,
        blank=True,
        default='',
        help_text=_('Telegram chat that receives customer bot messages for this user')
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS: ClassVar[list[str]] = []

    class Meta:
        db_table = 'users'
        verbose_name = _('User')
        verbose_name_plural = _('Users')
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['staff_role'], name='users_staff_role_idx'),
            models.Index(fields=['is_staff'], name='users_is_staff_idx'),
        )

    def __str__(self) -> str:
        return self.email

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.email
