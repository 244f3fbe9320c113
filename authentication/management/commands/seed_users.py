"""
Management command to create the initial superadmin (and optional demo users).

Usage:
    python manage.py seed_users
    python manage.py seed_users --demo
    python manage.py seed_users --force

The superadmin credentials come from the environment:
    INITIAL_SUPERADMIN_IDENTIFIER
    INITIAL_SUPERADMIN_PASSWORD

--demo also creates accounts with known passwords for local testing:
    admin@reportdesk.local / Admin@12345 (admin)
    user@reportdesk.local / User@12345 (user)
"""

from decouple import config
from django.core.management.base import BaseCommand, CommandError

from authentication.models import User, UserRole


DEMO_USERS = [
    {
        'identifier': 'admin@reportdesk.local',
        'password': 'Admin@12345',
        'role': UserRole.ADMIN,
        'display_name': 'Demo Admin',
    },
    {
        'identifier': 'user@reportdesk.local',
        'password': 'User@12345',
        'role': UserRole.USER,
        'display_name': 'Demo User',
    },
]


class Command(BaseCommand):
    help = 'Create the initial superadmin and, optionally, demo accounts'

    def add_arguments(self, parser):
        parser.add_argument(
            '--demo',
            action='store_true',
            help='Also create demo admin and user accounts',
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Reset passwords even if users already exist',
        )

    def handle(self, *args, **options):
        force = options['force']

        identifier = config('INITIAL_SUPERADMIN_IDENTIFIER', default='')
        password = config('INITIAL_SUPERADMIN_PASSWORD', default='')
        if not identifier or not password:
            raise CommandError(
                'INITIAL_SUPERADMIN_IDENTIFIER and INITIAL_SUPERADMIN_PASSWORD must be set'
            )

        accounts = [{
            'identifier': identifier,
            'password': password,
            'role': UserRole.SUPERADMIN,
            'display_name': 'Super Admin',
        }]
        if options['demo']:
            accounts.extend(DEMO_USERS)

        created_count = 0
        updated_count = 0

        for account in accounts:
            existing = User.objects.filter(identifier=account['identifier']).first()

            if existing is not None:
                if force:
                    existing.set_password(account['password'])
                    existing.is_active = True
                    existing.save(update_fields=['password', 'is_active', 'updated_at'])
                    updated_count += 1
                    self.stdout.write(self.style.WARNING(f"  Reset: {existing.identifier}"))
                else:
                    self.stdout.write(f"  Exists: {existing.identifier} ({existing.role})")
                continue

            self._create(account)
            created_count += 1
            self.stdout.write(
                self.style.SUCCESS(f"  Created: {account['identifier']} ({account['role']})")
            )

        self.stdout.write(
            self.style.SUCCESS(f"Done. created={created_count} updated={updated_count}")
        )

    def _create(self, account):
        extra = {'display_name': account['display_name']}
        if account['role'] == UserRole.SUPERADMIN:
            return User.objects.create_superadmin(account['identifier'], account['password'], **extra)
        if account['role'] == UserRole.ADMIN:
            return User.objects.create_admin(account['identifier'], account['password'], **extra)
        return User.objects.create_user(account['identifier'], account['password'], **extra)
