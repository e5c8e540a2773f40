"""
Management command to create a tenant and issue its API key.
"""
from django.core.management.base import BaseCommand, CommandError

from apps.tenants.models import Tenant
from apps.tenants.services import create_tenant, rotate_api_key


class Command(BaseCommand):
    help = 'Create a tenant (or rotate the key of an existing one) and print its API key'

    def add_arguments(self, parser):
        parser.add_argument('name', help='Business name of the tenant')
        parser.add_argument(
            '--rotate',
            action='store_true',
            help='Issue a new key for an existing tenant with this name',
        )

    def handle(self, *args, **options):
        name = options['name'].strip()
        if not name:
            raise CommandError('Tenant name must not be empty')

        if options['rotate']:
            tenant = Tenant.objects.filter(name=name).order_by('created_at').first()
            if tenant is None:
                raise CommandError(f'Tenant "{name}" does not exist')
            api_key = rotate_api_key(tenant)
            self.stdout.write(self.style.SUCCESS(f'Rotated API key for tenant {tenant.tenant_id}'))
        else:
            tenant, api_key = create_tenant(name)
            self.stdout.write(self.style.SUCCESS(f'Created tenant {tenant.tenant_id}'))

        self.stdout.write(f'API key (shown once): {api_key}')
