"""
Management command to setup initial data for the PDC engine.
Creates the roles the API checks and the company settings row.
"""
from django.core.management.base import BaseCommand
from apps.settings_app.models import Role, CompanySettings


class Command(BaseCommand):
    help = 'Setup initial data including roles and company settings'

    def add_arguments(self, parser):
        parser.add_argument(
            '--company-name',
            type=str,
            help='Legal company name printed as PDC holder'
        )

    def handle(self, *args, **options):
        self.stdout.write('Setting up initial data...\n')

        self.create_roles()
        self.create_company_settings(options.get('company_name'))

        self.stdout.write(self.style.SUCCESS('\nInitial data setup completed successfully!'))

    def create_roles(self):
        """Create the system roles."""
        self.stdout.write('Creating roles...')

        roles = [
            (Role.SUPER_ADMIN, 'Super Admin', 'Full access, including manual due sweeps'),
            (Role.ADMIN, 'Admin', 'Full access to PDC operations'),
            (Role.PROPERTY_MANAGER, 'Property Manager', 'Manages PDCs and receives bounce notifications'),
        ]

        count = 0
        for code, name, description in roles:
            _, created = Role.objects.get_or_create(
                code=code,
                defaults={
                    'name': name,
                    'description': description,
                    'is_system_role': True,
                }
            )
            if created:
                count += 1

        self.stdout.write(f'  Created {count} roles')

    def create_company_settings(self, company_name=None):
        """Create company settings if not configured."""
        self.stdout.write('Creating company settings...')

        company, created = CompanySettings.objects.get_or_create(
            pk=1,
            defaults={'company_name': company_name or 'My Company'}
        )
        if not created and company_name:
            company.company_name = company_name
            company.save(update_fields=['company_name'])

        if created:
            self.stdout.write(f'  Created company settings: {company.company_name}')
        else:
            self.stdout.write(self.style.WARNING(f'  Company settings already exist: {company.company_name}'))
