"""
Management command to create sample data for trying out the API.

Usage:
    python manage.py create_sample_data

This creates:
- 4 users (admin, shop owner, ahmed, khaled)
- Shop branding for the owner
- 2 registered and 2 local customers of the owner
- Movements in several currencies, a commission split and an internal transfer
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.accounts.models import User
from apps.accounts.services import update_shop_settings
from apps.customers.models import CustomerLink, LocalCustomer
from apps.customers.services import add_registered_customer, add_local_customer
from apps.ledger.models import Movement
from apps.ledger.services import record_movement, record_internal_transfer

SAMPLE_EMAILS = [
    'admin@example.com',
    'shop@example.com',
    'ahmed@example.com',
    'khaled@example.com',
]


class Command(BaseCommand):
    help = 'Create sample data for testing the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing sample data before creating it again',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        if User.objects.filter(email='shop@example.com').exists():
            self.stdout.write(self.style.WARNING('Sample data already exists, use --clear to recreate it'))
            return

        self.stdout.write('Creating sample data...')

        users = self.create_users()
        customers = self.create_customers(users)
        self.create_movements(users['shop'], customers)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  admin@example.com / admin123 (superuser)')
        self.stdout.write('  shop@example.com / password123 (owner with a ledger)')
        self.stdout.write('  ahmed@example.com / password123')
        self.stdout.write('  khaled@example.com / password123')

    def clear_data(self):
        """Remove the sample users and everything they own."""
        owners = User.objects.filter(email__in=SAMPLE_EMAILS)
        Movement.objects.filter(owner__in=owners).delete()
        CustomerLink.objects.filter(owner__in=owners).delete()
        LocalCustomer.objects.filter(owner__in=owners).delete()
        owners.delete()

    def create_users(self):
        """Create test users."""
        self.stdout.write('  Creating users...')

        admin = User.objects.create_superuser(
            email='admin@example.com',
            password='admin123',
            username='admin',
            full_name='Admin User',
        )
        shop = User.objects.create_user(
            email='shop@example.com',
            password='password123',
            username='alamal',
            full_name='محل الأمل للصرافة',
            phone='777000000',
        )
        ahmed = User.objects.create_user(
            email='ahmed@example.com',
            password='password123',
            username='ahmed',
            full_name='أحمد صالح',
            phone='777111222',
        )
        khaled = User.objects.create_user(
            email='khaled@example.com',
            password='password123',
            username='khaled',
            full_name='خالد علي',
        )

        update_shop_settings(
            owner=shop,
            shop_name='محل الأمل للصرافة',
            shop_phone='01-234567',
            shop_address='صنعاء - شارع الزبيري',
        )

        return {'admin': admin, 'shop': shop, 'ahmed': ahmed, 'khaled': khaled}

    def create_customers(self, users):
        """Add registered and local customers to the shop owner's list."""
        self.stdout.write('  Creating customers...')

        owner = users['shop']
        return {
            'ahmed': add_registered_customer(owner=owner, registered_user_id=users['ahmed'].id),
            'khaled': add_registered_customer(owner=owner, registered_user_id=users['khaled'].id),
            'mohammed': add_local_customer(owner=owner, display_name='محمد حسن', phone='733444555'),
            'saeed': add_local_customer(owner=owner, display_name='سعيد عمر', note='عميل شهري'),
        }

    def create_movements(self, owner, customers):
        """Record movements, a commission split and a transfer."""
        self.stdout.write('  Creating movements...')

        samples = [
            ('ahmed', 'incoming', '500', 'USD', None, 'إيداع نقدي'),
            ('ahmed', 'outgoing', '200', 'USD', None, 'سحب'),
            ('ahmed', 'incoming', '1000', 'YER', '50', 'حوالة واردة'),
            ('khaled', 'outgoing', '1500', 'SAR', None, ''),
            ('mohammed', 'incoming', '250', 'EUR', '10', ''),
            ('saeed', 'incoming', '75000', 'YER', None, 'دفعة شهرية'),
        ]
        for key, movement_type, amount, currency, commission, note in samples:
            record_movement(
                owner=owner,
                customer_link_id=customers[key].id,
                movement_type=movement_type,
                amount=amount,
                currency=currency,
                commission_amount=commission,
                note=note,
            )

        record_internal_transfer(
            owner=owner,
            from_link_id=customers['saeed'].id,
            to_link_id=customers['mohammed'].id,
            amount='20000',
            currency='YER',
            commission_amount='500',
            note='تحويل داخلي',
        )
