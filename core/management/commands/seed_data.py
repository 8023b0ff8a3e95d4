"""
==============================================================================
SEED DATA - Django Management Command
==============================================================================
Generate sample data for demo/testing purposes.

Creates:
    - Admin user and a demo customer with a saved address
    - Categories, products and size/color variants with stock
    - Regular and influencer coupons
    - Default site settings

Usage:
    python manage.py seed_data              # Create all seed data
    python manage.py seed_data --clear      # Clear existing catalog first

Author: Storefront Development Team
==============================================================================
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model

from accounts.models import Address
from core.cache import invalidate_categories
from core.models import Category, Product, ProductVariant, Coupon, SiteSetting

CustomUser = get_user_model()


CATEGORIES = ['Dresses', 'Tops', 'Trousers', 'Outerwear']

# Format: (Name, SKU, Price, CategoryIndex, Colors)
PRODUCTS = [
    ('Linen Midi Dress', 'DRS-LIN-01', '1299.90', 0, [('Ecru', '#f3efe0'), ('Black', '#111111')]),
    ('Satin Slip Dress', 'DRS-SAT-02', '1499.90', 0, [('Champagne', '#f7e7ce')]),
    ('Basic Cotton Tee', 'TOP-TEE-01', '349.90', 1, [('White', '#ffffff'), ('Navy', '#1a237e')]),
    ('Oversize Shirt', 'TOP-SHR-02', '749.90', 1, [('Blue', '#9ec5e8')]),
    ('Wide Leg Trousers', 'TRS-WID-01', '899.90', 2, [('Beige', '#d8c3a5'), ('Black', '#111111')]),
    ('Denim Jacket', 'OUT-DNM-01', '1899.90', 3, [('Indigo', '#3f51b5')]),
]

SIZES = ['S', 'M', 'L']

COUPONS = [
    {'code': 'WELCOME10', 'discount_type': 'percentage', 'discount_value': Decimal('10')},
    {'code': 'SAVE100', 'discount_type': 'fixed', 'discount_value': Decimal('100'),
     'min_order_amount': Decimal('750')},
    {'code': 'AYSE15', 'discount_type': 'percentage', 'discount_value': Decimal('15'),
     'is_influencer_code': True, 'influencer_instagram': '@ayse.style',
     'commission_rate': Decimal('10')},
]

SETTINGS = {
    'shop_name': 'Storefront',
    'contact_email': 'hello@storefront.local',
    'contact_phone': '+90 212 000 00 00',
}


class Command(BaseCommand):
    help = 'Generate sample data for the Storefront demo'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing catalog and coupons before seeding'
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE('=' * 60))
        self.stdout.write(self.style.NOTICE('Storefront Seed Data Generator'))
        self.stdout.write(self.style.NOTICE('=' * 60))

        if options['clear']:
            self.clear_data()

        self.create_users()
        self.create_catalog()
        self.create_coupons()
        self.create_settings()
        invalidate_categories()

        self.stdout.write(self.style.SUCCESS('\nSeed data created successfully!'))
        self.stdout.write(self.style.NOTICE('\nDemo Accounts:'))
        self.stdout.write('  Admin:    admin@storefront.local / admin123')
        self.stdout.write('  Customer: customer@storefront.local / demo1234')

    def clear_data(self):
        """Orders keep their snapshots; only catalog rows and coupons go."""
        self.stdout.write('Clearing existing data...')

        ProductVariant.objects.all().delete()
        Product.objects.all().delete()
        Category.objects.all().delete()
        Coupon.objects.all().delete()

        self.stdout.write(self.style.SUCCESS('  Data cleared'))

    def create_users(self):
        self.stdout.write('\nCreating users...')

        if not CustomUser.objects.filter(email='admin@storefront.local').exists():
            CustomUser.objects.create_superuser(
                username='admin',
                email='admin@storefront.local',
                password='admin123',
                role='admin'
            )
            self.stdout.write(self.style.SUCCESS('  Admin user created'))

        customer, created = CustomUser.objects.get_or_create(
            email='customer@storefront.local',
            defaults={
                'username': 'customer',
                'first_name': 'Elif',
                'last_name': 'Demir',
                'phone': '+90 555 123 45 67',
            }
        )
        if created:
            customer.set_password('demo1234')
            customer.save()
            Address.objects.create(
                user=customer,
                title='Home',
                full_name='Elif Demir',
                phone='+90 555 123 45 67',
                address='Bagdat Cad. No:10 D:5',
                city='Istanbul',
                district='Kadikoy',
                postal_code='34710',
                is_default=True,
            )
            self.stdout.write(self.style.SUCCESS('  Demo customer created'))

    def create_catalog(self):
        self.stdout.write('\nCreating catalog...')

        categories = []
        for order, name in enumerate(CATEGORIES):
            category, _ = Category.objects.get_or_create(
                name=name,
                defaults={'display_order': order, 'is_active': True}
            )
            categories.append(category)

        variant_count = 0
        for name, sku, price, cat_idx, colors in PRODUCTS:
            product, created = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    'name': name,
                    'category': categories[cat_idx],
                    'base_price': Decimal(price),
                    'description': f'{name} from the new season collection.',
                    'is_new': cat_idx == 0,
                }
            )
            if not created:
                continue
            for color, color_hex in colors:
                for size in SIZES:
                    ProductVariant.objects.create(
                        product=product,
                        sku=f'{sku}-{color[:3].upper()}-{size}',
                        size=size,
                        color=color,
                        color_hex=color_hex,
                        price=product.base_price,
                        stock=12,
                    )
                    variant_count += 1

        self.stdout.write(self.style.SUCCESS(
            f'  {len(categories)} categories, {len(PRODUCTS)} products, {variant_count} new variants'
        ))

    def create_coupons(self):
        self.stdout.write('\nCreating coupons...')

        for data in COUPONS:
            data = dict(data)
            Coupon.objects.get_or_create(code=data.pop('code'), defaults=data)

        self.stdout.write(self.style.SUCCESS(f'  {len(COUPONS)} coupons ready'))

    def create_settings(self):
        for key, value in SETTINGS.items():
            SiteSetting.objects.get_or_create(key=key, defaults={'value': value})
