# Generated migration for COD orders

import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('products', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('order_number', models.CharField(help_text='Human-readable order number', max_length=20, unique=True)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('CONFIRMED', 'Confirmed'), ('SHIPPED', 'Shipped'), ('DELIVERED', 'Delivered'), ('RETURNED', 'Returned'), ('FAILED', 'Failed'), ('CANCELLED', 'Cancelled')], default='PENDING', max_length=20)),
                ('customer_name', models.CharField(max_length=150)),
                ('customer_phone', models.CharField(max_length=20)),
                ('customer_email', models.EmailField(blank=True, max_length=254)),
                ('wilaya_id', models.PositiveSmallIntegerField()),
                ('wilaya_name', models.CharField(max_length=100)),
                ('commune_name', models.CharField(blank=True, max_length=100)),
                ('address', models.CharField(blank=True, max_length=255)),
                ('is_stopdesk', models.BooleanField(default=False)),
                ('stopdesk_id', models.PositiveIntegerField(blank=True, null=True)),
                ('subtotal_cents', models.PositiveBigIntegerField(default=0)),
                ('shipping_cents', models.PositiveBigIntegerField(default=0, help_text='Server-verified shipping cost')),
                ('total_cents', models.PositiveBigIntegerField(default=0)),
                ('currency', models.CharField(default='DZD', max_length=3)),
                ('shipping_quote_source', models.CharField(blank=True, help_text="'carrier' or 'fallback' quote used at checkout", max_length=10)),
                ('parcel_weight_gr', models.PositiveIntegerField(default=0)),
                ('parcel_length_cm', models.PositiveIntegerField(default=0)),
                ('parcel_width_cm', models.PositiveIntegerField(default=0)),
                ('parcel_height_cm', models.PositiveIntegerField(default=0)),
                ('tracking_number', models.CharField(blank=True, db_index=True, max_length=64)),
                ('label_url', models.URLField(blank=True, max_length=500)),
                ('carrier_status', models.CharField(blank=True, max_length=50)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('shipped_at', models.DateTimeField(blank=True, null=True)),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('user', models.ForeignKey(blank=True, help_text='Account that placed the order; empty for guest checkout', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Order',
                'verbose_name_plural': 'Orders',
                'db_table': 'orders',
                'ordering': ('-created_at',),
                'indexes': [
                    models.Index(fields=['user', '-created_at'], name='orders_user_created_idx'),
                    models.Index(fields=['status', '-created_at'], name='orders_status_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_name', models.CharField(max_length=200)),
                ('product_sku', models.CharField(blank=True, max_length=64)),
                ('quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('unit_price_cents', models.PositiveBigIntegerField()),
                ('line_total_cents', models.PositiveBigIntegerField()),
                ('weight_gr', models.PositiveIntegerField(help_text='Unit weight at the time of the order')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='orders.order')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='order_items', to='products.product')),
            ],
            options={
                'verbose_name': 'Order Item',
                'verbose_name_plural': 'Order Items',
                'db_table': 'order_items',
            },
        ),
        migrations.CreateModel(
            name='OrderStatusHistory',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('old_status', models.CharField(blank=True, help_text='Previous status', max_length=20)),
                ('new_status', models.CharField(help_text='New status', max_length=20)),
                ('reason', models.CharField(blank=True, help_text='Reason for status change', max_length=255)),
                ('is_automatic', models.BooleanField(default=False, help_text='Whether this was a carrier/system change')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('changed_by', models.ForeignKey(blank=True, help_text='User who made the change', null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='status_history', to='orders.order')),
            ],
            options={
                'verbose_name': 'Order Status History',
                'verbose_name_plural': 'Order Status Histories',
                'db_table': 'order_status_history',
                'ordering': ('-created_at',),
                'indexes': [models.Index(fields=['order', '-created_at'], name='order_history_created_idx')],
            },
        ),
    ]
