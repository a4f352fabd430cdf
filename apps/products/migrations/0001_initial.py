# Generated migration for the product catalog

import uuid

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('slug', models.SlugField(help_text='URL-friendly identifier', max_length=100, unique=True)),
                ('name', models.CharField(help_text='Display name for customers', max_length=200)),
                ('sku', models.CharField(blank=True, help_text='Stock keeping unit shown on parcel labels', max_length=64)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(choices=[('diagnostic', 'Diagnostic Tools'), ('programmer', 'ECU Programmers'), ('cable', 'Cables & Adapters'), ('accessory', 'Accessories'), ('other', 'Other')], default='other', max_length=30)),
                ('price_cents', models.PositiveIntegerField(help_text='Unit price in centimes (DZD × 100)', validators=[django.core.validators.MaxValueValidator(100000000)])),
                ('weight_gr', models.PositiveIntegerField(help_text='Shipping weight in grams', validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(50000)])),
                ('length_cm', models.PositiveIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(200)])),
                ('width_cm', models.PositiveIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(200)])),
                ('height_cm', models.PositiveIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(200)])),
                ('is_active', models.BooleanField(default=True, help_text='Whether product is available for purchase')),
                ('stock_quantity', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Product',
                'verbose_name_plural': 'Products',
                'db_table': 'products',
                'ordering': ('name',),
                'indexes': [models.Index(fields=['category', 'is_active'], name='products_category_active_idx')],
            },
        ),
    ]
