# Generated migration for tuning files

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import apps.tuning.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TuningModification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.SlugField(help_text="Stable identifier, e.g. 'STAGE_1'", unique=True)),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(choices=[('performance', 'Performance'), ('emissions', 'Emissions'), ('diagnostics', 'Diagnostics'), ('other', 'Other')], default='performance', max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0)),
            ],
            options={
                'verbose_name': 'Tuning Modification',
                'verbose_name_plural': 'Tuning Modifications',
                'db_table': 'tuning_modifications',
                'ordering': ('sort_order', 'name'),
            },
        ),
        migrations.CreateModel(
            name='TuningFile',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('original_filename', models.CharField(max_length=255)),
                ('original_file', models.FileField(max_length=500, upload_to=apps.tuning.models.original_upload_path)),
                ('file_size', models.PositiveBigIntegerField(help_text='Size in bytes')),
                ('file_type', models.CharField(blank=True, help_text='MIME type reported at upload', max_length=100)),
                ('status', models.CharField(choices=[('RECEIVED', '📥 Received'), ('PENDING', '⏳ In progress'), ('READY', '✅ Ready')], default='RECEIVED', max_length=10)),
                ('estimated_processing_time_minutes', models.PositiveIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1)])),
                ('estimated_processing_time_set_at', models.DateTimeField(blank=True, null=True)),
                ('price', models.DecimalField(blank=True, decimal_places=2, help_text='Price in DZD', max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('payment_status', models.CharField(choices=[('NOT_PAID', 'Not paid'), ('PAID', 'Paid')], default='NOT_PAID', max_length=10)),
                ('admin_notes', models.TextField(blank=True, default='', validators=[django.core.validators.MaxLengthValidator(2000)])),
                ('customer_comment', models.TextField(blank=True, default='')),
                ('modified_filename', models.CharField(blank=True, default='', max_length=255)),
                ('modified_file', models.FileField(blank=True, max_length=500, upload_to=apps.tuning.models.modified_upload_path)),
                ('modified_file_size', models.PositiveBigIntegerField(blank=True, null=True)),
                ('modified_file_type', models.CharField(blank=True, default='', max_length=100)),
                ('modified_upload_date', models.DateTimeField(blank=True, null=True)),
                ('version', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(help_text='Customer who uploaded the file', on_delete=django.db.models.deletion.CASCADE, related_name='tuning_files', to=settings.AUTH_USER_MODEL)),
                ('modifications', models.ManyToManyField(blank=True, related_name='files', to='tuning.tuningmodification')),
            ],
            options={
                'verbose_name': 'Tuning File',
                'verbose_name_plural': 'Tuning Files',
                'db_table': 'tuning_files',
                'ordering': ('-created_at',),
                'indexes': [
                    models.Index(fields=['owner', 'status'], name='tuning_owner_status_idx'),
                    models.Index(fields=['status', 'created_at'], name='tuning_status_created_idx'),
                    models.Index(fields=['payment_status'], name='tuning_payment_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TuningAuditEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('action', models.CharField(choices=[('STATUS_CHANGE', 'Status change'), ('PRICE_SET', 'Price set'), ('PAYMENT_STATUS_CHANGE', 'Payment status change'), ('NOTE_ADDED', 'Admin note'), ('MODIFIED_FILE_UPLOADED', 'Modified file uploaded'), ('ESTIMATED_TIME_SET', 'Estimated time set'), ('CUSTOMER_COMMENT', 'Customer comment')], max_length=30)),
                ('old_value', models.TextField(blank=True, null=True)),
                ('new_value', models.TextField(blank=True, null=True)),
                ('source', models.CharField(default='web', help_text='web, telegram or system', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tuning_audit_entries', to=settings.AUTH_USER_MODEL)),
                ('file', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='audit_entries', to='tuning.tuningfile')),
            ],
            options={
                'verbose_name': 'Tuning Audit Entry',
                'verbose_name_plural': 'Tuning Audit Entries',
                'db_table': 'tuning_audit_entries',
                'ordering': ('-created_at',),
                'indexes': [models.Index(fields=['file', 'created_at'], name='tuning_audit_file_idx')],
            },
        ),
    ]
