# Generated migration for the notification inbox

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('tuning', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('notification_type', models.CharField(choices=[('file_uploaded', 'File uploaded'), ('file_status_update', 'File status update'), ('estimated_time_update', 'Estimated time update'), ('file_price_update', 'File price update'), ('payment_confirmed', 'Payment confirmed'), ('admin_comment', 'Admin comment'), ('order_placed', 'Order placed'), ('shipment_update', 'Shipment update')], max_length=40)),
                ('category', models.CharField(choices=[('order', 'Order'), ('payment', 'Payment'), ('security', 'Security'), ('file_status', 'File status'), ('shipping', 'Shipping'), ('system', 'System')], default='system', max_length=20)),
                ('priority', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High')], default='medium', max_length=10)),
                ('title', models.CharField(max_length=200)),
                ('message', models.TextField()),
                ('data', models.JSONField(blank=True, default=dict, help_text='Payload sent to the live stream')),
                ('is_read', models.BooleanField(default=False)),
                ('read_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('recipient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL)),
                ('tuning_file', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='notifications', to='tuning.tuningfile')),
            ],
            options={
                'verbose_name': 'Notification',
                'verbose_name_plural': 'Notifications',
                'db_table': 'notifications',
                'ordering': ('-created_at',),
                'indexes': [
                    models.Index(fields=['recipient', 'is_read'], name='notif_recipient_read_idx'),
                    models.Index(fields=['recipient', 'created_at'], name='notif_recipient_created_idx'),
                ],
            },
        ),
    ]
