# Back-office entry when an admin changes a tuning file

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('notifications', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='notification',
            name='notification_type',
            field=models.CharField(choices=[('file_uploaded', 'File uploaded'), ('file_status_update', 'File status update'), ('estimated_time_update', 'Estimated time update'), ('file_price_update', 'File price update'), ('payment_confirmed', 'Payment confirmed'), ('admin_comment', 'Admin comment'), ('order_placed', 'Order placed'), ('shipment_update', 'Shipment update'), ('file_update_by_admin', 'File updated by admin')], max_length=40),
        ),
    ]
