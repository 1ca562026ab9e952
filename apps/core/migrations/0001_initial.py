import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('properties', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ActivityLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('type', models.CharField(choices=[('TENANCY', 'Tenancy'), ('BILL', 'Bill'), ('LEDGER_ENTRY', 'Ledger Entry'), ('LEDGER_VERIFIED', 'Ledger Entry Verified'), ('PAYMENT', 'Payment'), ('PAYMENT_VERIFIED', 'Payment Verified')], db_index=True, max_length=20)),
                ('description', models.CharField(max_length=500)),
                ('date', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('related_id', models.UUIDField(blank=True, null=True)),
                ('property', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activity_logs', to='properties.property')),
            ],
            options={
                'ordering': ['-date'],
            },
        ),
    ]
