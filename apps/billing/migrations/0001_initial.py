import uuid

import apps.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('leases', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Bill',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('month', models.DateField(help_text='First day of the billed calendar month.')),
                ('due_date', models.DateField()),
                ('rent', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('electricity_units', models.PositiveIntegerField(default=0)),
                ('electricity_rate', models.DecimalField(decimal_places=4, default=0, max_digits=12)),
                ('electricity_total', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('water_bill', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('carry_forward', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('total_bill', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('paid_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('remaining_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('partial', 'Partially Paid'), ('paid', 'Paid'), ('overdue', 'Overdue')], db_index=True, default='pending', max_length=10)),
                ('currency', models.CharField(choices=[('INR', 'Indian Rupee'), ('USD', 'US Dollar'), ('GBP', 'British Pound'), ('EUR', 'Euro'), ('AUD', 'Australian Dollar'), ('CAD', 'Canadian Dollar'), ('SGD', 'Singapore Dollar'), ('AED', 'UAE Dirham')], default='INR', max_length=3)),
                ('note', models.TextField(blank=True, default='')),
                ('tenancy', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bills', to='leases.tenancy')),
            ],
            options={
                'ordering': ['-month'],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[apps.core.validators.validate_non_negative])),
                ('paid_at', models.DateTimeField()),
                ('payment_method', models.CharField(choices=[('upi', 'UPI'), ('cash', 'Cash'), ('bank_transfer', 'Bank Transfer'), ('cheque', 'Cheque'), ('other', 'Other')], max_length=15)),
                ('payment_proof', models.CharField(blank=True, default='', help_text='Opaque storage key or URL of the proof.', max_length=1024)),
                ('note', models.TextField(blank=True, default='')),
                ('verified_by_tenant', models.BooleanField(default=False)),
                ('verified_at', models.DateTimeField(blank=True, null=True)),
                ('bill', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='billing.bill')),
                ('recorded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='recorded_payments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-paid_at'],
            },
        ),
        migrations.CreateModel(
            name='LedgerEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('sequence', models.PositiveIntegerField(help_text='Creation order within the bill.')),
                ('entry_date', models.DateTimeField()),
                ('description', models.CharField(max_length=255)),
                ('electricity_previous_reading', models.PositiveIntegerField(blank=True, null=True)),
                ('electricity_current_reading', models.PositiveIntegerField(blank=True, null=True)),
                ('electricity_units_consumed', models.PositiveIntegerField(blank=True, null=True)),
                ('electricity_rate', models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True)),
                ('electricity_total', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('water_bill', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('rent_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('debit_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('credit_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('payment_method', models.CharField(blank=True, choices=[('upi', 'UPI'), ('cash', 'Cash'), ('bank_transfer', 'Bank Transfer'), ('cheque', 'Cheque'), ('other', 'Other')], default='', max_length=15)),
                ('payment_proof', models.CharField(blank=True, default='', max_length=1024)),
                ('verified_by_tenant', models.BooleanField(default=False)),
                ('verified_at', models.DateTimeField(blank=True, null=True)),
                ('is_edited', models.BooleanField(default=False)),
                ('edited_at', models.DateTimeField(blank=True, null=True)),
                ('created_by', models.CharField(choices=[('landlord', 'Landlord'), ('tenant', 'Tenant')], default='landlord', max_length=10)),
                ('bill', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='entries', to='billing.bill')),
                ('payment', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entry', to='billing.payment')),
            ],
            options={
                'verbose_name_plural': 'Ledger entries',
                'ordering': ['bill', 'sequence'],
            },
        ),
        migrations.AddConstraint(
            model_name='bill',
            constraint=models.UniqueConstraint(fields=('tenancy', 'month'), name='unique_bill_per_tenancy_month'),
        ),
        migrations.AddConstraint(
            model_name='ledgerentry',
            constraint=models.UniqueConstraint(fields=('bill', 'sequence'), name='unique_entry_sequence_per_bill'),
        ),
    ]
