from decimal import Decimal
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


STATUS_CHOICES = [
    ('RECEIVED', 'Received'),
    ('DUE', 'Due'),
    ('DEPOSITED', 'Deposited'),
    ('CLEARED', 'Cleared'),
    ('BOUNCED', 'Bounced'),
    ('REPLACED', 'Replaced'),
    ('WITHDRAWN', 'Withdrawn'),
    ('CANCELLED', 'Cancelled'),
]

REPLACEMENT_METHOD_CHOICES = [
    ('BANK_TRANSFER', 'Bank Transfer'),
    ('CASH', 'Cash'),
    ('NEW_CHEQUE', 'New Cheque'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('property', '0001_initial'),
        ('finance', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PDCCheque',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('is_active', models.BooleanField(default=True)),
                ('version', models.PositiveIntegerField(default=1)),
                ('pdc_number', models.CharField(editable=False, max_length=50, unique=True)),
                ('cheque_number', models.CharField(max_length=50, validators=[django.core.validators.RegexValidator('^[A-Za-z0-9-]{3,50}$', 'Cheque number must be 3-50 characters of letters, digits or hyphens.')])),
                ('bank_name', models.CharField(max_length=100)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.01')), django.core.validators.MaxValueValidator(Decimal('99999999.99'))])),
                ('cheque_date', models.DateField(help_text='Date printed on the cheque')),
                ('status', models.CharField(choices=STATUS_CHOICES, default='RECEIVED', max_length=20)),
                ('deposit_date', models.DateField(blank=True, null=True)),
                ('cleared_date', models.DateField(blank=True, null=True)),
                ('bounced_date', models.DateField(blank=True, null=True)),
                ('bounce_reason', models.CharField(blank=True, max_length=255)),
                ('withdrawal_date', models.DateField(blank=True, null=True)),
                ('withdrawal_reason', models.CharField(blank=True, max_length=255)),
                ('replacement_payment_method', models.CharField(blank=True, choices=REPLACEMENT_METHOD_CHOICES, max_length=20)),
                ('transaction_id', models.CharField(blank=True, max_length=100)),
                ('notes', models.TextField(blank=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pdc_pdccheque_created', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pdc_pdccheque_updated', to=settings.AUTH_USER_MODEL)),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='pdc_cheques', to='property.tenant')),
                ('lease', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='pdc_cheques', to='property.lease')),
                ('invoice', models.ForeignKey(blank=True, help_text='Invoice settled when the cheque clears', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='pdc_cheques', to='property.rentinvoice')),
                ('deposit_bank_account', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='deposited_pdcs', to='finance.bankaccount')),
                ('original_cheque', models.OneToOneField(blank=True, help_text='Bounced cheque this one replaces', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='pdc.pdccheque')),
                ('replacement_cheque', models.OneToOneField(blank=True, help_text='Cheque that replaced this one', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='pdc.pdccheque')),
            ],
            options={
                'verbose_name': 'PDC Cheque',
                'verbose_name_plural': 'PDC Cheques',
                'ordering': ['cheque_date', 'id'],
                'indexes': [
                    models.Index(fields=['status', 'cheque_date'], name='pdc_status_date_idx'),
                    models.Index(fields=['tenant', 'status'], name='pdc_tenant_status_idx'),
                    models.Index(fields=['deposit_date'], name='pdc_deposit_date_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'CANCELLED'), _negated=True), fields=('tenant', 'cheque_number'), name='pdc_unique_tenant_cheque_number'),
                    models.CheckConstraint(condition=models.Q(('amount__gt', 0)), name='pdc_amount_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PDCStatusHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('from_status', models.CharField(blank=True, choices=STATUS_CHOICES, max_length=20, null=True)),
                ('to_status', models.CharField(choices=STATUS_CHOICES, max_length=20)),
                ('timestamp', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('notes', models.TextField(blank=True)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pdc_status_changes', to=settings.AUTH_USER_MODEL)),
                ('pdc', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='status_history', to='pdc.pdccheque')),
            ],
            options={
                'verbose_name_plural': 'PDC status history',
                'ordering': ['timestamp', 'id'],
                'indexes': [models.Index(fields=['to_status', 'timestamp'], name='pdchist_to_status_ts_idx')],
            },
        ),
    ]
