from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('pdc', '0001_initial'),
        ('finance', '0002_payment'),
        ('property', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PDCWithdrawal',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('withdrawal_date', models.DateField()),
                ('reason', models.CharField(max_length=255)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('replacement_payment_method', models.CharField(blank=True, choices=[('BANK_TRANSFER', 'Bank Transfer'), ('CASH', 'Cash'), ('NEW_CHEQUE', 'New Cheque')], max_length=20)),
                ('transaction_id', models.CharField(blank=True, max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('bank_account', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='pdc_withdrawals', to='finance.bankaccount')),
                ('payment', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='pdc_withdrawal', to='finance.payment')),
                ('pdc', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='withdrawal', to='pdc.pdccheque')),
                ('recorded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pdc_withdrawals', to=settings.AUTH_USER_MODEL)),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='pdc_withdrawals', to='property.tenant')),
            ],
            options={
                'ordering': ['-withdrawal_date', '-id'],
                'indexes': [
                    models.Index(fields=['reason', 'withdrawal_date'], name='pdcwd_reason_date_idx'),
                    models.Index(fields=['withdrawal_date'], name='pdcwd_date_idx'),
                ],
            },
        ),
    ]
