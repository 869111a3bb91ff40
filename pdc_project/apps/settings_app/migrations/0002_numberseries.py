from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('settings_app', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='NumberSeries',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('document_type', models.CharField(max_length=50)),
                ('year', models.PositiveIntegerField()),
                ('next_number', models.PositiveIntegerField(default=1)),
            ],
            options={
                'verbose_name_plural': 'Number Series',
                'constraints': [models.UniqueConstraint(fields=('document_type', 'year'), name='number_series_type_year_uniq')],
            },
        ),
    ]
