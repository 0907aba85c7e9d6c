from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Tenant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Official name of the driving school', max_length=255, unique=True)),
                ('slug', models.SlugField(help_text='URL-safe identifier for the tenant', max_length=255, unique=True)),
                ('is_active', models.BooleanField(db_index=True, default=True, help_text='Whether this tenant can access the system')),
                ('settings', models.JSONField(blank=True, default=dict, help_text='Tenant-specific configuration (e.g., modules: {payments, bookings, reporting})')),
                ('contact_email', models.EmailField(blank=True, help_text='Primary contact email for this tenant', max_length=254)),
                ('contact_phone', models.CharField(blank=True, help_text='Primary contact phone number', max_length=20)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, help_text='Timestamp when tenant was soft-deleted', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Tenant',
                'verbose_name_plural': 'Tenants',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['slug', 'is_active'], name='tenant_slug_active_idx')],
            },
        ),
    ]
