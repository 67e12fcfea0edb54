# Generated manually for the ledger app

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('customers', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Movement',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('movement_number', models.PositiveIntegerField(unique=True)),
                ('currency', models.CharField(choices=[('USD', 'US Dollar'), ('YER', 'Yemeni Rial'), ('SAR', 'Saudi Riyal'), ('EGP', 'Egyptian Pound'), ('EUR', 'Euro'), ('AED', 'UAE Dirham'), ('QAR', 'Qatari Riyal')], max_length=3)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14, validators=[MinValueValidator(Decimal('0.01'))])),
                ('movement_type', models.CharField(choices=[('incoming', 'Incoming'), ('outgoing', 'Outgoing')], max_length=10)),
                ('note', models.TextField(blank=True)),
                ('is_commission_movement', models.BooleanField(default=False)),
                ('is_internal_transfer', models.BooleanField(default=False)),
                ('transfer_group_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('sender_name', models.CharField(blank=True, max_length=150)),
                ('beneficiary_name', models.CharField(blank=True, max_length=150)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('customer_link', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='movements', to='customers.customerlink')),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='movements', to=settings.AUTH_USER_MODEL)),
                ('related_commission_movement', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='commission_movements', to='ledger.movement')),
            ],
            options={
                'db_table': 'account_movements',
                'ordering': ['-created_at', '-movement_number'],
            },
        ),
        migrations.AddIndex(
            model_name='movement',
            index=models.Index(fields=['owner', 'customer_link', 'created_at'], name='movement_owner_link_idx'),
        ),
        migrations.AddIndex(
            model_name='movement',
            index=models.Index(fields=['owner', 'created_at'], name='movement_owner_created_idx'),
        ),
        migrations.AddConstraint(
            model_name='movement',
            constraint=models.CheckConstraint(check=models.Q(('amount__gt', 0)), name='movement_amount_positive'),
        ),
    ]
