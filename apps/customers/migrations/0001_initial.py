# Generated manually for the customers app

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='LocalCustomer',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('display_name', models.CharField(max_length=150)),
                ('phone', models.CharField(blank=True, max_length=30)),
                ('note', models.TextField(blank=True)),
                ('local_account_number', models.PositiveIntegerField()),
                ('is_profit_loss_account', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='local_customers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'local_customers',
                'ordering': ['local_account_number'],
            },
        ),
        migrations.CreateModel(
            name='CustomerLink',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('kind', models.CharField(choices=[('registered', 'Registered'), ('local', 'Local')], max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='customer_links', to=settings.AUTH_USER_MODEL)),
                ('registered_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='customer_of_links', to=settings.AUTH_USER_MODEL)),
                ('local_customer', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='link', to='customers.localcustomer')),
            ],
            options={
                'db_table': 'user_customers',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddConstraint(
            model_name='localcustomer',
            constraint=models.UniqueConstraint(fields=('owner', 'local_account_number'), name='unique_local_account_number_per_owner'),
        ),
        migrations.AddConstraint(
            model_name='localcustomer',
            constraint=models.UniqueConstraint(condition=models.Q(('is_profit_loss_account', True)), fields=('owner',), name='one_profit_loss_account_per_owner'),
        ),
        migrations.AddIndex(
            model_name='customerlink',
            index=models.Index(fields=['owner', 'created_at'], name='customer_owner_created_idx'),
        ),
        migrations.AddConstraint(
            model_name='customerlink',
            constraint=models.CheckConstraint(check=models.Q(models.Q(('kind', 'registered'), ('local_customer__isnull', True), ('registered_user__isnull', False)), models.Q(('kind', 'local'), ('local_customer__isnull', False), ('registered_user__isnull', True)), _connector='OR'), name='customer_link_single_backing'),
        ),
        migrations.AddConstraint(
            model_name='customerlink',
            constraint=models.UniqueConstraint(condition=models.Q(('registered_user__isnull', False)), fields=('owner', 'registered_user'), name='unique_registered_customer_per_owner'),
        ),
    ]
