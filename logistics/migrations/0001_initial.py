import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=[('pending', 'En attente'), ('accepted', 'Acceptée'), ('in_progress', 'En cours'), ('completed', 'Livrée'), ('cancelled', 'Annulée')], default='pending', max_length=20, verbose_name='Statut')),
                ('from_city', models.CharField(choices=[('yaounde', 'Yaoundé'), ('douala', 'Douala'), ('bafoussam', 'Bafoussam')], max_length=20, verbose_name='Ville de départ')),
                ('to_city', models.CharField(choices=[('yaounde', 'Yaoundé'), ('douala', 'Douala'), ('bafoussam', 'Bafoussam')], max_length=20, verbose_name='Ville de destination')),
                ('pickup_address', models.CharField(max_length=255, verbose_name='Adresse de collecte')),
                ('delivery_address', models.CharField(max_length=255, verbose_name='Adresse de livraison')),
                ('description', models.TextField(verbose_name='Description du colis')),
                ('weight_kg', models.DecimalField(decimal_places=2, max_digits=8, verbose_name='Poids (kg)')),
                ('fragile', models.BooleanField(default=False, verbose_name='Fragile')),
                ('urgent', models.BooleanField(default=False, verbose_name='Urgent')),
                ('recipient_name', models.CharField(max_length=150, verbose_name='Nom destinataire')),
                ('recipient_phone', models.CharField(max_length=15, verbose_name='Téléphone destinataire')),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='Prix total (XAF)')),
                ('platform_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='Commission plateforme (XAF)')),
                ('driver_earning', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='Gain chauffeur (XAF)')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('accepted_at', models.DateTimeField(blank=True, null=True)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to=settings.AUTH_USER_MODEL, verbose_name='Client')),
                ('driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='driven_orders', to=settings.AUTH_USER_MODEL, verbose_name='Chauffeur')),
            ],
            options={
                'verbose_name': 'Commande',
                'verbose_name_plural': 'Commandes',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='order_status_created_idx'),
                    models.Index(fields=['client', 'created_at'], name='order_client_created_idx'),
                    models.Index(fields=['driver', 'status'], name='order_driver_status_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(('driver__isnull', False), ('status__in', ['accepted', 'in_progress', 'completed'])),
                            models.Q(('driver__isnull', True), ('status__in', ['pending', 'cancelled'])),
                            _connector='OR',
                        ),
                        name='order_driver_matches_status',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='ChatMessage',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('sender_role', models.CharField(choices=[('client', 'Client'), ('driver', 'Chauffeur')], max_length=10, verbose_name='Rôle expéditeur')),
                ('message', models.TextField(verbose_name='Message')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('read', models.BooleanField(default=False, verbose_name='Lu')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='logistics.order', verbose_name='Commande')),
                ('sender', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='chat_messages', to=settings.AUTH_USER_MODEL, verbose_name='Expéditeur')),
            ],
            options={
                'verbose_name': 'Message',
                'verbose_name_plural': 'Messages',
                'ordering': ['timestamp'],
                'indexes': [
                    models.Index(fields=['order', 'timestamp'], name='chat_order_timestamp_idx'),
                    models.Index(fields=['order', 'read'], name='chat_order_read_idx'),
                ],
            },
        ),
    ]
