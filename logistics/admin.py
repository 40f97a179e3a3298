"""
Django Admin configuration for LOGISTICS app.
"""

from django.contrib import admin

from .models import ChatMessage, Order, OrderStatus
from .exceptions import LifecycleError
from .services import lifecycle


class ChatMessageInline(admin.TabularInline):
    model = ChatMessage
    extra = 0
    fields = ('timestamp', 'sender_role', 'sender', 'message', 'read')
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Admin for Order with full details. Status changes go through the lifecycle service."""

    list_display = (
        'short_id',
        'status',
        'from_city',
        'to_city',
        'client_email',
        'driver_name',
        'price',
        'created_at'
    )
    list_filter = ('status', 'from_city', 'to_city', 'urgent', 'fragile', 'created_at')
    search_fields = (
        'id',
        'client__email',
        'client__full_name',
        'driver__email',
        'recipient_phone',
    )
    ordering = ('-created_at',)
    date_hierarchy = 'created_at'
    inlines = [ChatMessageInline]

    readonly_fields = (
        'id',
        'status',
        'client',
        'driver',
        'from_city',
        'to_city',
        'weight_kg',
        'fragile',
        'urgent',
        'price',
        'platform_fee',
        'driver_earning',
        'created_at',
        'updated_at',
        'accepted_at',
        'started_at',
        'completed_at',
        'cancelled_at',
    )

    fieldsets = (
        ('Identification', {
            'fields': ('id', 'status')
        }),
        ('Acteurs', {
            'fields': ('client', 'driver', 'recipient_name', 'recipient_phone')
        }),
        ('Trajet', {
            'fields': ('from_city', 'to_city', 'pickup_address', 'delivery_address')
        }),
        ('Colis', {
            'fields': ('description', 'weight_kg', 'fragile', 'urgent')
        }),
        ('Tarification', {
            'fields': ('price', 'platform_fee', 'driver_earning')
        }),
        ('Historique', {
            'fields': (
                'created_at', 'updated_at', 'accepted_at',
                'started_at', 'completed_at', 'cancelled_at'
            ),
            'classes': ('collapse',)
        }),
    )

    def short_id(self, obj):
        return str(obj.id)[:8]
    short_id.short_description = "ID"

    def client_email(self, obj):
        return obj.client.email
    client_email.short_description = "Client"

    def driver_name(self, obj):
        if obj.driver:
            return obj.driver.full_name or obj.driver.email
        return "-"
    driver_name.short_description = "Chauffeur"

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    # Quick actions
    actions = ['cancel_orders', 'export_orders_csv']

    @admin.action(description="📥 Exporter en CSV")
    def export_orders_csv(self, request, queryset):
        import csv
        from django.http import HttpResponse

        response = HttpResponse(content_type='text/csv')
        response['Content-Disposition'] = 'attachment; filename="commandes_kwiigo.csv"'
        response.write('\ufeff')

        writer = csv.writer(response)
        writer.writerow([
            'ID', 'Statut', 'Départ', 'Arrivée', 'Client', 'Chauffeur',
            'Poids (kg)', 'Prix Total', 'Commission', 'Gain Chauffeur',
            'Créée le', 'Livrée le'
        ])

        for o in queryset.select_related('client', 'driver'):
            writer.writerow([
                str(o.id)[:8],
                o.get_status_display(),
                o.get_from_city_display(),
                o.get_to_city_display(),
                o.client.email,
                o.driver.email if o.driver else '-',
                o.weight_kg,
                f"{o.price} XAF",
                f"{o.platform_fee} XAF",
                f"{o.driver_earning} XAF",
                o.created_at.strftime('%d/%m/%Y %H:%M') if o.created_at else '',
                o.completed_at.strftime('%d/%m/%Y %H:%M') if o.completed_at else '',
            ])
        return response

    @admin.action(description="Annuler les commandes en attente")
    def cancel_orders(self, request, queryset):
        cancelled = 0
        for order in queryset.filter(status=OrderStatus.PENDING):
            try:
                lifecycle.cancel_order(order, request.user)
                cancelled += 1
            except LifecycleError as e:
                self.message_user(request, f"{str(order.id)[:8]}: {e}")
        self.message_user(request, f"{cancelled} commande(s) annulée(s).")


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ('order', 'sender_role', 'sender', 'timestamp', 'read')
    list_filter = ('sender_role', 'read')
    search_fields = ('order__id', 'sender__email', 'message')
    readonly_fields = ('id', 'order', 'sender', 'sender_role', 'message', 'timestamp', 'read')
