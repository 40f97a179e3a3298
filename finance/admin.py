"""
Django Admin configuration for FINANCE app.
"""

from django.contrib import admin
from .models import Transaction


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """Admin for Transaction with audit trail."""

    list_display = (
        'short_id',
        'user_email',
        'transaction_type',
        'formatted_amount',
        'balance_after',
        'order_link',
        'created_at'
    )
    list_filter = ('transaction_type', 'created_at')
    search_fields = (
        'id',
        'user__email',
        'user__full_name',
        'description'
    )
    ordering = ('-created_at',)
    date_hierarchy = 'created_at'

    readonly_fields = (
        'id',
        'user',
        'transaction_type',
        'amount',
        'balance_before',
        'balance_after',
        'order',
        'description',
        'created_at'
    )

    def short_id(self, obj):
        return str(obj.id)[:8]
    short_id.short_description = "ID"

    def user_email(self, obj):
        return obj.user.email
    user_email.short_description = "Utilisateur"

    def formatted_amount(self, obj):
        sign = '+' if obj.amount >= 0 else ''
        return f"{sign}{obj.amount} XAF"
    formatted_amount.short_description = "Montant"

    def order_link(self, obj):
        if obj.order_id:
            return str(obj.order_id)[:8]
        return "-"
    order_link.short_description = "Commande"

    def has_add_permission(self, request):
        """Transactions are created by the wallet service only."""
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    actions = ['export_transactions_csv']

    @admin.action(description="📥 Exporter en CSV")
    def export_transactions_csv(self, request, queryset):
        import csv
        from django.http import HttpResponse

        response = HttpResponse(content_type='text/csv')
        response['Content-Disposition'] = 'attachment; filename="transactions_kwiigo.csv"'
        response.write('\ufeff')

        writer = csv.writer(response)
        writer.writerow([
            'ID', 'Utilisateur', 'Type', 'Montant', 'Solde avant', 'Solde après',
            'Commande', 'Description', 'Date'
        ])

        for t in queryset.select_related('user'):
            writer.writerow([
                str(t.id)[:8],
                t.user.email,
                t.get_transaction_type_display(),
                f"{t.amount} XAF",
                f"{t.balance_before} XAF",
                f"{t.balance_after} XAF",
                str(t.order_id)[:8] if t.order_id else '-',
                t.description,
                t.created_at.strftime('%d/%m/%Y %H:%M'),
            ])
        return response
