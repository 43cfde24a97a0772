"""
Stockledger Admin.

- Product: editable, except ledger-owned fields (stock after creation, version)
- Movement: read-only audit trail
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from stockledger.models import Movement, Product


# =========================================================================
# PRODUCT ADMIN
# =========================================================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Product admin. Stock only changes via movements once created."""

    list_display = ['code', 'name', 'stock', 'min_stock', 'max_stock',
                    'allow_negative_stock', 'below_minimum_display']
    list_filter = ['allow_negative_stock']
    search_fields = ['code', 'name']
    readonly_fields = ['initial_stock', 'version', 'created_at', 'updated_at']

    def get_readonly_fields(self, request, obj=None):
        fields = list(super().get_readonly_fields(request, obj))
        if obj is not None:
            fields.append('stock')
        return fields

    def has_delete_permission(self, request, obj=None):
        if not super().has_delete_permission(request, obj):
            return False
        # Products with movements are PROTECTed anyway
        return obj is None or not obj.movements.exists()

    @admin.display(description=_('Abaixo do mínimo?'), boolean=True)
    def below_minimum_display(self, obj):
        return obj.is_below_minimum


# =========================================================================
# MOVEMENT ADMIN (read-only audit trail)
# =========================================================================

@admin.register(Movement)
class MovementAdmin(admin.ModelAdmin):
    """Movement admin — read-only. Immutable audit trail."""

    list_display = ['created_at', 'product', 'direction', 'quantity', 'reason',
                    'old_stock', 'new_stock', 'actor_name']
    list_filter = ['direction', 'reason', 'created_at']
    search_fields = ['product__code', 'product__name', 'source_code', 'notes']
    readonly_fields = ['product', 'direction', 'quantity', 'reason', 'old_stock',
                       'new_stock', 'notes', 'source_code', 'actor_id', 'actor_name',
                       'created_at']
    list_select_related = ['product']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
