from django.contrib import admin

from .models import DeadStockItem


@admin.register(DeadStockItem)
class DeadStockItemAdmin(admin.ModelAdmin):
    list_display = ('item_name', 'quantity', 'price', 'purchase_date', 'status')
    list_filter = ('status',)
    search_fields = ('item_name', 'description')
