# ==========================================
# apps/aviary/admin.py
# ==========================================

from django.contrib import admin
from .models import (
    BirdRow, BreedingRecordRow, CageRow, CustomMutationRow, CustomSpeciesRow,
    NoteReminderRow, PairRow, PermitRow, TransactionRow,
)


class OwnedRowAdmin(admin.ModelAdmin):
    """Shared read-mostly configuration for aviary tables."""
    list_select_related = ['owner']
    search_fields = ['item_id', 'owner__email']
    readonly_fields = ['item_id', 'owner', 'category', 'created_at']
    date_hierarchy = 'created_at'


@admin.register(BirdRow)
class BirdRowAdmin(OwnedRowAdmin):
    list_display = ['item_id', 'species', 'ring_number', 'sex', 'status', 'owner', 'created_at']
    list_filter = ['status', 'sex']
    search_fields = OwnedRowAdmin.search_fields + ['species', 'ring_number']


@admin.register(CageRow)
class CageRowAdmin(OwnedRowAdmin):
    list_display = ['item_id', 'name', 'owner', 'created_at']
    search_fields = OwnedRowAdmin.search_fields + ['name']


@admin.register(PairRow)
class PairRowAdmin(OwnedRowAdmin):
    list_display = ['item_id', 'male_id', 'female_id', 'owner', 'created_at']


@admin.register(BreedingRecordRow)
class BreedingRecordRowAdmin(OwnedRowAdmin):
    list_display = ['item_id', 'pair_id', 'start_date', 'owner']


@admin.register(NoteReminderRow)
class NoteReminderRowAdmin(OwnedRowAdmin):
    list_display = ['item_id', 'title', 'is_reminder', 'reminder_date', 'completed', 'owner']
    list_filter = ['is_reminder', 'completed', 'recurrence_pattern']


@admin.register(TransactionRow)
class TransactionRowAdmin(OwnedRowAdmin):
    list_display = ['item_id', 'date', 'type', 'description', 'amount', 'owner']
    list_filter = ['type']


@admin.register(PermitRow)
class PermitRowAdmin(OwnedRowAdmin):
    list_display = ['item_id', 'permit_number', 'issuing_authority', 'expiry_date', 'owner']


@admin.register(CustomSpeciesRow)
class CustomSpeciesRowAdmin(OwnedRowAdmin):
    list_display = ['item_id', 'name', 'incubation_period', 'owner']


@admin.register(CustomMutationRow)
class CustomMutationRowAdmin(OwnedRowAdmin):
    list_display = ['item_id', 'name', 'inheritance', 'owner']
    list_filter = ['inheritance']
