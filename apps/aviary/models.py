from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from .choices import (
    BirdStatus, Category, Inheritance, RecurrencePattern, Sex, TransactionType,
)


class OwnedRow(models.Model):
    """
    One row of a user's aviary collection.

    ``item_id`` is the client-visible string id of the entity, unique within
    its owner's collection. References to other rows are stored as plain
    item ids, not foreign keys: they are weak and may point at rows that no
    longer exist.
    """

    item_id = models.CharField(max_length=64, editable=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='+',
    )
    category = models.CharField(max_length=20, choices=Category.choices)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['owner', 'item_id'], name='%(class)s_owner_item_uniq'),
        ]

    def __str__(self):
        return f'{self.category} {self.item_id}'


class BirdRow(OwnedRow):
    species = models.CharField(max_length=200)
    subspecies = models.CharField(max_length=200, null=True, blank=True)
    sex = models.CharField(max_length=10, choices=Sex.choices, default=Sex.UNSEXED)
    ring_number = models.CharField(max_length=100, null=True, blank=True)
    unbanded = models.BooleanField(default=False)
    birth_date = models.DateField(null=True, blank=True)
    image_url = models.TextField(null=True, blank=True)
    visual_mutations = models.JSONField(default=list, blank=True)
    split_mutations = models.JSONField(default=list, blank=True)
    father_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    mother_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    mate_id = models.CharField(max_length=64, null=True, blank=True)
    offspring_ids = models.JSONField(default=list, blank=True)
    paid_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    estimated_value = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, choices=BirdStatus.choices, default=BirdStatus.AVAILABLE)
    permit_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    sale_details = models.JSONField(null=True, blank=True)
    medical_records = models.JSONField(default=list, blank=True)

    class Meta(OwnedRow.Meta):
        db_table = 'birds'
        indexes = [
            models.Index(fields=['owner', 'species'], name='birds_owner_species_idx'),
            models.Index(fields=['owner', 'status'], name='birds_owner_status_idx'),
        ]


class CageRow(OwnedRow):
    name = models.CharField(max_length=200)
    bird_ids = models.JSONField(default=list, blank=True)
    cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    class Meta(OwnedRow.Meta):
        db_table = 'cages'


class PairRow(OwnedRow):
    male_id = models.CharField(max_length=64, db_index=True)
    female_id = models.CharField(max_length=64, db_index=True)
    image_url = models.TextField(null=True, blank=True)

    class Meta(OwnedRow.Meta):
        db_table = 'pairs'


class BreedingRecordRow(OwnedRow):
    pair_id = models.CharField(max_length=64, db_index=True)
    start_date = models.DateField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    eggs = models.JSONField(default=list, blank=True)

    class Meta(OwnedRow.Meta):
        db_table = 'breeding_records'


class NoteReminderRow(OwnedRow):
    title = models.CharField(max_length=255)
    content = models.TextField(null=True, blank=True)
    is_reminder = models.BooleanField(default=False)
    reminder_date = models.DateField(null=True, blank=True)
    is_recurring = models.BooleanField(default=False)
    recurrence_pattern = models.CharField(
        max_length=10,
        choices=RecurrencePattern.choices,
        default=RecurrencePattern.NONE,
    )
    associated_bird_ids = models.JSONField(default=list, blank=True)
    sub_tasks = models.JSONField(default=list, blank=True)
    completed = models.BooleanField(default=False)

    class Meta(OwnedRow.Meta):
        db_table = 'notes'


class TransactionRow(OwnedRow):
    type = models.CharField(max_length=10, choices=TransactionType.choices)
    date = models.DateField()
    description = models.CharField(max_length=500)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    related_bird_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)

    class Meta(OwnedRow.Meta):
        db_table = 'transactions'
        indexes = [
            models.Index(fields=['owner', 'date'], name='transactions_owner_date_idx'),
        ]


class PermitRow(OwnedRow):
    permit_number = models.CharField(max_length=100)
    issuing_authority = models.CharField(max_length=200)
    issue_date = models.DateField(null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)

    class Meta(OwnedRow.Meta):
        db_table = 'permits'


class CustomSpeciesRow(OwnedRow):
    name = models.CharField(max_length=255)
    incubation_period = models.PositiveIntegerField(null=True, blank=True)
    subspecies = models.JSONField(default=list, blank=True)

    class Meta(OwnedRow.Meta):
        db_table = 'custom_species'


class CustomMutationRow(OwnedRow):
    name = models.CharField(max_length=100)
    inheritance = models.CharField(max_length=40, choices=Inheritance.choices)

    class Meta(OwnedRow.Meta):
        db_table = 'custom_mutations'
