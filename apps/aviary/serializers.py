from rest_framework import serializers

from .choices import Category
from .services import EntityValidationError, entity_from_dict, entity_to_dict


# =============================================================================
# Input Serializers
# =============================================================================

class ItemFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for listing items.

    Query Parameters:
        category (str): Only return items of this category
    """

    category = serializers.ChoiceField(choices=Category.choices, required=False)


class ItemSerializer(serializers.Serializer):
    """
    One aviary item, in and out.

    The payload is the item's own fields plus its ``category``. Ids are
    optional on input and generated when missing.
    """

    category = serializers.ChoiceField(choices=Category.choices)
    id = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)

    def to_internal_value(self, data):
        if not isinstance(data, dict):
            raise serializers.ValidationError({'non_field_errors': ['Expected an object.']})
        super().to_internal_value({key: data[key] for key in ('category', 'id') if key in data})
        try:
            return entity_from_dict(data)
        except EntityValidationError as e:
            raise serializers.ValidationError({'non_field_errors': [str(e)]})

    def to_representation(self, instance):
        return entity_to_dict(instance)


class ItemUpdateSerializer(serializers.Serializer):
    """Fields to merge into an item. Any entity field may be given."""

    def to_internal_value(self, data):
        if not isinstance(data, dict) or not data:
            raise serializers.ValidationError({'non_field_errors': ['Expected an object with fields to change.']})
        return dict(data)


class BulkUpdateSerializer(serializers.Serializer):
    """
    Validate a batch update.

    Fields:
        changes (list): Objects holding an ``id`` and the fields to merge
    """

    changes = serializers.ListField(child=serializers.DictField(), allow_empty=False)

    def validate_changes(self, value):
        for change in value:
            if not change.get('id'):
                raise serializers.ValidationError("Every change needs the 'id' of the item to update.")
        return value


class CollectionImportSerializer(serializers.Serializer):
    """
    Validate an exported collection being imported.

    Fields:
        items (list): Items as produced by the export endpoint
    """

    items = ItemSerializer(many=True)


# =============================================================================
# Output Serializers
# =============================================================================

class MutationSummarySerializer(serializers.Serializer):
    inserted = serializers.ListField(child=serializers.CharField())
    updated = serializers.ListField(child=serializers.CharField())
    deleted = serializers.ListField(child=serializers.CharField())


class CollectionExportSerializer(serializers.Serializer):
    version = serializers.IntegerField()
    items = ItemSerializer(many=True)


def mutation_summary(command) -> dict:
    if command is None:
        return {'inserted': [], 'updated': [], 'deleted': []}
    return {
        'inserted': [entity.id for entity in command.inserts],
        'updated': [after.id for _, after in command.updates],
        'deleted': [entity.id for _, entity in command.deletes],
    }


class PedigreeNodeSerializer(serializers.Serializer):
    """One bird in a pedigree; ``father`` and ``mother`` are nested nodes."""

    role = serializers.CharField()
    level = serializers.IntegerField()
    bird_id = serializers.CharField(allow_null=True)
    state = serializers.ChoiceField(choices=['found', 'unknown', 'not_found'])
    label = serializers.CharField()
    father = serializers.DictField(allow_null=True)
    mother = serializers.DictField(allow_null=True)


class CountSerializer(serializers.Serializer):
    name = serializers.CharField()
    value = serializers.IntegerField()


class MonthlyCountSerializer(serializers.Serializer):
    period = serializers.CharField()
    label = serializers.CharField()
    value = serializers.IntegerField()


class AviarySummarySerializer(serializers.Serializer):
    species = CountSerializer(many=True)
    statuses = CountSerializer(many=True)
    births = MonthlyCountSerializer(many=True)
