from rest_framework import serializers

from .services import ACTIONS


# =============================================================================
# Input Serializers
# =============================================================================

class AssistantQuerySerializer(serializers.Serializer):
    """
    Validate a chat query.

    Fields:
        query (str): What the user typed, in English or Afrikaans
    """

    query = serializers.CharField(max_length=4000, trim_whitespace=True)


class ActionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=[(name, name) for name in ACTIONS])
    data = serializers.DictField(required=False, allow_null=True)


class ConfirmActionsSerializer(serializers.Serializer):
    """
    Validate actions the user confirmed.

    Fields:
        actions (list): Actions exactly as proposed by the assistant
    """

    actions = ActionSerializer(many=True, allow_empty=False)


class AnalyzeMutationsSerializer(serializers.Serializer):
    document_url = serializers.URLField()


class IdentifyBirdSerializer(serializers.Serializer):
    """
    Validate a photo identification request.

    Fields:
        photo_data_uri (str): ``data:image/<type>;base64,<data>``
        user_description (str): Optional notes on location, size or behaviour
    """

    photo_data_uri = serializers.CharField()
    user_description = serializers.CharField(required=False, allow_blank=True, allow_null=True)


# =============================================================================
# Output Serializers
# =============================================================================

class AssistantReplySerializer(serializers.Serializer):
    actions = ActionSerializer(many=True)
    response = serializers.CharField()
    summary = serializers.ListField(child=serializers.CharField(), required=False)
    error = serializers.CharField(required=False)


class ConfirmResultSerializer(serializers.Serializer):
    ok = serializers.BooleanField()
    message = serializers.CharField()
    summary = serializers.ListField(child=serializers.CharField())
    skipped = serializers.ListField(child=serializers.CharField())
    errors = serializers.ListField(child=serializers.CharField())


class MutationSerializer(serializers.Serializer):
    name = serializers.CharField()
    inheritance = serializers.CharField()


class MutationAnalysisSerializer(serializers.Serializer):
    mutations = MutationSerializer(many=True)
    error = serializers.CharField(required=False)


class IdentificationSerializer(serializers.Serializer):
    is_bird = serializers.BooleanField()
    common_name = serializers.CharField(allow_blank=True)
    latin_name = serializers.CharField(allow_blank=True)
    confidence = serializers.FloatField(min_value=0, max_value=1)
    physical_description = serializers.CharField(allow_blank=True)
    potential_mutations = serializers.ListField(child=serializers.CharField())
    interesting_fact = serializers.CharField(allow_blank=True)
