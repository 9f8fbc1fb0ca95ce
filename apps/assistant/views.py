import logging

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.aviary.views import get_item_store

from .exceptions import InferenceOverloaded, InferenceUnavailable, InvalidPhoto
from .serializers import (
    AnalyzeMutationsSerializer,
    AssistantQuerySerializer,
    AssistantReplySerializer,
    ConfirmActionsSerializer,
    ConfirmResultSerializer,
    IdentificationSerializer,
    IdentifyBirdSerializer,
    MutationAnalysisSerializer,
)
from .services import (
    InferenceError,
    InferenceOverloadedError,
    InvalidImageError,
    analyze_mutations,
    ask_assistant,
    confirm_actions,
    identify_bird,
)

logger = logging.getLogger(__name__)


@extend_schema(
    request=AssistantQuerySerializer,
    responses={200: AssistantReplySerializer},
    description=(
        "Ask the assistant about your aviary. Proposed actions are returned, "
        "not applied; send them to the confirm endpoint to apply them. "
        "Model failures are reported in the 'error' field."
    ),
    tags=['assistant'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def ask(request):
    """Ask the assistant a question or give it a command."""
    serializer = AssistantQuerySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    store = get_item_store(request.user)
    reply = ask_assistant(
        query=serializer.validated_data['query'],
        items=store.snapshot(),
        currency=request.user.currency,
    )
    return Response(reply)


@extend_schema(
    request=ConfirmActionsSerializer,
    responses={200: ConfirmResultSerializer, 502: ConfirmResultSerializer},
    description='Apply actions proposed by the assistant.',
    tags=['assistant'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def confirm(request):
    """Apply confirmed assistant actions to the user's aviary."""
    serializer = ConfirmActionsSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    store = get_item_store(request.user)
    result = async_to_sync(confirm_actions)(store=store, actions=serializer.validated_data['actions'])
    return Response(result, status=status.HTTP_200_OK if result['ok'] else status.HTTP_502_BAD_GATEWAY)


@extend_schema(
    request=AnalyzeMutationsSerializer,
    responses={200: MutationAnalysisSerializer},
    description='List the colour mutations and their inheritance found in a document.',
    tags=['assistant'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def analyze_document(request):
    serializer = AnalyzeMutationsSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return Response(analyze_mutations(document_url=serializer.validated_data['document_url']))


@extend_schema(
    request=IdentifyBirdSerializer,
    responses={200: IdentificationSerializer},
    description='Identify the species and likely mutations of the bird in a photo.',
    tags=['assistant'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def identify(request):
    """Identify a bird from a photo."""
    serializer = IdentifyBirdSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = identify_bird(**serializer.validated_data)
    except InvalidImageError as e:
        raise InvalidPhoto(detail=str(e))
    except InferenceOverloadedError:
        raise InferenceOverloaded()
    except InferenceError as e:
        logger.error('Identification failed for user %s: %s', request.user.pk, e)
        raise InferenceUnavailable()
    return Response(result)
