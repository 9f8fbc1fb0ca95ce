import logging

from asgiref.sync import async_to_sync
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .exceptions import ItemNotFound, ItemValidationFailed, RemoteStoreUnavailable
from .serializers import (
    AviarySummarySerializer,
    BulkUpdateSerializer,
    CollectionExportSerializer,
    CollectionImportSerializer,
    ItemFilterSerializer,
    ItemSerializer,
    ItemUpdateSerializer,
    MutationSummarySerializer,
    PedigreeNodeSerializer,
    mutation_summary,
)
from .services import (
    Bird, ItemStore, RemoteSyncError, aviary_summary, build_pedigree, load_store,
)
from .services.local_cache import CACHE_FORMAT_VERSION

logger = logging.getLogger(__name__)


def get_item_store(user) -> ItemStore:
    """Hydrate the requesting user's store."""
    try:
        return async_to_sync(load_store)(user)
    except RemoteSyncError as e:
        logger.error('Could not load items for user %s: %s', user.pk, e)
        raise RemoteStoreUnavailable(detail='Your aviary could not be loaded.')


def run_mutation(store: ItemStore, operation: str, *args):
    """Run one store mutation and turn a failed result into an HTTP error."""
    result = async_to_sync(getattr(store, operation))(*args)
    if result.ok:
        return result
    if isinstance(result.error, RemoteSyncError):
        raise RemoteStoreUnavailable()
    raise ItemValidationFailed(detail=str(result.error))


class ItemViewSet(viewsets.ViewSet):
    """
    The signed-in user's aviary collection.

    list: All items, most recent first (filterable by category)
    create: Add one item, or a list of items as one batch
    retrieve: Get one item
    partial_update: Merge fields into one item
    destroy: Delete one item (cascading for birds and permits)
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = '[^/]+'

    def _get_item(self, store, pk):
        item = store.get(pk)
        if item is None:
            raise ItemNotFound()
        return item

    @extend_schema(
        parameters=[
            OpenApiParameter('category', OpenApiTypes.STR, description='Only items of this category'),
        ],
        responses={200: ItemSerializer(many=True)},
        tags=['items'],
    )
    def list(self, request):
        filter_serializer = ItemFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        category = filter_serializer.validated_data.get('category')

        store = get_item_store(request.user)
        items = store.of_category(category) if category else store.snapshot()
        return Response(ItemSerializer(items, many=True).data)

    @extend_schema(
        request=ItemSerializer,
        responses={201: ItemSerializer(many=True)},
        description='Add one item, or a list of items. A list is stored all-or-nothing.',
        tags=['items'],
    )
    def create(self, request):
        many = isinstance(request.data, list)
        serializer = ItemSerializer(data=request.data, many=many)
        serializer.is_valid(raise_exception=True)
        entities = serializer.validated_data if many else [serializer.validated_data]

        store = get_item_store(request.user)
        run_mutation(store, 'add_many', entities)
        data = ItemSerializer(entities, many=True).data
        return Response(data if many else data[0], status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: ItemSerializer}, tags=['items'])
    def retrieve(self, request, pk=None):
        store = get_item_store(request.user)
        return Response(ItemSerializer(self._get_item(store, pk)).data)

    @extend_schema(request=ItemUpdateSerializer, responses={200: ItemSerializer}, tags=['items'])
    def partial_update(self, request, pk=None):
        serializer = ItemUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        store = get_item_store(request.user)
        self._get_item(store, pk)
        run_mutation(store, 'update_one', pk, serializer.validated_data)
        return Response(ItemSerializer(store.get(pk)).data)

    @extend_schema(responses={200: MutationSummarySerializer}, tags=['items'])
    def destroy(self, request, pk=None):
        store = get_item_store(request.user)
        self._get_item(store, pk)
        result = run_mutation(store, 'delete_item', pk)
        return Response(mutation_summary(result.command))

    @extend_schema(
        request=BulkUpdateSerializer,
        responses={200: MutationSummarySerializer},
        description='Update several items. Either every change is saved or none is.',
        tags=['items'],
    )
    @action(detail=False, methods=['patch'])
    def bulk(self, request):
        serializer = BulkUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        store = get_item_store(request.user)
        result = run_mutation(store, 'update_many', serializer.validated_data['changes'])
        return Response(mutation_summary(result.command))

    @extend_schema(
        request=None,
        responses={200: ItemSerializer},
        description='Complete a note. Recurring reminders move on to their next date.',
        tags=['items'],
    )
    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        store = get_item_store(request.user)
        self._get_item(store, pk)
        run_mutation(store, 'complete_reminder', pk)
        return Response(ItemSerializer(store.get(pk)).data)

    @extend_schema(
        responses={200: PedigreeNodeSerializer},
        description='Ancestors of a bird through its father and mother, five generations deep.',
        tags=['items'],
    )
    @action(detail=True, methods=['get'])
    def pedigree(self, request, pk=None):
        store = get_item_store(request.user)
        if not isinstance(self._get_item(store, pk), Bird):
            raise ItemNotFound(detail='Bird not found.')
        return Response(build_pedigree(store.snapshot(), pk))

    @extend_schema(
        responses={200: AviarySummarySerializer},
        description='Species distribution, status counts and births per month over the last year.',
        tags=['items'],
    )
    @action(detail=False, methods=['get'])
    def summary(self, request):
        store = get_item_store(request.user)
        return Response(AviarySummarySerializer(aviary_summary(store.snapshot())).data)

    @extend_schema(responses={200: CollectionExportSerializer}, tags=['items'])
    @action(detail=False, methods=['get'])
    def export(self, request):
        store = get_item_store(request.user)
        return Response({
            'version': CACHE_FORMAT_VERSION,
            'items': ItemSerializer(store.snapshot(), many=True).data,
        })

    @extend_schema(
        request=CollectionImportSerializer,
        responses={201: MutationSummarySerializer},
        description='Add every item of an exported collection, keeping ids and order.',
        tags=['items'],
    )
    @action(detail=False, methods=['post'], url_path='import')
    def import_items(self, request):
        serializer = CollectionImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        store = get_item_store(request.user)
        result = run_mutation(store, 'add_many', serializer.validated_data['items'], 'import')
        return Response(mutation_summary(result.command), status=status.HTTP_201_CREATED)
