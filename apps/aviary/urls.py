from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'aviary'

router = DefaultRouter()
router.register(r'items', views.ItemViewSet, basename='item')

urlpatterns = [
    # GET    /api/items/                 - List items (?category=)
    # POST   /api/items/                 - Add one item or a batch
    # PATCH  /api/items/bulk/            - Update several items at once
    # GET    /api/items/summary/         - Species, status and birth counts
    # GET    /api/items/export/          - Export the whole collection
    # POST   /api/items/import/          - Import an exported collection
    # GET    /api/items/{id}/            - Get one item
    # PATCH  /api/items/{id}/            - Merge fields into an item
    # DELETE /api/items/{id}/            - Delete an item (cascading)
    # POST   /api/items/{id}/complete/   - Complete a note or reminder
    # GET    /api/items/{id}/pedigree/   - Ancestry of a bird
    path('', include(router.urls)),
]
