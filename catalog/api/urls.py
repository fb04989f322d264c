"""
Catalog API URL Configuration

Endpoints:
- GET  /api/v1/whiskies/<id>/related/          - Related whiskies for display
- POST /api/v1/whiskies/<id>/related/rebuild/  - Rebuild related whiskies (admin)
"""

from django.urls import path

from catalog.api.views import related_whiskies, rebuild_related

app_name = 'catalog_api'

urlpatterns = [
    path('whiskies/<uuid:whisky_id>/related/', related_whiskies, name='related_whiskies'),
    path('whiskies/<uuid:whisky_id>/related/rebuild/', rebuild_related, name='rebuild_related'),
]
