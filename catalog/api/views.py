"""
Catalog API Views

REST endpoints around the related-whisky engine:
- Related whiskies of a whisky, for the detail page (public, read-only)
- Manual rebuild of a whisky's related set (admin only)

The read endpoint never recomputes; it serves whatever the last rebuild
persisted.
"""

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from catalog.api.throttling import RelatedReadThrottle, RebuildTriggerThrottle
from catalog.models import Whisky
from catalog.services.related_display import get_related_whiskies_for_display, resolve_locale
from catalog.services.related_engine import (
    get_top_limit,
    has_computed_related,
    rebuild_related_for_impact_cluster,
    rebuild_related_for_one,
)

logger = logging.getLogger(__name__)

REBUILD_MODES = ('one', 'cluster')


@extend_schema(
    tags=['Related'],
    summary='Related whiskies',
    description='Persisted related whiskies of a whisky, best first.',
    parameters=[
        OpenApiParameter('locale', OpenApiTypes.STR, enum=['en', 'fr'], default='en'),
        OpenApiParameter('limit', OpenApiTypes.INT, default=4),
    ],
    responses={
        200: {
            'description': 'Related whiskies',
            'content': {
                'application/json': {
                    'example': {
                        'whisky_id': '6f1c1a52-4f0e-4d5b-9a53-0a1d7f6b2c11',
                        'locale': 'en',
                        'computed': True,
                        'results': [{
                            'id': '0b8f1b0e-3c5e-4f44-9d8e-5c6f3a2a9e71',
                            'name': 'Glenfarclas 15',
                            'score': 9,
                            'producer_name': 'Glenfarclas',
                            'producer_kind': 'distiller',
                            'country_name': 'Scotland',
                        }],
                    }
                }
            }
        },
        400: {'description': 'Invalid limit'},
        404: {'description': 'Whisky not found'},
    },
)
@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([RelatedReadThrottle])
def related_whiskies(request, whisky_id):
    """
    Related whiskies for the whisky detail page.

    Query parameters:
        locale: "en" (default) or "fr", selects the country name language
        limit: number of entries (default WHISKY_RELATED_DISPLAY_LIMIT, max top limit)
    """
    if not Whisky.objects.filter(pk=whisky_id).exists():
        return Response({'error': 'Whisky not found'}, status=status.HTTP_404_NOT_FOUND)

    raw_limit = request.query_params.get('limit')
    if raw_limit in (None, ''):
        limit = getattr(settings, 'WHISKY_RELATED_DISPLAY_LIMIT', 4)
    else:
        try:
            limit = int(raw_limit)
        except (TypeError, ValueError):
            return Response(
                {'error': 'limit must be an integer'},
                status=status.HTTP_400_BAD_REQUEST
            )
    limit = min(max(1, limit), get_top_limit())

    locale = resolve_locale(request.query_params.get('locale', 'en'))
    results = get_related_whiskies_for_display(whisky_id, locale=locale, limit=limit)

    return Response({
        'whisky_id': str(whisky_id),
        'locale': locale,
        'computed': has_computed_related(whisky_id),
        'results': results,
    })


@extend_schema(
    tags=['Related'],
    summary='Rebuild related whiskies',
    description='Recompute the related set of one whisky, or of its whole impact cluster.',
    request={
        'application/json': {
            'type': 'object',
            'properties': {
                'mode': {'type': 'string', 'enum': list(REBUILD_MODES), 'default': 'one'},
            },
        }
    },
    responses={
        200: {'description': 'Rebuild finished'},
        400: {'description': 'Invalid mode'},
        404: {'description': 'Whisky not found'},
    },
)
@api_view(['POST'])
@permission_classes([IsAdminUser])
@throttle_classes([RebuildTriggerThrottle])
def rebuild_related(request, whisky_id):
    """
    Rebuild related whiskies synchronously.

    Request body:
    {
        "mode": "one"       // "one" (default) or "cluster"
    }
    """
    mode = request.data.get('mode', 'one')
    if mode not in REBUILD_MODES:
        return Response(
            {'error': f"mode must be one of: {', '.join(REBUILD_MODES)}"},
            status=status.HTTP_400_BAD_REQUEST
        )

    if not Whisky.objects.filter(pk=whisky_id).exists():
        return Response({'error': 'Whisky not found'}, status=status.HTTP_404_NOT_FOUND)

    if mode == 'cluster':
        rebuilt = rebuild_related_for_impact_cluster(whisky_id)
        payload = {'mode': mode, 'rebuilt': rebuilt}
    else:
        edges = rebuild_related_for_one(whisky_id)
        payload = {'mode': mode, 'rebuilt': 1, 'edges': edges}

    logger.info(f"Manual related rebuild ({mode}) of {whisky_id} by {request.user}")
    return Response(payload)
