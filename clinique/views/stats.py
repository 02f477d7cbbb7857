from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from clinique.permissions import DashboardAccess
from clinique.services.dashboard import cached_dashboard_stats, weekly_summaries
from clinique.services.state import snapshot_from_db

MAX_WEEKS = 52


@api_view(['GET'])
@permission_classes([DashboardAccess])
def dashboard_view(request):
    """Aggregate breakdowns for the dashboard and statistics pages (cached)."""
    return Response(cached_dashboard_stats())


@api_view(['GET'])
@permission_classes([DashboardAccess])
def weekly_view(request):
    """Weekly summaries, oldest first. ``?weeks=N`` (1..52, default from settings)."""
    try:
        weeks = int(request.query_params.get('weeks') or settings.DASHBOARD_WEEKS)
    except ValueError:
        return Response({'ok': False, 'error': {'code': 'api_error', 'message': 'weeks doit être un entier'}},
                        status=400)
    weeks = max(1, min(weeks, MAX_WEEKS))
    summaries = weekly_summaries(snapshot_from_db(), n=weeks)
    return Response({'ok': True, 'weeks': weeks, 'data': [s.to_dict() for s in summaries]})
