"""
Planning endpoints.

Creation and updates are checked by :mod:`clinique.services.planning`
before anything is written: missing fields answer 400 and a doctor
already booked at the same date and time answers 409
(``conflit_horaire``).
"""
import logging

from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from clinique.models import RendezVous
from clinique.permissions import PlanningAccess
from clinique.serializers.rendezvous import RendezVousSerializer
from clinique.services.audit import log_action
from clinique.services.planning import create_rendez_vous, update_rendez_vous
from clinique.services.state import invalidate_stats_cache

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([PlanningAccess])
def rendez_vous_collection(request):
    if request.method == 'POST':
        s = RendezVousSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        rdv = create_rendez_vous(request.user, s.validated_data)
        return Response(RendezVousSerializer(rdv).data, status=status.HTTP_201_CREATED)

    qs = RendezVous.objects.order_by('date', 'heure', 'id')
    params = request.query_params
    if params.get('date'):
        try:
            day = parse_date(params['date'])
        except ValueError:
            day = None
        if day is None:
            return Response({'ok': False, 'error': {'code': 'api_error', 'message': 'date invalide (AAAA-MM-JJ)'}},
                            status=status.HTTP_400_BAD_REQUEST)
        qs = qs.filter(date=day)
    if params.get('medecin'):
        qs = qs.filter(medecin__iexact=params['medecin'])
    if params.get('type'):
        qs = qs.filter(type=params['type'])
    return Response(RendezVousSerializer(qs, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([PlanningAccess])
def rendez_vous_detail(request, pk: int):
    rdv = get_object_or_404(RendezVous, pk=pk)
    if request.method == 'GET':
        return Response(RendezVousSerializer(rdv).data)
    if request.method == 'DELETE':
        rdv.delete()
        log_action(user=request.user, action='rdv_delete', object_type='rendez_vous', object_id=pk)
        logger.info("rdv %s cancelled", pk)
        invalidate_stats_cache()
        return Response(status=status.HTTP_204_NO_CONTENT)

    s = RendezVousSerializer(rdv, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    rdv = update_rendez_vous(request.user, rdv, s.validated_data)
    return Response(RendezVousSerializer(rdv).data)
