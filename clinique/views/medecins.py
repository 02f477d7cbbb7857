import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from clinique.models import Medecin
from clinique.permissions import MedecinsAccess
from clinique.serializers.medecin import MedecinSerializer
from clinique.services.audit import log_action
from clinique.services.state import invalidate_stats_cache

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([MedecinsAccess])
def medecins_collection(request):
    """List the roster (``?status=En congé`` filters) or add a doctor (admin)."""
    if request.method == 'POST':
        s = MedecinSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        medecin = s.save()
        log_action(user=request.user, action='medecin_create', object_type='medecin', object_id=medecin.id,
                   detail={'nom': medecin.nom_complet, 'status': medecin.status})
        logger.info("medecin %s created", medecin.id)
        invalidate_stats_cache()
        return Response(MedecinSerializer(medecin).data, status=status.HTTP_201_CREATED)

    qs = Medecin.objects.order_by('nom', 'prenom')
    wanted = request.query_params.get('status')
    if wanted:
        qs = qs.filter(status=wanted)
    return Response(MedecinSerializer(qs, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([MedecinsAccess])
def medecin_detail(request, pk: int):
    medecin = get_object_or_404(Medecin, pk=pk)
    if request.method == 'GET':
        return Response(MedecinSerializer(medecin).data)
    if request.method == 'DELETE':
        medecin.delete()
        log_action(user=request.user, action='medecin_delete', object_type='medecin', object_id=pk)
        logger.info("medecin %s deleted", pk)
        invalidate_stats_cache()
        return Response(status=status.HTTP_204_NO_CONTENT)

    previous = medecin.status
    s = MedecinSerializer(medecin, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    medecin = s.save()
    detail = {'fields': sorted(s.validated_data)}
    if medecin.status != previous:
        detail['status'] = [previous, medecin.status]
        logger.info("medecin %s status %s -> %s", pk, previous, medecin.status)
    log_action(user=request.user, action='medecin_update', object_type='medecin', object_id=pk, detail=detail)
    invalidate_stats_cache()
    return Response(MedecinSerializer(medecin).data)
