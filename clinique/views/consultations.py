import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from clinique.models import Consultation
from clinique.permissions import ConsultationsAccess
from clinique.serializers.consultation import ConsultationSerializer
from clinique.services.audit import log_action
from clinique.services.state import invalidate_stats_cache

logger = logging.getLogger(__name__)


def _consultations():
    return Consultation.objects.select_related('patient', 'medecin').order_by('-date', '-id')


@api_view(['GET', 'POST'])
@permission_classes([ConsultationsAccess])
def consultations_collection(request):
    if request.method == 'POST':
        s = ConsultationSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        consultation = s.save()
        log_action(user=request.user, action='consultation_create', object_type='consultation',
                   object_id=consultation.id, detail={'patient': consultation.patient_id})
        logger.info("consultation %s recorded for patient %s", consultation.id, consultation.patient_id)
        invalidate_stats_cache()
        return Response(ConsultationSerializer(consultation).data, status=status.HTTP_201_CREATED)

    qs = _consultations()
    patient_id = request.query_params.get('patientId')
    if patient_id:
        if not patient_id.isdigit():
            return Response({'ok': False, 'error': {'code': 'api_error', 'message': 'patientId invalide'}},
                            status=status.HTTP_400_BAD_REQUEST)
        qs = qs.filter(patient_id=patient_id)
    return Response(ConsultationSerializer(qs, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ConsultationsAccess])
def consultation_detail(request, pk: int):
    consultation = get_object_or_404(_consultations(), pk=pk)
    if request.method == 'GET':
        return Response(ConsultationSerializer(consultation).data)
    if request.method == 'DELETE':
        consultation.delete()
        log_action(user=request.user, action='consultation_delete', object_type='consultation', object_id=pk)
        invalidate_stats_cache()
        return Response(status=status.HTTP_204_NO_CONTENT)

    s = ConsultationSerializer(consultation, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    consultation = s.save()
    log_action(user=request.user, action='consultation_update', object_type='consultation', object_id=pk,
               detail={'fields': sorted(s.validated_data)})
    invalidate_stats_cache()
    return Response(ConsultationSerializer(consultation).data)
