"""
Patient endpoints.

``/patients`` lists and creates, ``/patients/<id>`` reads, updates and
deletes.  Every role with the patients section can read; writes need the
``edit_patients`` permission (see :mod:`clinique.permissions`).  Status
changes go through :func:`clinique.services.patients.update_patient`
so that the status history stays consistent.
"""
from __future__ import annotations

from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from clinique.models import Patient
from clinique.permissions import PatientsAccess
from clinique.serializers.patient import PatientSerializer
from clinique.services.patients import create_patient, delete_patient, update_patient


def _patients_queryset():
    return Patient.objects.prefetch_related('statut_history').order_by('-created_at', '-id')


@api_view(['GET', 'POST'])
@permission_classes([PatientsAccess])
def patients_collection(request):
    if request.method == 'POST':
        s = PatientSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        patient = create_patient(request.user, s.validated_data)
        return Response(PatientSerializer(_patients_queryset().get(pk=patient.pk)).data,
                        status=status.HTTP_201_CREATED)

    qs = _patients_queryset()
    q = (request.query_params.get('q') or '').strip()
    if q:
        qs = qs.filter(Q(nom__icontains=q) | Q(prenom__icontains=q) | Q(telephone__icontains=q))
    statut = request.query_params.get('statut')
    if statut:
        qs = qs.filter(statut=statut)
    diabete = request.query_params.get('diabete')
    if diabete:
        qs = qs.filter(diabete=diabete)
    return Response(PatientSerializer(qs, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([PatientsAccess])
def patient_detail(request, pk: int):
    patient = get_object_or_404(_patients_queryset(), pk=pk)
    if request.method == 'GET':
        return Response(PatientSerializer(patient).data)
    if request.method == 'DELETE':
        delete_patient(request.user, patient)
        return Response(status=status.HTTP_204_NO_CONTENT)

    s = PatientSerializer(patient, data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    update_patient(request.user, patient, s.validated_data)
    return Response(PatientSerializer(_patients_queryset().get(pk=pk)).data)
