import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class ConflitHoraire(APIException):
    """The doctor already has an appointment at that date and time."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Ce médecin a déjà un rendez-vous prévu à cette heure"
    default_code = 'conflit_horaire'


class ValidationRendezVous(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Rendez-vous invalide"
    default_code = 'validation_rendez_vous'


class StatutHistoryError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "L'historique des statuts doit rester chronologique"
    default_code = 'statut_history'


DOMAIN_ERRORS = (ConflitHoraire, ValidationRendezVous, StatutHistoryError)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception("unhandled error in %s", context.get('view'))
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    code = exc.default_code if isinstance(exc, DOMAIN_ERRORS) else 'api_error'
    return Response({'ok': False, 'error': {'code': code, 'message': detail}}, status=resp.status_code)
