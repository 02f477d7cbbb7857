import bleach
from rest_framework import serializers

from clinique.models import Medecin, Patient, RendezVous
from clinique.services.planning import REQUIRED_FIELDS, normalize_heure

_MESSAGES = dict(REQUIRED_FIELDS)


def _required(field):
    msg = _MESSAGES[field]
    return {'required': msg, 'blank': msg, 'null': msg, 'invalid_choice': msg}


class RendezVousSerializer(serializers.ModelSerializer):
    patientId = serializers.PrimaryKeyRelatedField(
        source='patient_ref', queryset=Patient.objects.all(), required=False, allow_null=True
    )
    medecinId = serializers.PrimaryKeyRelatedField(
        source='medecin_ref', queryset=Medecin.objects.all(), required=False, allow_null=True
    )
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = RendezVous
        fields = ['id', 'date', 'heure', 'patient', 'patientId', 'medecin', 'medecinId',
                  'type', 'statut', 'notes', 'createdAt']
        extra_kwargs = {
            'patient': {'error_messages': _required('patient')},
            'medecin': {'error_messages': _required('medecin')},
            'type': {'required': True, 'error_messages': _required('type')},
            'date': {'error_messages': {**_required('date'), 'invalid': _MESSAGES['date']}},
            'heure': {'error_messages': _required('heure')},
        }

    def validate_heure(self, v):
        v = normalize_heure(v)
        hours, _, minutes = v.partition(':')
        if not (hours.isdigit() and minutes.isdigit() and int(hours) < 24 and int(minutes) < 60):
            raise serializers.ValidationError("Heure invalide (HH:MM)")
        return v

    def validate_patient(self, v):
        return bleach.clean((v or '').strip(), strip=True)

    def validate_medecin(self, v):
        return bleach.clean((v or '').strip(), strip=True)

    def validate_notes(self, v):
        return bleach.clean((v or '').strip(), strip=True)
