import bleach
from rest_framework import serializers

from clinique.models import Consultation, Medecin, Patient


class ConsultationSerializer(serializers.ModelSerializer):
    patientId = serializers.PrimaryKeyRelatedField(source='patient', queryset=Patient.objects.all())
    medecinId = serializers.PrimaryKeyRelatedField(
        source='medecin', queryset=Medecin.objects.all(), required=False, allow_null=True
    )
    patient = serializers.CharField(source='patient.nom_complet', read_only=True)
    medecin = serializers.CharField(source='medecin.nom_complet', read_only=True)
    montant = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False,
                                       coerce_to_string=False)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Consultation
        fields = ['id', 'patientId', 'patient', 'medecinId', 'medecin', 'date', 'type', 'diagnostic',
                  'traitement', 'duree', 'montant', 'paiement', 'createdAt']

    def validate_diagnostic(self, v):
        return bleach.clean((v or '').strip(), strip=True)

    def validate_traitement(self, v):
        return bleach.clean((v or '').strip(), strip=True)
