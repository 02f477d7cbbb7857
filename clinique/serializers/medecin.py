import bleach
from rest_framework import serializers

from clinique.models import Medecin


class MedecinSerializer(serializers.ModelSerializer):
    nomComplet = serializers.CharField(source='nom_complet', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Medecin
        fields = ['id', 'nom', 'prenom', 'nomComplet', 'specialite', 'email', 'telephone', 'status', 'createdAt']

    def validate_nom(self, v):
        v = bleach.clean((v or '').strip(), strip=True)
        if not v:
            raise serializers.ValidationError("Le nom est obligatoire")
        return v

    def validate_prenom(self, v):
        return bleach.clean((v or '').strip(), strip=True)
