import bleach
from rest_framework import serializers

from clinique.models import Patient, StatutHistory


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


# ---------------------------------------------------------------------
# Clinical sections (stored as JSON on the patient)
# ---------------------------------------------------------------------
class HabitudesToxiquesSerializer(serializers.Serializer):
    tabac = serializers.BooleanField(required=False)
    alcool = serializers.BooleanField(required=False)
    autres = serializers.CharField(required=False, allow_blank=True)


class EtatCivilSerializer(serializers.Serializer):
    profession = serializers.CharField(required=False, allow_blank=True, max_length=100)
    habitudesToxiques = HabitudesToxiquesSerializer(required=False)
    origine = serializers.CharField(required=False, allow_blank=True, max_length=100)


class FacteursRisqueSerializer(serializers.Serializer):
    hta = serializers.BooleanField(required=False)
    htaDepuis = serializers.CharField(required=False, allow_blank=True)
    htaTrt = serializers.CharField(required=False, allow_blank=True)
    diabete = serializers.BooleanField(required=False)
    diabeteDepuis = serializers.CharField(required=False, allow_blank=True)
    diabeteTrt = serializers.CharField(required=False, allow_blank=True)
    dyslipidemie = serializers.BooleanField(required=False)
    obesite = serializers.BooleanField(required=False)
    tabac = serializers.BooleanField(required=False)
    tabacDepuis = serializers.CharField(required=False, allow_blank=True)
    cancer = serializers.BooleanField(required=False)
    autres = serializers.CharField(required=False, allow_blank=True)


class DiagnosticSerializer(serializers.Serializer):
    typeOperation = serializers.CharField(required=False, allow_blank=True)
    typeOperationPreciser = serializers.CharField(required=False, allow_blank=True)
    laterality = serializers.CharField(required=False, allow_blank=True)
    reprise = serializers.CharField(required=False, allow_blank=True)
    dateOperation = serializers.CharField(required=False, allow_blank=True)
    facteursRisque = FacteursRisqueSerializer(required=False)
    maladieCardiovasculaire = serializers.CharField(required=False, allow_blank=True)
    maladieCardiovasculaireFE = serializers.CharField(required=False, allow_blank=True)
    maladieCardiovasculaireAutre = serializers.CharField(required=False, allow_blank=True)
    depuis = serializers.CharField(required=False, allow_blank=True)


class MedicauxDetailsSerializer(serializers.Serializer):
    angorEffort = serializers.BooleanField(required=False)
    sca = serializers.BooleanField(required=False)
    idm = serializers.BooleanField(required=False)
    aomi = serializers.BooleanField(required=False)
    avc = serializers.BooleanField(required=False)


class ChirurgicauxDetailsSerializer(serializers.Serializer):
    amputationAnterieure = serializers.CharField(required=False, allow_blank=True)
    amputationAnterieureType = serializers.CharField(required=False, allow_blank=True)
    amputationFamiliale = serializers.CharField(required=False, allow_blank=True)


class FamiliauxSerializer(serializers.Serializer):
    hta = serializers.BooleanField(required=False)
    dt2 = serializers.BooleanField(required=False)
    autres = serializers.CharField(required=False, allow_blank=True)


class AntecedentsSerializer(serializers.Serializer):
    medicaux = serializers.CharField(required=False, allow_blank=True)
    medicauxDetails = MedicauxDetailsSerializer(required=False)
    chirurgicaux = serializers.CharField(required=False, allow_blank=True)
    chirurgicauxDetails = ChirurgicauxDetailsSerializer(required=False)
    familiaux = FamiliauxSerializer(required=False)


class TensionArterielleSerializer(serializers.Serializer):
    systolique = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=300)
    diastolique = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=200)


class ExamenNeurologiqueSerializer(serializers.Serializer):
    effectue = serializers.BooleanField(required=False)
    type = serializers.CharField(required=False, allow_blank=True)


class CliniqueSerializer(serializers.Serializer):
    tensionArterielle = TensionArterielleSerializer(required=False)
    frequenceCardiaque = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=300)
    poids = serializers.FloatField(required=False, allow_null=True, min_value=0)
    taille = serializers.FloatField(required=False, allow_null=True, min_value=0)
    bmi = serializers.FloatField(required=False, allow_null=True, min_value=0)
    examenNeurologique = ExamenNeurologiqueSerializer(required=False)


class EvolutionSerializer(serializers.Serializer):
    cicatrisation = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False)
    protheseDate = serializers.CharField(required=False, allow_blank=True)
    crp = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False)
    hemoglobineGlyquee = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False)
    troponine = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False)
    cycle = serializers.CharField(required=False, allow_blank=True)
    autre = serializers.CharField(required=False, allow_blank=True)


class AlrSerializer(serializers.Serializer):
    al = serializers.BooleanField(required=False)
    ra = serializers.BooleanField(required=False)
    peridural = serializers.BooleanField(required=False)
    perirachicombine = serializers.BooleanField(required=False)
    blocPeripherique = serializers.BooleanField(required=False)


class AnesthesieSerializer(serializers.Serializer):
    ag = serializers.BooleanField(required=False)
    alr = AlrSerializer(required=False)
    asa = serializers.CharField(required=False, allow_blank=True)


# ---------------------------------------------------------------------
# Patient
# ---------------------------------------------------------------------
class StatutHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = StatutHistory
        fields = ['statut', 'date']


class PatientSerializer(serializers.ModelSerializer):
    nomComplet = serializers.CharField(source='nom_complet', read_only=True)
    derniereVisite = serializers.DateTimeField(source='derniere_visite', required=False, allow_null=True)
    dateConsultation = serializers.DateTimeField(source='date_consultation', required=False, allow_null=True)
    photoUrl = serializers.CharField(source='photo_url', required=False, allow_blank=True, max_length=500)
    ordonnances = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False)
    etatCivil = EtatCivilSerializer(source='etat_civil', required=False)
    diagnostic = DiagnosticSerializer(required=False)
    antecedents = AntecedentsSerializer(required=False)
    clinique = CliniqueSerializer(required=False)
    evolution = EvolutionSerializer(required=False)
    anesthesie = AnesthesieSerializer(required=False)
    statutHistory = StatutHistorySerializer(source='statut_history', many=True, read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id', 'nom', 'prenom', 'nomComplet', 'age', 'sexe', 'telephone', 'email', 'adresse',
            'diabete', 'derniereVisite', 'dateConsultation', 'notes', 'photoUrl', 'ordonnances',
            'etatCivil', 'diagnostic', 'antecedents', 'clinique', 'evolution', 'anesthesie',
            'statut', 'statutHistory', 'createdAt',
        ]
        extra_kwargs = {
            'nom': {'error_messages': {'required': "Le nom est obligatoire", 'blank': "Le nom est obligatoire"}},
            'age': {'min_value': 0, 'max_value': 130},
        }

    def validate_nom(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError("Le nom est obligatoire")
        return v

    def validate_prenom(self, v):
        return _clean(v)

    def validate_notes(self, v):
        return _clean(v)
