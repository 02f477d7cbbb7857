"""
Database models for the BuchaTech backend.

These models capture the entities the clinic manages: staff users,
patients (with their treatment status history), doctors, appointments
and consultations.  Field names mirror the JSON keys used by the
front-end (French vocabulary) so that serializers stay thin.  The
nested clinical sections of a patient record are stored as JSON and
validated by the nested serializers in :mod:`clinique.serializers.patient`.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Staff account with a role.

    Roles mirror the front-end roles: 'admin', 'medecin', 'infirmier'
    and 'secretaire'.  Section access per role is defined in
    :mod:`clinique.permissions`.
    """
    ROLE_CHOICES = [
        ('admin', 'Administrateur'),
        ('medecin', 'Médecin'),
        ('infirmier', 'Infirmier'),
        ('secretaire', 'Secrétaire'),
    ]
    role = models.CharField(max_length=12, choices=ROLE_CHOICES, default='secretaire')
    specialite = models.CharField(max_length=100, blank=True)
    telephone = models.CharField(max_length=20, blank=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Patient(models.Model):
    """A patient followed by the clinic."""
    STATUT_NOUVEAU = 'nouveau'
    STATUT_SOUS_TRT = 'sous_trt'
    STATUT_APRES_TRT = 'apres_trt'
    STATUT_DECEDE = 'decede'
    STATUT_CHOICES = [
        (STATUT_NOUVEAU, 'Nouveau'),
        (STATUT_SOUS_TRT, 'Sous traitement'),
        (STATUT_APRES_TRT, 'Après traitement'),
        (STATUT_DECEDE, 'Décédé'),
    ]
    SEXE_CHOICES = [('Homme', 'Homme'), ('Femme', 'Femme')]

    nom = models.CharField(max_length=100)
    prenom = models.CharField(max_length=100, blank=True)
    age = models.PositiveIntegerField(null=True, blank=True)
    sexe = models.CharField(max_length=10, choices=SEXE_CHOICES, blank=True)
    telephone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    adresse = models.CharField(max_length=255, blank=True)
    # Type 1, Type 2, ... ; used by the dashboard breakdowns
    diabete = models.CharField(max_length=50, blank=True, db_index=True)
    derniere_visite = models.DateTimeField(null=True, blank=True)
    date_consultation = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    photo_url = models.CharField(max_length=500, blank=True)
    ordonnances = models.JSONField(default=list, blank=True)

    # Structured clinical sections
    etat_civil = models.JSONField(default=dict, blank=True)
    diagnostic = models.JSONField(default=dict, blank=True)
    antecedents = models.JSONField(default=dict, blank=True)
    clinique = models.JSONField(default=dict, blank=True)
    evolution = models.JSONField(default=dict, blank=True)
    anesthesie = models.JSONField(default=dict, blank=True)

    statut = models.CharField(max_length=12, choices=STATUT_CHOICES, default=STATUT_NOUVEAU, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def nom_complet(self) -> str:
        return f"{self.prenom} {self.nom}".strip()

    def __str__(self) -> str:
        return f"{self.nom_complet} ({self.diabete or '-'})"


class StatutHistory(models.Model):
    """Timestamped treatment-status transition of a patient."""
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='statut_history')
    statut = models.CharField(max_length=12, choices=Patient.STATUT_CHOICES)
    date = models.DateTimeField()

    class Meta:
        ordering = ['date', 'id']
        indexes = [models.Index(fields=['patient', 'date'], name='statut_hist_patient_date_idx')]

    def __str__(self) -> str:
        return f"{self.patient_id}: {self.statut} @ {self.date:%F %T}"


class Medecin(models.Model):
    """A doctor of the clinic roster."""
    STATUS_EN_SERVICE = 'En service'
    STATUS_EN_CONGE = 'En congé'
    STATUS_EN_FORMATION = 'En formation'
    STATUS_CHOICES = [
        (STATUS_EN_SERVICE, STATUS_EN_SERVICE),
        (STATUS_EN_CONGE, STATUS_EN_CONGE),
        (STATUS_EN_FORMATION, STATUS_EN_FORMATION),
    ]

    nom = models.CharField(max_length=100)
    prenom = models.CharField(max_length=100, blank=True)
    specialite = models.CharField(max_length=100, blank=True)
    email = models.EmailField(blank=True)
    telephone = models.CharField(max_length=20, blank=True)
    # filtré par le tableau de bord (médecins en congé)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_EN_SERVICE, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def nom_complet(self) -> str:
        return f"{self.prenom} {self.nom}".strip()

    def __str__(self) -> str:
        return f"Dr. {self.nom_complet} ({self.status})"


class RendezVous(models.Model):
    """An appointment in the planning.

    ``patient`` and ``medecin`` hold display names as typed in the
    planning form; the optional ``*_ref`` foreign keys link to the
    records when the name was picked from a list.
    """
    TYPE_CHOICES = [
        ('Consultation', 'Consultation'),
        ('Contrôle', 'Contrôle'),
        ('Urgence', 'Urgence'),
        ('Suivi traitement', 'Suivi traitement'),
        ('Consultation initiale', 'Consultation initiale'),
    ]
    STATUT_CONFIRME = 'Confirmé'
    STATUT_EN_ATTENTE = 'En attente'
    STATUT_TERMINE = 'Terminé'
    STATUT_CHOICES = [
        (STATUT_CONFIRME, STATUT_CONFIRME),
        (STATUT_EN_ATTENTE, STATUT_EN_ATTENTE),
        (STATUT_TERMINE, STATUT_TERMINE),
    ]

    date = models.DateField(db_index=True)
    heure = models.CharField(max_length=5)
    patient = models.CharField(max_length=200)
    patient_ref = models.ForeignKey(
        Patient, null=True, blank=True, on_delete=models.SET_NULL, related_name='rendez_vous'
    )
    medecin = models.CharField(max_length=200)
    medecin_ref = models.ForeignKey(
        Medecin, null=True, blank=True, on_delete=models.SET_NULL, related_name='rendez_vous'
    )
    type = models.CharField(max_length=30, choices=TYPE_CHOICES, default='Consultation')
    statut = models.CharField(max_length=20, choices=STATUT_CHOICES, blank=True, default='')
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['medecin', 'date', 'heure'], name='rdv_medecin_date_heure_idx')]

    def __str__(self) -> str:
        return f"{self.date:%F} {self.heure} {self.patient} / {self.medecin}"


class Consultation(models.Model):
    """A consultation performed for a patient."""
    PAIEMENT_CHOICES = [
        ('Payé', 'Payé'),
        ('En attente', 'En attente'),
        ('Partiel', 'Partiel'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='consultations')
    medecin = models.ForeignKey(
        Medecin, null=True, blank=True, on_delete=models.SET_NULL, related_name='consultations'
    )
    date = models.DateTimeField(db_index=True)
    type = models.CharField(max_length=50, blank=True)
    diagnostic = models.TextField(blank=True)
    traitement = models.TextField(blank=True)
    duree = models.PositiveIntegerField(null=True, blank=True, help_text="Durée en minutes")
    montant = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    paiement = models.CharField(max_length=20, choices=PAIEMENT_CHOICES, default='En attente')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['patient', 'date'], name='consult_patient_date_idx')]

    def __str__(self) -> str:
        return f"consultation p={self.patient_id} d={self.medecin_id} @ {self.date:%F}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]
