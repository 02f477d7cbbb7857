"""
Django admin registrations for the clinique models.

Superusers can inspect and correct data through ``/admin/``.  Status
history rows are shown inline on the patient and are read-only there:
new entries must go through the API so that the history stays ordered.
"""

from django.contrib import admin

from .models import (
    AuditEvent,
    Consultation,
    Medecin,
    Patient,
    RendezVous,
    StatutHistory,
    User,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'specialite', 'is_staff', 'is_superuser')
    list_filter = ('role',)
    search_fields = ('username', 'first_name', 'last_name', 'email')


class StatutHistoryInline(admin.TabularInline):
    model = StatutHistory
    extra = 0
    readonly_fields = ('statut', 'date')
    can_delete = False


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('nom', 'prenom', 'age', 'sexe', 'diabete', 'statut', 'created_at')
    list_filter = ('statut', 'diabete', 'sexe')
    search_fields = ('nom', 'prenom', 'telephone', 'email')
    readonly_fields = ('statut',)
    inlines = [StatutHistoryInline]


@admin.register(Medecin)
class MedecinAdmin(admin.ModelAdmin):
    list_display = ('nom', 'prenom', 'specialite', 'status')
    list_filter = ('status', 'specialite')
    search_fields = ('nom', 'prenom', 'email')


@admin.register(RendezVous)
class RendezVousAdmin(admin.ModelAdmin):
    list_display = ('date', 'heure', 'patient', 'medecin', 'type', 'statut')
    list_filter = ('type', 'statut', 'date')
    search_fields = ('patient', 'medecin')


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ('date', 'patient', 'medecin', 'type', 'montant', 'paiement')
    list_filter = ('paiement', 'type')
    search_fields = ('patient__nom', 'medecin__nom')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'object_type', 'object_id', 'user')
    list_filter = ('action', 'object_type')
    search_fields = ('action', 'user__username')
