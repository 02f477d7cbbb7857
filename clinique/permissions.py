"""
Role based access control.

``ROLE_PERMISSIONS`` lists, per staff role, the front-end sections the
role may open and the actions it may perform.  ``admin`` holds the
``all`` permission.  The DRF permission classes below read that table:
safe methods need access to one of the view's sections, writes need the
view's write permission.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

ALL_SECTIONS = frozenset({'dashboard', 'patients', 'medecins', 'planning', 'statistiques', 'parametres'})

ROLE_PERMISSIONS = {
    'admin': {
        'sections': ALL_SECTIONS,
        'permissions': frozenset({'all'}),
    },
    'medecin': {
        'sections': frozenset({'dashboard', 'patients', 'planning'}),
        'permissions': frozenset({'view_patients', 'edit_patients', 'view_planning', 'edit_planning',
                                  'edit_consultations'}),
    },
    'infirmier': {
        'sections': frozenset({'dashboard', 'patients', 'planning'}),
        'permissions': frozenset({'view_patients', 'view_planning'}),
    },
    'secretaire': {
        'sections': frozenset({'dashboard', 'patients', 'planning'}),
        'permissions': frozenset({'view_patients', 'edit_patients', 'view_planning', 'edit_planning'}),
    },
}


def _role_entry(user) -> dict:
    if not (user and getattr(user, 'is_authenticated', False)):
        return {}
    return ROLE_PERMISSIONS.get(getattr(user, 'role', None), {})


def has_permission(user, permission: str) -> bool:
    granted = _role_entry(user).get('permissions', frozenset())
    return 'all' in granted or permission in granted


def can_access_section(user, section: str) -> bool:
    return section in _role_entry(user).get('sections', frozenset())


def sections_for(user) -> list[str]:
    return sorted(_role_entry(user).get('sections', ()))


class SectionPermission(BasePermission):
    """Reads need one of ``sections``; writes need ``write_permission``."""
    sections: tuple = ()
    write_permission: str | None = None

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        if request.method in SAFE_METHODS or self.write_permission is None:
            return any(can_access_section(user, s) for s in self.sections)
        return has_permission(user, self.write_permission)


class DashboardAccess(SectionPermission):
    sections = ('dashboard', 'statistiques')


class PatientsAccess(SectionPermission):
    sections = ('patients',)
    write_permission = 'edit_patients'


class PlanningAccess(SectionPermission):
    sections = ('planning',)
    write_permission = 'edit_planning'


class MedecinsAccess(SectionPermission):
    # the planning form needs the roster to pick a doctor
    sections = ('medecins', 'planning')
    write_permission = 'manage_medecins'


class ConsultationsAccess(SectionPermission):
    sections = ('patients',)
    write_permission = 'edit_consultations'
