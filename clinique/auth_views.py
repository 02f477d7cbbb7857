"""
Authentication views.

Login returns both the legacy DRF token and a JWT pair, together with
the user's role and the front-end sections that role may open.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from clinique.permissions import ROLE_PERMISSIONS, sections_for
from clinique.serializers.auth import LoginSerializer
from clinique.services.audit import log_action

from .models import User

logger = logging.getLogger(__name__)


def user_payload(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'nom': user.last_name,
        'prenom': user.first_name,
        'name': user.get_full_name() or user.username,
        'role': user.role,
        'specialite': user.specialite,
        'sections': sections_for(user),
        'permissions': sorted(ROLE_PERMISSIONS.get(user.role, {}).get('permissions', ())),
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    Login with username (or email) and password.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    username = vd['username']
    if not username and vd['email']:
        match = User.objects.filter(email__iexact=vd['email']).only('username').first()
        username = match.username if match else vd['email']

    user = authenticate(request, username=username, password=vd['password'])
    if not user:
        log_action(user=None, action='login', object_type='user', object_id=None,
                   detail={'result': 'fail', 'username': username, 'ip': request.META.get('REMOTE_ADDR')})
        logger.warning("failed login for %s", username)
        return Response({'ok': False, 'error': {'code': 'invalid_credentials',
                                                'message': 'Identifiants incorrects'}}, status=400)

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})

    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)

    return Response({
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role,
        'user': user_payload(user),
    }, status=200)

# DRF ScopedRateThrottle uses throttle_scope on the view function
login_view.throttle_scope = 'login'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response({'ok': True, 'user': user_payload(request.user)})


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    if isinstance(resp, Response):
        data = dict(resp.data)
        if 'access' in data and 'jwt_access' not in data:
            data['jwt_access'] = data.pop('access')
        return Response(data, status=resp.status_code)
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist current user's refresh tokens (all or a given one)."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as e:
            return Response({'ok': False, 'error': {'code': 'invalid_token', 'message': str(e)}}, status=400)
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    Token.objects.filter(user=request.user).delete()
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count})
    return Response({'ok': True, 'blacklisted': count})
