"""
Custom authentication backend for token-based auth.

Kept apart from the views so that DRF can import the authentication
classes listed in settings without pulling in the view modules.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword.

    The front end also accepts the ``Bearer`` keyword for JWT access
    tokens, which is handled by simplejwt's ``JWTAuthentication``.
    """

    keyword = 'Token'
