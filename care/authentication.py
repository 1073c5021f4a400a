"""
Custom authentication backend for token-based auth.

Kept separate from any view definitions so the REST framework can import
it during initialisation without circular imports.  JWT bearer tokens are
handled by ``rest_framework_simplejwt`` directly (see settings).
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """``Authorization: Token <key>`` issued by the login endpoint."""

    keyword = 'Token'
