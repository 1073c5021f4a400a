"""
Authentication views.

Login issues both a DRF token and a JWT pair; refresh and logout work on
the JWT refresh token.  Keeping these views apart from the
authentication class (see ``care.authentication``) avoids circular
imports when Django REST framework initialises authentication classes.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from care.serializers.auth import LoginSerializer, LogoutSerializer, RefreshSerializer
from care.services.audit import log_action

logger = logging.getLogger(__name__)


def _hospital_ids(user) -> list[int]:
    if getattr(user, 'role', '') != 'hospital':
        return []
    return list(user.hospitals.values_list('id', flat=True))


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """Username/password login.  The role always comes from the account."""
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']
    password = s.validated_data['password']

    user = authenticate(request, username=username, password=password)
    if not user:
        log_action(user=None, action='login', object_type='user', object_id=None,
                   detail={'result': 'fail', 'username': username, 'ip': request.META.get('REMOTE_ADDR')})
        logger.info('failed login for %s', username)
        return Response({'ok': False, 'error': {'code': 'invalid_credentials',
                                                'message': 'Invalid username or password'}}, status=400)

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
        'user': {
            'id': user.id,
            'username': user.username,
            'name': user.get_full_name() or user.username,
            'role': user.role,
            'hospitalIds': _hospital_ids(user),
        },
    }, status=200)

# ScopedRateThrottle reads throttle_scope from the view class that @api_view generates
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        refresh = RefreshToken(s.validated_data['refresh'])
    except TokenError as e:
        return Response({'ok': False, 'error': {'code': 'token_not_valid', 'message': str(e)}}, status=401)
    return Response({'ok': True, 'jwt_access': str(refresh.access_token)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or every outstanding one of the user."""
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    refresh = s.validated_data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as e:
            return Response({'ok': False, 'error': {'code': 'token_not_valid', 'message': str(e)}}, status=400)
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    Token.objects.filter(user=request.user).delete()
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count})
    return Response({'ok': True, 'blacklisted': count})
