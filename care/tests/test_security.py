import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from care.models import AuditEvent, Hospital, User

pytestmark = pytest.mark.django_db


def login(client, username, password):
    r = client.post(reverse('login_view'), {'username': username, 'password': password}, format='json')
    assert r.status_code in (200, 400, 401)
    return r


def test_no_role_bypass_in_login():
    client = APIClient()
    u = User.objects.create_user(username='u1', password='P@ssw0rd1', role='patient')
    # Try to bypass by sending role
    r = client.post(reverse('login_view'), {'username': 'u1', 'password': 'P@ssw0rd1', 'role': 'admin'}, format='json')
    assert r.status_code == 200
    assert r.data['role'] == 'patient'
    u.refresh_from_db()
    assert u.role == 'patient'


def test_login_returns_jwt_and_legacy_token():
    client = APIClient()
    User.objects.create_user(username='u_jwt', password='P@ssw0rd1', role='patient')
    r = login(client, 'u_jwt', 'P@ssw0rd1')
    assert r.status_code == 200
    assert r.data['jwt_access'] and r.data['jwt_refresh'] and r.data['token']


def test_login_lists_owned_hospitals():
    client = APIClient()
    staff = User.objects.create_user(username='staff1', password='P@ssw0rd1', role='hospital')
    h = Hospital.objects.create(name='City General', owner=staff)
    r = login(client, 'staff1', 'P@ssw0rd1')
    assert r.data['user']['hospitalIds'] == [h.id]


def test_bad_credentials_are_audited():
    client = APIClient()
    User.objects.create_user(username='u2', password='P@ssw0rd1', role='patient')
    r = login(client, 'u2', 'wrong')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'invalid_credentials'
    assert AuditEvent.objects.filter(action='login', detail__result='fail').exists()


def test_both_token_kinds_authenticate():
    User.objects.create_user(username='patient1', password='P@ssw0rd1', role='patient')
    r = login(APIClient(), 'patient1', 'P@ssw0rd1')
    url = reverse('medical_history')

    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Token {r.data['token']}")
    assert client.get(url).status_code == 200

    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['jwt_access']}")
    assert client.get(url).status_code == 200


def test_inactive_user_token_rejected():
    u = User.objects.create_user(username='patient1', password='P@ssw0rd1', role='patient')
    token = login(APIClient(), 'patient1', 'P@ssw0rd1').data['token']
    u.is_active = False
    u.save()
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Token {token}')
    assert client.get(reverse('medical_history')).status_code == 401


def test_refresh_and_logout():
    User.objects.create_user(username='u3', password='P@ssw0rd1', role='patient')
    client = APIClient()
    r = login(client, 'u3', 'P@ssw0rd1')
    refresh = r.data['jwt_refresh']

    r2 = client.post(reverse('jwt_refresh_view'), {'refresh': refresh}, format='json')
    assert r2.status_code == 200
    assert r2.data['jwt_access']

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['jwt_access']}")
    r3 = client.post(reverse('jwt_logout_view'), {'refresh': refresh}, format='json')
    assert r3.status_code == 200
    assert r3.data['blacklisted'] == 1

    # a blacklisted refresh token can no longer mint access tokens
    r4 = APIClient().post(reverse('jwt_refresh_view'), {'refresh': refresh}, format='json')
    assert r4.status_code == 401
    assert r4.data['error']['code'] == 'token_not_valid'


def test_refresh_rejects_garbage():
    r = APIClient().post(reverse('jwt_refresh_view'), {'refresh': 'not-a-token'}, format='json')
    assert r.status_code == 401


def test_login_is_rate_limited():
    client = APIClient()
    User.objects.create_user(username='u4', password='P@ssw0rd1', role='patient')
    statuses = [
        client.post(reverse('login_view'), {'username': 'u4', 'password': 'wrong'}, format='json').status_code
        for _ in range(11)
    ]
    # the login scope allows 10 per minute
    assert statuses[:10] == [400] * 10
    assert statuses[10] == 429
