from __future__ import annotations

import uuid

import httpx
import pytest

from app.core.exceptions import PersistenceError
from app.database import get_session_provider
from app.main import app

BASE = '/api/v1/subscriptions'


def _payload(user_id, start='01-2025', end=None, name='Netflix', price=10):
    body = {
        'service_name': name,
        'price': price,
        'user_id': str(user_id),
        'start_date': start,
    }
    if end is not None:
        body['end_date'] = end
    return body


def test_create_returns_server_assigned_id(client):
    user_id = uuid.uuid4()
    response = client.post(f'{BASE}/', json=_payload(user_id, '02-2025', '05-2025'))

    assert response.status_code == 201
    body = response.json()
    uuid.UUID(body['id'])
    assert body['user_id'] == str(user_id)
    assert body['start_date'] == '02-2025'
    assert body['end_date'] == '05-2025'
    assert body['price'] == 10


def test_create_ignores_client_supplied_id(client):
    payload = _payload(uuid.uuid4())
    payload['id'] = str(uuid.uuid4())

    response = client.post(f'{BASE}/', json=payload)

    assert response.status_code == 201
    assert response.json()['id'] != payload['id']


def test_create_with_bad_date_is_client_error(client):
    response = client.post(f'{BASE}/', json=_payload(uuid.uuid4(), start='2025-01'))

    assert response.status_code == 400
    assert response.json()['error'] == 'validation'


def test_create_with_end_before_start_is_client_error(client):
    response = client.post(f'{BASE}/', json=_payload(uuid.uuid4(), '05-2025', '01-2025'))

    assert response.status_code == 400


def test_overlapping_create_is_conflict(client):
    user_id = uuid.uuid4()
    assert client.post(f'{BASE}/', json=_payload(user_id)).status_code == 201

    response = client.post(f'{BASE}/', json=_payload(user_id, start='06-2025'))

    assert response.status_code == 409
    body = response.json()
    assert body['error'] == 'conflict'
    assert body['message'] == 'previous subscription has not ended'


def test_get_round_trip(client):
    created = client.post(f'{BASE}/', json=_payload(uuid.uuid4(), '03-2025')).json()

    response = client.get(f"{BASE}/{created['id']}")

    assert response.status_code == 200
    assert response.json() == created


def test_get_missing_is_not_found(client):
    response = client.get(f'{BASE}/{uuid.uuid4()}')

    assert response.status_code == 404
    assert response.json()['error'] == 'not_found'


def test_delete_then_delete_again(client):
    created = client.post(f'{BASE}/', json=_payload(uuid.uuid4())).json()

    first = client.delete(f"{BASE}/{created['id']}")
    second = client.delete(f"{BASE}/{created['id']}")

    assert first.status_code == 200
    assert first.json() == {'message': 'Subscription deleted successfully'}
    assert second.status_code == 404


def test_update_subscription(client):
    user_id = uuid.uuid4()
    created = client.post(f'{BASE}/', json=_payload(user_id)).json()

    response = client.put(
        f"{BASE}/{created['id']}",
        json=_payload(user_id, '01-2025', '03-2025', price=12),
    )

    assert response.status_code == 200
    assert response.json()['id'] == created['id']
    assert response.json()['end_date'] == '03-2025'
    assert response.json()['price'] == 12


def test_list_by_user_with_paging(client):
    user_id = uuid.uuid4()
    for name in ('A', 'B', 'C'):
        client.post(f'{BASE}/', json=_payload(user_id, name=name))

    everything = client.get(f'{BASE}/', params={'user_id': str(user_id)})
    page = client.get(f'{BASE}/', params={'user_id': str(user_id), 'limit': 2, 'offset': 2})

    assert everything.status_code == 200
    assert len(everything.json()) == 3
    assert len(page.json()) == 1


def test_list_rejects_zero_limit(client):
    response = client.get(f'{BASE}/', params={'user_id': str(uuid.uuid4()), 'limit': 0})

    assert response.status_code == 400


def test_total_cost(client):
    user_id = uuid.uuid4()
    client.post(f'{BASE}/', json=_payload(user_id, '01-2025', '03-2025', price=10))

    one_month = client.get(
        f'{BASE}/total-cost',
        params={'user_id': str(user_id), 'start_date': '01-2025', 'end_date': '01-2025', 'service_name': 'Netflix'},
    )
    whole = client.get(
        f'{BASE}/total-cost',
        params={'user_id': str(user_id), 'start_date': '01-2025', 'end_date': '03-2025'},
    )

    assert one_month.json() == {'total_cost': 10}
    assert whole.json() == {'total_cost': 30}


def test_total_cost_without_matches_is_zero(client):
    response = client.get(
        f'{BASE}/total-cost',
        params={'user_id': str(uuid.uuid4()), 'start_date': '01-2025', 'end_date': '12-2025'},
    )

    assert response.status_code == 200
    assert response.json() == {'total_cost': 0}


def test_total_cost_with_malformed_bound_is_client_error(client):
    response = client.get(
        f'{BASE}/total-cost',
        params={'user_id': str(uuid.uuid4()), 'start_date': '01-2025', 'end_date': '2025'},
    )

    assert response.status_code == 400
    assert 'end_date' in response.json()['message']


class _BrokenProvider:
    def execute(self, work, operation='execute'):
        raise PersistenceError('connection refused', operation=operation)


@pytest.mark.asyncio
async def test_health_reports_database(provider):
    app.dependency_overrides[get_session_provider] = lambda: provider
    try:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url='http://test') as ac:
            response = await ac.get('/health')
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json() == {'status': 'healthy', 'database': {'ok': True, 'dialect': 'sqlite'}}


@pytest.mark.asyncio
async def test_health_degraded_when_store_fails():
    app.dependency_overrides[get_session_provider] = lambda: _BrokenProvider()
    try:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url='http://test') as ac:
            response = await ac.get('/health')
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
    assert response.json()['status'] == 'degraded'
