"""
Integration Tests for connection requests and notifications
"""
import uuid
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from alumnet.models.connection import ConnectionRequest
from conftest import auth_headers_for


async def connect(client: AsyncClient, sender, target):
    return await client.post(
        f'/api/v1/notifications/connect/{target.id}', headers=auth_headers_for(sender)
    )


async def connection_ids(client: AsyncClient, user) -> list:
    response = await client.get('/api/v1/notifications/connections', headers=auth_headers_for(user))
    assert response.status_code == 200
    return [c['id'] for c in response.json()['data']]


class TestConnectionRequests:
    """Request, accept and list"""

    @pytest.mark.asyncio
    async def test_request_creates_notification(self, client: AsyncClient, student, alumni):
        response = await connect(client, student, alumni)

        assert response.status_code == 200
        assert response.json()['data']['status'] == 'pending'

        notifications = await client.get('/api/v1/notifications', headers=auth_headers_for(alumni))
        items = notifications.json()['data']
        assert len(items) == 1
        assert items[0]['type'] == 'connection_request'
        assert items[0]['senderId'] == str(student.id)
        assert items[0]['senderName'] == student.name

    @pytest.mark.asyncio
    async def test_accept_makes_connection_symmetric(self, client: AsyncClient, student, alumni):
        sent = await connect(client, student, alumni)
        request_id = sent.json()['data']['requestId']

        incoming = await client.get(
            '/api/v1/notifications/connection-requests', headers=auth_headers_for(alumni)
        )
        assert [r['id'] for r in incoming.json()['data']] == [request_id]
        assert incoming.json()['data'][0]['requester']['id'] == str(student.id)

        accepted = await client.post(
            f'/api/v1/notifications/connection-requests/{request_id}/respond',
            headers=auth_headers_for(alumni),
            json={'action': 'accept'}
        )
        assert accepted.status_code == 200
        assert accepted.json()['data']['status'] == 'accepted'

        assert await connection_ids(client, student) == [str(alumni.id)]
        assert await connection_ids(client, alumni) == [str(student.id)]

    @pytest.mark.asyncio
    async def test_pending_request_is_not_a_connection(self, client: AsyncClient, student, alumni):
        await connect(client, student, alumni)

        assert await connection_ids(client, student) == []
        assert await connection_ids(client, alumni) == []

    @pytest.mark.asyncio
    async def test_reverse_request_auto_accepts(self, client: AsyncClient, student, alumni):
        await connect(client, student, alumni)

        response = await connect(client, alumni, student)

        assert response.status_code == 200
        assert response.json()['data']['status'] == 'accepted'
        assert response.json()['message'] == 'Connection request accepted'
        assert await connection_ids(client, student) == [str(alumni.id)]

    @pytest.mark.asyncio
    async def test_reject(self, client: AsyncClient, student, alumni):
        sent = await connect(client, student, alumni)
        request_id = sent.json()['data']['requestId']

        response = await client.post(
            f'/api/v1/notifications/connection-requests/{request_id}/respond',
            headers=auth_headers_for(alumni),
            json={'action': 'reject'}
        )

        assert response.status_code == 200
        assert response.json()['data']['status'] == 'rejected'
        assert await connection_ids(client, student) == []

    @pytest.mark.asyncio
    async def test_connect_to_self(self, client: AsyncClient, student):
        response = await connect(client, student, student)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_connect_to_unknown_user(self, client: AsyncClient, student_headers):
        response = await client.post(
            f'/api/v1/notifications/connect/{uuid.uuid4()}', headers=student_headers
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_duplicate_request(self, client: AsyncClient, db_session, student, alumni):
        await connect(client, student, alumni)

        response = await connect(client, student, alumni)

        assert response.status_code == 409
        rows = (await db_session.execute(select(ConnectionRequest))).scalars().all()
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_only_target_can_respond(self, client: AsyncClient, student, other_student, alumni):
        sent = await connect(client, student, alumni)
        request_id = sent.json()['data']['requestId']

        response = await client.post(
            f'/api/v1/notifications/connection-requests/{request_id}/respond',
            headers=auth_headers_for(other_student),
            json={'action': 'accept'}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_invalid_action(self, client: AsyncClient, student, alumni):
        sent = await connect(client, student, alumni)
        request_id = sent.json()['data']['requestId']

        response = await client.post(
            f'/api/v1/notifications/connection-requests/{request_id}/respond',
            headers=auth_headers_for(alumni),
            json={'action': 'maybe'}
        )

        assert response.status_code == 400


class TestRemoveConnection:
    """DELETE /notifications/connections/{user_id}"""

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, client: AsyncClient, student, alumni):
        await connect(client, student, alumni)
        await connect(client, alumni, student)

        first = await client.delete(
            f'/api/v1/notifications/connections/{alumni.id}', headers=auth_headers_for(student)
        )
        second = await client.delete(
            f'/api/v1/notifications/connections/{alumni.id}', headers=auth_headers_for(student)
        )

        assert first.status_code == 200
        assert first.json()['data']['removed'] is True
        assert second.status_code == 200
        assert second.json()['data']['removed'] is False
        assert await connection_ids(client, student) == []
        assert await connection_ids(client, alumni) == []

    @pytest.mark.asyncio
    async def test_can_reconnect_after_removal(self, client: AsyncClient, student, alumni):
        await connect(client, student, alumni)
        await client.delete(
            f'/api/v1/notifications/connections/{alumni.id}', headers=auth_headers_for(student)
        )

        response = await connect(client, student, alumni)

        assert response.status_code == 200
        assert response.json()['data']['status'] == 'pending'

    @pytest.mark.asyncio
    async def test_requires_auth(self, client: AsyncClient, alumni):
        response = await client.delete(f'/api/v1/notifications/connections/{alumni.id}')

        assert response.status_code == 401


class TestNotifications:
    """Listing and dismissing notifications"""

    @pytest.mark.asyncio
    async def test_delete_own_notification(self, client: AsyncClient, student, alumni):
        await connect(client, student, alumni)
        listing = await client.get('/api/v1/notifications', headers=auth_headers_for(alumni))
        notification_id = listing.json()['data'][0]['id']

        response = await client.delete(
            f'/api/v1/notifications/{notification_id}', headers=auth_headers_for(alumni)
        )

        assert response.status_code == 200
        listing = await client.get('/api/v1/notifications', headers=auth_headers_for(alumni))
        assert listing.json()['data'] == []

    @pytest.mark.asyncio
    async def test_cannot_delete_someone_elses(self, client: AsyncClient, student, other_student, alumni):
        await connect(client, student, alumni)
        listing = await client.get('/api/v1/notifications', headers=auth_headers_for(alumni))
        notification_id = listing.json()['data'][0]['id']

        response = await client.delete(
            f'/api/v1/notifications/{notification_id}', headers=auth_headers_for(other_student)
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_clear_all(self, client: AsyncClient, student, other_student, alumni):
        await connect(client, student, alumni)
        await connect(client, other_student, alumni)

        response = await client.delete('/api/v1/notifications', headers=auth_headers_for(alumni))

        assert response.status_code == 200
        assert response.json()['data']['deletedCount'] == 2
        listing = await client.get('/api/v1/notifications', headers=auth_headers_for(alumni))
        assert listing.json()['data'] == []


class TestConnectionOnProfile:
    """Member profiles tell the viewer whether they are connected"""

    @pytest.mark.asyncio
    async def test_is_connected_flag(self, client: AsyncClient, student, alumni):
        before = await client.get(f'/api/v1/alumni/{alumni.id}', headers=auth_headers_for(student))
        assert before.json()['data']['isConnected'] is False

        await connect(client, student, alumni)
        await connect(client, alumni, student)

        after = await client.get(f'/api/v1/alumni/{alumni.id}', headers=auth_headers_for(student))
        assert after.json()['data']['isConnected'] is True

    @pytest.mark.asyncio
    async def test_own_profile_has_no_flag(self, client: AsyncClient, alumni):
        response = await client.get(f'/api/v1/alumni/{alumni.id}', headers=auth_headers_for(alumni))

        assert response.json()['data']['isConnected'] is None
