"""
Integration Tests for the enrollment allow-list
"""
import pytest
from httpx import AsyncClient


class TestEnrollmentCrud:
    """Admin create/list/delete of enrollments"""

    @pytest.mark.asyncio
    async def test_create_then_list_once(self, client: AsyncClient, admin_headers):
        created = await client.post('/api/v1/enrollments', headers=admin_headers, json={
            'enrollmentId': 'CS-2024-17', 'role': 'student'
        })
        assert created.status_code == 201
        assert created.json()['data']['enrollmentId'] == 'CS-2024-17'

        response = await client.get('/api/v1/enrollments', headers=admin_headers)

        assert response.status_code == 200
        matches = [e for e in response.json()['data'] if e['enrollmentId'] == 'CS-2024-17']
        assert len(matches) == 1
        assert matches[0]['role'] == 'student'

    @pytest.mark.asyncio
    async def test_ids_are_case_sensitive(self, client: AsyncClient, admin_headers):
        upper = await client.post('/api/v1/enrollments', headers=admin_headers, json={
            'enrollmentId': 'CS-01', 'role': 'student'
        })
        lower = await client.post('/api/v1/enrollments', headers=admin_headers, json={
            'enrollmentId': 'cs-01', 'role': 'alumni'
        })

        assert upper.status_code == 201
        assert lower.status_code == 201

        listing = await client.get('/api/v1/enrollments', headers=admin_headers)
        ids = sorted(e['enrollmentId'] for e in listing.json()['data'])
        assert ids == ['CS-01', 'cs-01']
        assert listing.json()['count'] == 2

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, client: AsyncClient, admin_headers):
        payload = {'enrollmentId': 'ALU-9', 'role': 'alumni'}
        await client.post('/api/v1/enrollments', headers=admin_headers, json=payload)

        response = await client.post('/api/v1/enrollments', headers=admin_headers, json=payload)

        assert response.status_code == 409
        assert response.json()['message'] == 'Enrollment ID already exists'

    @pytest.mark.asyncio
    async def test_admin_role_rejected(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/v1/enrollments', headers=admin_headers, json={
            'enrollmentId': 'ADM-1', 'role': 'admin'
        })

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_blank_id_rejected(self, client: AsyncClient, admin_headers):
        response = await client.post('/api/v1/enrollments', headers=admin_headers, json={
            'enrollmentId': '   ', 'role': 'faculty'
        })

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_by_enrollment_id(self, client: AsyncClient, admin_headers):
        await client.post('/api/v1/enrollments', headers=admin_headers, json={
            'enrollmentId': 'FAC-3', 'role': 'faculty'
        })

        first = await client.delete('/api/v1/enrollments/FAC-3', headers=admin_headers)
        second = await client.delete('/api/v1/enrollments/FAC-3', headers=admin_headers)

        assert first.status_code == 200
        assert second.status_code == 404
        listing = await client.get('/api/v1/enrollments', headers=admin_headers)
        assert listing.json()['data'] == []

    @pytest.mark.asyncio
    async def test_delete_by_record_id(self, client: AsyncClient, admin_headers):
        created = await client.post('/api/v1/enrollments', headers=admin_headers, json={
            'enrollmentId': 'STU-77', 'role': 'student'
        })
        record_id = created.json()['data']['id']

        response = await client.delete(f'/api/v1/enrollments/{record_id}', headers=admin_headers)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_delete_keeps_registered_user(self, client: AsyncClient, db_session, admin_headers,
                                               enrollment, make_user):
        user = await make_user(enrollment_id=enrollment.enrollment_id)

        response = await client.delete(
            f'/api/v1/enrollments/{enrollment.enrollment_id}', headers=admin_headers
        )

        assert response.status_code == 200
        await db_session.refresh(user)
        assert user.enrollment_id == enrollment.enrollment_id

    @pytest.mark.asyncio
    async def test_student_forbidden(self, client: AsyncClient, student_headers):
        listing = await client.get('/api/v1/enrollments', headers=student_headers)
        create = await client.post('/api/v1/enrollments', headers=student_headers, json={
            'enrollmentId': 'X-1', 'role': 'student'
        })

        assert listing.status_code == 403
        assert create.status_code == 403
