"""
Integration Tests for admin user management and dashboard
"""
from datetime import datetime, timedelta
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from alumnet.models.audit_log import AuditLog, AuditAction
from alumnet.models.user import UserRole
from alumnet.models.user_activity import UserActivity, ActivityAction


class TestAdminUsers:
    """GET /admin/users and PATCH /admin/users/{id}/verify"""

    @pytest.mark.asyncio
    async def test_unauthenticated_gets_no_data(self, client: AsyncClient, student):
        response = await client.get('/api/v1/admin/users')

        assert response.status_code == 401
        body = response.json()
        assert body['status'] == 'error'
        assert body['data'] is None
        assert student.email not in response.text

    @pytest.mark.asyncio
    async def test_student_forbidden(self, client: AsyncClient, student_headers):
        response = await client.get('/api/v1/admin/users', headers=student_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_list_all(self, client: AsyncClient, student, alumni, admin_headers):
        response = await client.get('/api/v1/admin/users', headers=admin_headers)

        assert response.status_code == 200
        data = response.json()['data']
        assert data['total'] == 3
        assert all('hashedPassword' not in item for item in data['items'])

    @pytest.mark.asyncio
    async def test_role_filter(self, client: AsyncClient, student, alumni, faculty, admin_headers):
        response = await client.get('/api/v1/admin/users', params={'role': 'alumni'}, headers=admin_headers)

        items = response.json()['data']['items']
        assert [item['id'] for item in items] == [str(alumni.id)]

    @pytest.mark.asyncio
    async def test_search(self, client: AsyncClient, student, alumni, admin_headers):
        response = await client.get(
            '/api/v1/admin/users', params={'search': alumni.email}, headers=admin_headers
        )

        items = response.json()['data']['items']
        assert len(items) == 1
        assert items[0]['email'] == alumni.email

    @pytest.mark.asyncio
    async def test_pagination(self, client: AsyncClient, make_user, admin_headers):
        for _ in range(3):
            await make_user(UserRole.STUDENT)

        response = await client.get(
            '/api/v1/admin/users', params={'page': 2, 'page_size': 2}, headers=admin_headers
        )

        data = response.json()['data']
        assert data['total'] == 4
        assert data['page'] == 2
        assert len(data['items']) == 2
        assert data['hasPrevious'] is True
        assert data['hasNext'] is False

    @pytest.mark.asyncio
    async def test_verify_user(self, client: AsyncClient, db_session, make_user, admin_headers):
        pending = await make_user(UserRole.ALUMNI, is_verified=False)

        response = await client.patch(f'/api/v1/admin/users/{pending.id}/verify', headers=admin_headers)

        assert response.status_code == 200
        assert response.json()['data']['isVerified'] is True
        audit = (await db_session.execute(
            select(AuditLog).where(AuditLog.document_id == str(pending.id))
        )).scalar_one()
        assert audit.action == AuditAction.UPDATE

    @pytest.mark.asyncio
    async def test_verify_unknown_user(self, client: AsyncClient, admin_headers):
        response = await client.patch(
            '/api/v1/admin/users/00000000-0000-0000-0000-000000000000/verify', headers=admin_headers
        )

        assert response.status_code == 404


class TestDashboard:
    """GET /admin/dashboard-stats"""

    @pytest.mark.asyncio
    async def test_counts(self, client: AsyncClient, db_session, student, alumni, faculty, enrollment,
                          make_user, admin_headers):
        await make_user(UserRole.STUDENT, is_verified=False)
        for action in (ActivityAction.LOGIN, ActivityAction.LOGOUT):
            db_session.add(UserActivity(
                action=action,
                user_id=str(student.id),
                user_email=student.email,
                user_role=student.role.value,
                timestamp=datetime.utcnow(),
            ))
        db_session.add(UserActivity(
            action=ActivityAction.LOGIN,
            user_id=str(student.id),
            user_email=student.email,
            user_role=student.role.value,
            timestamp=datetime.utcnow() - timedelta(days=2),
        ))
        await db_session.commit()

        response = await client.get('/api/v1/admin/dashboard-stats', headers=admin_headers)

        assert response.status_code == 200
        stats = response.json()['data']
        assert stats['totalUsers'] == 5
        assert stats['totalStudents'] == 2
        assert stats['totalAlumni'] == 1
        assert stats['totalFaculty'] == 1
        assert stats['verifiedUsers'] == 4
        assert stats['totalEnrollments'] == 1
        assert stats['loginsToday'] == 1
        assert len(stats['recentActivities']) == 5

    @pytest.mark.asyncio
    async def test_student_forbidden(self, client: AsyncClient, student_headers):
        response = await client.get('/api/v1/admin/dashboard-stats', headers=student_headers)

        assert response.status_code == 403
