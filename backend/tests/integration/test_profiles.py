"""
Integration Tests for student, alumni and faculty profiles
"""
import os
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from alumnet.core.config import settings
from alumnet.models.audit_log import AuditLog, AuditAction
from alumnet.models.user import UserRole
from conftest import auth_headers_for

PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 128


class TestStudentProfile:
    """PUT /students/profile/{id} and GET /students/{id}"""

    @pytest.mark.asyncio
    async def test_create_profile(self, client: AsyncClient, db_session, student, student_headers):
        response = await client.put(f'/api/v1/students/profile/{student.id}', headers=student_headers, json={
            'branch': 'CSE',
            'yearOfPassing': 2026,
            'skills': ['python', ' python ', 'sql', ''],
            'socialLinks': {'GitHub': 'https://github.com/asha'}
        })

        assert response.status_code == 200
        profile = response.json()['data']['profile']
        assert profile['branch'] == 'CSE'
        assert profile['yearOfPassing'] == 2026
        assert profile['skills'] == ['python', 'sql']
        assert profile['socialLinks']['github'] == 'https://github.com/asha'
        assert profile['socialLinks']['linkedin'] == ''
        assert profile['isVerified'] is True

        audit = (await db_session.execute(
            select(AuditLog).where(AuditLog.collection == 'Profile')
        )).scalar_one()
        assert audit.action == AuditAction.UPDATE

    @pytest.mark.asyncio
    async def test_partial_update_merges_social_links(self, client: AsyncClient, db_session, student,
                                                      student_headers):
        url = f'/api/v1/students/profile/{student.id}'
        await client.put(url, headers=student_headers, json={
            'branch': 'ECE',
            'socialLinks': {'github': 'https://github.com/asha'}
        })

        response = await client.put(url, headers=student_headers, json={
            'socialLinks': {'linkedin': 'https://linkedin.com/in/asha'}
        })

        profile = response.json()['data']['profile']
        assert profile['branch'] == 'ECE'
        assert profile['socialLinks']['github'] == 'https://github.com/asha'
        assert profile['socialLinks']['linkedin'] == 'https://linkedin.com/in/asha'

        updates = (await db_session.execute(
            select(AuditLog).where(AuditLog.action == AuditAction.UPDATE)
        )).scalars().all()
        assert len(updates) == 2
        second = [entry for entry in updates if 'branch' not in entry.changes]
        assert len(second) == 1
        assert 'social_links' in second[0].changes

    @pytest.mark.asyncio
    async def test_other_student_cannot_edit(self, client: AsyncClient, student, other_student):
        response = await client.put(
            f'/api/v1/students/profile/{student.id}',
            headers=auth_headers_for(other_student),
            json={'branch': 'MECH'}
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_can_edit(self, client: AsyncClient, student, admin_headers):
        response = await client.put(
            f'/api/v1/students/profile/{student.id}', headers=admin_headers, json={'phone': '9876543210'}
        )

        assert response.status_code == 200
        assert response.json()['data']['profile']['phone'] == '9876543210'

    @pytest.mark.asyncio
    async def test_invalid_year_rejected(self, client: AsyncClient, student, student_headers):
        response = await client.put(
            f'/api/v1/students/profile/{student.id}', headers=student_headers, json={'yearOfPassing': 1800}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_get_student(self, client: AsyncClient, student, alumni_headers):
        response = await client.get(f'/api/v1/students/{student.id}', headers=alumni_headers)

        assert response.status_code == 200
        data = response.json()['data']
        assert data['id'] == str(student.id)
        assert data['profile'] is None

    @pytest.mark.asyncio
    async def test_get_wrong_role_is_404(self, client: AsyncClient, alumni, student_headers):
        response = await client.get(f'/api/v1/students/{alumni.id}', headers=student_headers)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list_filters_by_branch(self, client: AsyncClient, student, other_student, admin_headers):
        await client.put(f'/api/v1/students/profile/{student.id}', headers=admin_headers, json={'branch': 'CSE'})
        await client.put(
            f'/api/v1/students/profile/{other_student.id}', headers=admin_headers, json={'branch': 'EEE'}
        )

        response = await client.get('/api/v1/students', params={'branch': 'cse'}, headers=admin_headers)

        assert response.status_code == 200
        items = response.json()['data']['items']
        assert [item['id'] for item in items] == [str(student.id)]

    @pytest.mark.asyncio
    async def test_list_requires_auth(self, client: AsyncClient):
        response = await client.get('/api/v1/students')

        assert response.status_code == 401


class TestProfileImage:
    """POST /students/profile/{id}/image"""

    @pytest.mark.asyncio
    async def test_upload_png(self, client: AsyncClient, student, student_headers):
        response = await client.post(
            f'/api/v1/students/profile/{student.id}/image',
            headers=student_headers,
            files={'image': ('me.png', PNG_BYTES, 'image/png')}
        )

        assert response.status_code == 200
        url = response.json()['data']['profilePicture']
        assert url.startswith('/uploads/profiles/')
        assert url.endswith('.png')
        stored = os.path.join(settings.UPLOAD_DIR, url[len('/uploads/'):])
        assert os.path.exists(stored)

        member = await client.get(f'/api/v1/students/{student.id}', headers=student_headers)
        assert member.json()['data']['profile']['profilePicture'] == url

    @pytest.mark.asyncio
    async def test_replacing_image_removes_old_file(self, client: AsyncClient, student, student_headers):
        url = f'/api/v1/students/profile/{student.id}/image'
        first = await client.post(url, headers=student_headers, files={'image': ('a.png', PNG_BYTES, 'image/png')})
        old_path = os.path.join(settings.UPLOAD_DIR, first.json()['data']['profilePicture'][len('/uploads/'):])

        await client.post(url, headers=student_headers, files={'image': ('b.png', PNG_BYTES, 'image/png')})

        assert not os.path.exists(old_path)

    @pytest.mark.asyncio
    async def test_non_image_rejected(self, client: AsyncClient, student, student_headers):
        response = await client.post(
            f'/api/v1/students/profile/{student.id}/image',
            headers=student_headers,
            files={'image': ('notes.txt', b'hello', 'text/plain')}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_extension_ignores_client_filename(self, client: AsyncClient, student, student_headers):
        payload = b'<script>alert(document.cookie)</script>'

        response = await client.post(
            f'/api/v1/students/profile/{student.id}/image',
            headers=student_headers,
            files={'image': ('evil.html', payload, 'image/png')}
        )

        assert response.status_code == 200
        url = response.json()['data']['profilePicture']
        assert url.endswith('.png')
        assert '.html' not in url

        served = await client.get(url)
        assert served.status_code == 200
        assert served.headers['content-type'].startswith('image/png')

    @pytest.mark.asyncio
    async def test_jpeg_stored_as_jpg(self, client: AsyncClient, student, student_headers):
        response = await client.post(
            f'/api/v1/students/profile/{student.id}/image',
            headers=student_headers,
            files={'image': ('photo.jpeg', b'\xff\xd8\xff' + b'\x00' * 64, 'image/jpeg')}
        )

        assert response.status_code == 200
        assert response.json()['data']['profilePicture'].endswith('.jpg')

    @pytest.mark.asyncio
    @pytest.mark.parametrize('filename,content_type', [
        ('logo.svg', 'image/svg+xml'),
        ('page.html', 'text/html'),
        ('icon.bmp', 'image/bmp'),
    ])
    async def test_unlisted_types_rejected(self, client: AsyncClient, student, student_headers,
                                           filename, content_type):
        response = await client.post(
            f'/api/v1/students/profile/{student.id}/image',
            headers=student_headers,
            files={'image': (filename, b'<svg onload="alert(1)"/>', content_type)}
        )

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_FILE_TYPE'

    @pytest.mark.asyncio
    async def test_oversized_image_rejected(self, client: AsyncClient, student, student_headers):
        too_big = b'\x00' * (settings.MAX_PROFILE_IMAGE_SIZE + 1)

        response = await client.post(
            f'/api/v1/students/profile/{student.id}/image',
            headers=student_headers,
            files={'image': ('big.png', too_big, 'image/png')}
        )

        assert response.status_code == 400
        assert 'too large' in response.json()['message'].lower()

    @pytest.mark.asyncio
    async def test_other_user_cannot_upload(self, client: AsyncClient, student, other_student):
        response = await client.post(
            f'/api/v1/students/profile/{student.id}/image',
            headers=auth_headers_for(other_student),
            files={'image': ('me.png', PNG_BYTES, 'image/png')}
        )

        assert response.status_code == 403


class TestAlumniAndFaculty:
    """Alumni directory and faculty profiles"""

    @pytest.mark.asyncio
    async def test_only_verified_alumni_listed(self, client: AsyncClient, alumni, make_user, student_headers):
        unverified = await make_user(UserRole.ALUMNI, is_verified=False)

        response = await client.get('/api/v1/alumni', headers=student_headers)

        ids = [item['id'] for item in response.json()['data']['items']]
        assert str(alumni.id) in ids
        assert str(unverified.id) not in ids

    @pytest.mark.asyncio
    async def test_company_filter(self, client: AsyncClient, alumni, make_user, alumni_headers, admin_headers):
        other = await make_user(UserRole.ALUMNI)
        await client.put(
            f'/api/v1/alumni/profile/{alumni.id}', headers=alumni_headers,
            json={'currentCompany': 'Infosys', 'currentDesignation': 'Engineer'}
        )
        await client.put(
            f'/api/v1/alumni/profile/{other.id}', headers=admin_headers, json={'currentCompany': 'TCS'}
        )

        response = await client.get('/api/v1/alumni', params={'company': 'infos'}, headers=alumni_headers)

        items = response.json()['data']['items']
        assert [item['id'] for item in items] == [str(alumni.id)]
        assert items[0]['profile']['currentDesignation'] == 'Engineer'

    @pytest.mark.asyncio
    async def test_faculty_profile(self, client: AsyncClient, faculty, student_headers):
        headers = auth_headers_for(faculty)
        update = await client.put(f'/api/v1/faculty/profile/{faculty.id}', headers=headers, json={
            'department': 'Computer Science',
            'subjects': ['DBMS', 'DBMS', 'Networks']
        })
        assert update.status_code == 200

        response = await client.get(f'/api/v1/faculty/{faculty.id}', headers=student_headers)

        profile = response.json()['data']['profile']
        assert profile['department'] == 'Computer Science'
        assert profile['subjects'] == ['DBMS', 'Networks']

    @pytest.mark.asyncio
    async def test_student_endpoint_cannot_edit_alumni(self, client: AsyncClient, alumni, alumni_headers):
        response = await client.put(
            f'/api/v1/students/profile/{alumni.id}', headers=alumni_headers, json={'branch': 'CSE'}
        )

        assert response.status_code == 404
