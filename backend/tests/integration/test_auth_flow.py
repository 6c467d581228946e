"""
Integration Tests for signup, OTP verification, login and logout
"""
from datetime import datetime, timedelta
from unittest.mock import patch
import pytest
from httpx import AsyncClient
from sqlalchemy import select, text

from alumnet.core.security import decode_token
from alumnet.models.audit_log import AuditLog, AuditAction
from alumnet.models.otp import OtpVerification
from alumnet.models.user import User, UserRole
from alumnet.models.user_activity import UserActivity, ActivityAction
from conftest import DEFAULT_PASSWORD, auth_headers_for, unique_email

OTP_CODE = '482915'


def signup_payload(enrollment_id: str, **overrides) -> dict:
    payload = {
        'username': f'user_{unique_email()[:8]}',
        'name': 'Asha Verma',
        'email': unique_email(),
        'password': 'securePassword1',
        'enrollmentId': enrollment_id,
    }
    payload.update(overrides)
    return payload


class TestSignup:
    """Signup against the enrollment allow-list"""

    @pytest.mark.asyncio
    async def test_signup_success(self, client: AsyncClient, db_session, enrollment, mock_send_email):
        """Role comes from the enrollment and the account starts unverified"""
        payload = signup_payload(enrollment.enrollment_id)

        response = await client.post('/api/v1/auth/signup', json=payload)

        assert response.status_code == 201
        body = response.json()
        assert body['status'] == 'success'
        assert body['data']['user']['email'] == payload['email']
        assert body['data']['user']['role'] == 'student'
        assert body['data']['user']['isVerified'] is False
        assert body['data']['otpSent'] is True
        assert 'hashedPassword' not in body['data']['user']
        mock_send_email.assert_awaited_once()

        audit = (await db_session.execute(
            select(AuditLog).where(AuditLog.collection == 'User')
        )).scalars().all()
        assert len(audit) == 1
        assert audit[0].action == AuditAction.CREATE

    @pytest.mark.asyncio
    async def test_signup_unknown_enrollment(self, client: AsyncClient):
        response = await client.post('/api/v1/auth/signup', json=signup_payload('NOPE-404'))

        assert response.status_code == 400
        body = response.json()
        assert body['status'] == 'error'
        assert body['message'] == 'Invalid enrollment ID'

    @pytest.mark.asyncio
    async def test_signup_enrollment_id_is_case_sensitive(self, client: AsyncClient, enrollment):
        response = await client.post(
            '/api/v1/auth/signup',
            json=signup_payload(enrollment.enrollment_id.lower())
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_signup_enrollment_already_used(self, client: AsyncClient, enrollment):
        first = await client.post('/api/v1/auth/signup', json=signup_payload(enrollment.enrollment_id))
        assert first.status_code == 201

        second = await client.post('/api/v1/auth/signup', json=signup_payload(enrollment.enrollment_id))

        assert second.status_code == 409

    @pytest.mark.asyncio
    async def test_signup_duplicate_email(self, client: AsyncClient, student, enrollment):
        response = await client.post(
            '/api/v1/auth/signup',
            json=signup_payload(enrollment.enrollment_id, email=student.email)
        )

        assert response.status_code == 409
        assert 'already registered' in response.json()['message'].lower()

    @pytest.mark.asyncio
    async def test_signup_email_failure_does_not_fail_signup(self, client: AsyncClient, enrollment,
                                                             mock_send_email):
        mock_send_email.return_value = False

        response = await client.post('/api/v1/auth/signup', json=signup_payload(enrollment.enrollment_id))

        assert response.status_code == 201
        assert response.json()['data']['otpSent'] is False

    @pytest.mark.asyncio
    async def test_signup_missing_password_is_400(self, client: AsyncClient, enrollment):
        payload = signup_payload(enrollment.enrollment_id)
        del payload['password']

        response = await client.post('/api/v1/auth/signup', json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body['status'] == 'error'
        assert 'password' in body['message']


class TestOtpVerification:
    """OTP step between signup and first login"""

    async def _signup(self, client: AsyncClient, enrollment) -> dict:
        payload = signup_payload(enrollment.enrollment_id)
        with patch('alumnet.services.otp_service.generate_otp', return_value=OTP_CODE):
            response = await client.post('/api/v1/auth/signup', json=payload)
        assert response.status_code == 201
        return payload

    @pytest.mark.asyncio
    async def test_verify_then_login(self, client: AsyncClient, enrollment):
        payload = await self._signup(client, enrollment)

        blocked = await client.post('/api/v1/auth/login', json={
            'email': payload['email'], 'password': payload['password']
        })
        assert blocked.status_code == 403
        assert 'not verified' in blocked.json()['message'].lower()

        verified = await client.post('/api/v1/auth/verify-otp', json={
            'email': payload['email'], 'otp': OTP_CODE
        })
        assert verified.status_code == 200
        assert verified.json()['data']['isVerified'] is True

        login = await client.post('/api/v1/auth/login', json={
            'email': payload['email'], 'password': payload['password']
        })
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_otp(self, client: AsyncClient, enrollment):
        payload = await self._signup(client, enrollment)

        response = await client.post('/api/v1/auth/verify-otp', json={
            'email': payload['email'], 'otp': '000000'
        })

        assert response.status_code == 400
        assert response.json()['message'] == 'Invalid OTP'

    @pytest.mark.asyncio
    async def test_expired_otp(self, client: AsyncClient, db_session, enrollment):
        payload = await self._signup(client, enrollment)
        record = (await db_session.execute(select(OtpVerification))).scalar_one()
        record.expires_at = datetime.utcnow() - timedelta(minutes=1)
        await db_session.commit()

        response = await client.post('/api/v1/auth/verify-otp', json={
            'email': payload['email'], 'otp': OTP_CODE
        })

        assert response.status_code == 400
        assert 'expired' in response.json()['message'].lower()

    @pytest.mark.asyncio
    async def test_verify_unknown_user(self, client: AsyncClient):
        response = await client.post('/api/v1/auth/verify-otp', json={
            'email': unique_email(), 'otp': OTP_CODE
        })

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_resend_otp_replaces_code(self, client: AsyncClient, db_session, enrollment):
        payload = await self._signup(client, enrollment)

        with patch('alumnet.services.otp_service.generate_otp', return_value='111222'):
            response = await client.post('/api/v1/auth/resend-otp', json={'email': payload['email']})
        assert response.status_code == 200

        old = await client.post('/api/v1/auth/verify-otp', json={
            'email': payload['email'], 'otp': OTP_CODE
        })
        assert old.status_code == 400

        new = await client.post('/api/v1/auth/verify-otp', json={
            'email': payload['email'], 'otp': '111222'
        })
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_resend_otp_already_verified(self, client: AsyncClient, student):
        response = await client.post('/api/v1/auth/resend-otp', json={'email': student.email})

        assert response.status_code == 400


class TestLogin:
    """Login and the LOGIN/LOGOUT activity trail"""

    @pytest.mark.asyncio
    async def test_login_success_records_one_activity(self, client: AsyncClient, db_session, alumni):
        response = await client.post('/api/v1/auth/login', json={
            'email': alumni.email, 'password': DEFAULT_PASSWORD
        })

        assert response.status_code == 200
        data = response.json()['data']
        assert data['user']['id'] == str(alumni.id)
        assert decode_token(data['token'])['sub'] == str(alumni.id)

        activities = (await db_session.execute(select(UserActivity))).scalars().all()
        assert len(activities) == 1
        assert activities[0].action == ActivityAction.LOGIN
        assert activities[0].user_email == alumni.email
        assert activities[0].user_role == UserRole.ALUMNI.value

    @pytest.mark.asyncio
    async def test_activity_keeps_snapshot_after_email_change(self, client: AsyncClient, db_session, student):
        original_email = student.email
        await client.post('/api/v1/auth/login', json={
            'email': original_email, 'password': DEFAULT_PASSWORD
        })

        student.email = unique_email()
        await db_session.commit()

        activity = (await db_session.execute(select(UserActivity))).scalar_one()
        assert activity.user_email == original_email

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, db_session, student):
        response = await client.post('/api/v1/auth/login', json={
            'email': student.email, 'password': 'wrongpassword'
        })

        assert response.status_code == 401
        assert response.json()['status'] == 'error'
        activities = (await db_session.execute(select(UserActivity))).scalars().all()
        assert activities == []

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post('/api/v1/auth/login', json={
            'email': unique_email(), 'password': DEFAULT_PASSWORD
        })

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_inactive_user(self, client: AsyncClient, make_user):
        user = await make_user(is_active=False)

        response = await client.post('/api/v1/auth/login', json={
            'email': user.email, 'password': DEFAULT_PASSWORD
        })

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_logout_records_activity(self, client: AsyncClient, db_session, student, student_headers):
        response = await client.post('/api/v1/auth/logout', headers=student_headers)

        assert response.status_code == 200
        activity = (await db_session.execute(select(UserActivity))).scalar_one()
        assert activity.action == ActivityAction.LOGOUT
        assert activity.user_id == str(student.id)

    @pytest.mark.asyncio
    async def test_login_survives_failed_activity_write(self, client: AsyncClient, db_session, student):
        email, user_id = student.email, str(student.id)
        await db_session.execute(text('DROP TABLE user_activities'))
        await db_session.commit()

        response = await client.post('/api/v1/auth/login', json={
            'email': email, 'password': DEFAULT_PASSWORD
        })

        assert response.status_code == 200
        body = response.json()
        assert body['status'] == 'success'
        assert body['data']['user']['id'] == user_id
        assert decode_token(body['data']['token'])['sub'] == user_id

    @pytest.mark.asyncio
    async def test_logout_survives_failed_activity_write(self, client: AsyncClient, db_session,
                                                         student_headers):
        await db_session.execute(text('DROP TABLE user_activities'))
        await db_session.commit()

        response = await client.post('/api/v1/auth/logout', headers=student_headers)

        assert response.status_code == 200
        assert response.json()['status'] == 'success'

    @pytest.mark.asyncio
    async def test_me_requires_token(self, client: AsyncClient):
        response = await client.get('/api/v1/auth/me')

        assert response.status_code == 401
        body = response.json()
        assert body['status'] == 'error'
        assert body['data'] is None

    @pytest.mark.asyncio
    async def test_me_rejects_garbage_token(self, client: AsyncClient):
        response = await client.get('/api/v1/auth/me', headers={'Authorization': 'Bearer not-a-jwt'})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me(self, client: AsyncClient, student, student_headers):
        response = await client.get('/api/v1/auth/me', headers=student_headers)

        assert response.status_code == 200
        assert response.json()['data']['email'] == student.email


class TestPasswordAndUsername:
    """Password reset, password change and username change"""

    @pytest.mark.asyncio
    async def test_forgot_password_unknown_email_still_200(self, client: AsyncClient, mock_send_email):
        response = await client.post('/api/v1/auth/forgot-password', json={'email': unique_email()})

        assert response.status_code == 200
        mock_send_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reset_password(self, client: AsyncClient, student):
        with patch('alumnet.services.otp_service.generate_otp', return_value=OTP_CODE):
            forgot = await client.post('/api/v1/auth/forgot-password', json={'email': student.email})
        assert forgot.status_code == 200

        reset = await client.post('/api/v1/auth/reset-password', json={
            'email': student.email, 'otp': OTP_CODE, 'password': 'brandNewPass1'
        })
        assert reset.status_code == 200

        login = await client.post('/api/v1/auth/login', json={
            'email': student.email, 'password': 'brandNewPass1'
        })
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_reset_password_wrong_otp(self, client: AsyncClient, student):
        with patch('alumnet.services.otp_service.generate_otp', return_value=OTP_CODE):
            await client.post('/api/v1/auth/forgot-password', json={'email': student.email})

        response = await client.post('/api/v1/auth/reset-password', json={
            'email': student.email, 'otp': '999999', 'password': 'brandNewPass1'
        })

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, client: AsyncClient, student_headers):
        response = await client.post('/api/v1/auth/change-password', headers=student_headers, json={
            'currentPassword': 'not-my-password', 'newPassword': 'anotherPass1'
        })

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_change_password(self, client: AsyncClient, student, student_headers):
        response = await client.post('/api/v1/auth/change-password', headers=student_headers, json={
            'currentPassword': DEFAULT_PASSWORD, 'newPassword': 'anotherPass1'
        })
        assert response.status_code == 200

        login = await client.post('/api/v1/auth/login', json={
            'email': student.email, 'password': 'anotherPass1'
        })
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_update_username_taken(self, client: AsyncClient, student_headers, alumni):
        response = await client.put('/api/v1/auth/username', headers=student_headers, json={
            'username': alumni.username
        })

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_update_username_too_short(self, client: AsyncClient, student_headers):
        response = await client.put('/api/v1/auth/username', headers=student_headers, json={'username': 'ab'})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_username(self, client: AsyncClient, student, student_headers):
        response = await client.put('/api/v1/auth/username', headers=student_headers, json={
            'username': 'fresh_name'
        })

        assert response.status_code == 200
        assert response.json()['data']['username'] == 'fresh_name'

    @pytest.mark.asyncio
    async def test_token_of_other_user_unaffected(self, client: AsyncClient, alumni):
        response = await client.get('/api/v1/auth/me', headers=auth_headers_for(alumni))

        assert response.json()['data']['role'] == 'alumni'
