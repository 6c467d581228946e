"""
Integration Tests for the global post feed
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from alumnet.models.audit_log import AuditLog, AuditAction
from conftest import auth_headers_for

BASE = '/api/v1/posts'


async def publish(client: AsyncClient, author, title: str = 'Hiring interns', **extra) -> dict:
    response = await client.post(BASE, headers=auth_headers_for(author), json={
        'title': title,
        'content': 'Summer internship openings for third years',
        **extra
    })
    assert response.status_code == 201
    return response.json()['data']


class TestPublishing:
    """Creating posts and events"""

    @pytest.mark.asyncio
    async def test_create_post(self, client: AsyncClient, alumni):
        data = await publish(client, alumni, media=['/uploads/a.png', '/uploads/a.png'])

        assert data['author']['id'] == str(alumni.id)
        assert data['type'] == 'post'
        assert data['media'] == ['/uploads/a.png']
        assert data['event'] is None
        assert data['likeCount'] == 0
        assert data['comments'] == []

    @pytest.mark.asyncio
    async def test_general_is_a_plain_post(self, client: AsyncClient, student):
        data = await publish(client, student, type='general')

        assert data['type'] == 'post'

    @pytest.mark.asyncio
    async def test_create_event(self, client: AsyncClient, faculty):
        data = await publish(client, faculty, title='Alumni meetup', type='event', event={
            'date': '2026-12-05T18:00:00',
            'location': 'Main auditorium',
            'registrationLink': 'https://example.org/register'
        })

        assert data['type'] == 'event'
        assert data['event']['location'] == 'Main auditorium'
        assert data['event']['registrationLink'] == 'https://example.org/register'

    @pytest.mark.asyncio
    async def test_event_details_dropped_on_plain_post(self, client: AsyncClient, alumni):
        data = await publish(client, alumni, event={'location': 'Nowhere'})

        assert data['event'] is None

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, client: AsyncClient, student_headers):
        response = await client.post(BASE, headers=student_headers, json={
            'title': '   ', 'content': 'Body'
        })

        assert response.status_code == 400
        assert response.json()['message'].startswith('title')

    @pytest.mark.asyncio
    async def test_too_much_media_rejected(self, client: AsyncClient, student_headers):
        response = await client.post(BASE, headers=student_headers, json={
            'title': 'Photos', 'content': 'Trip', 'media': [f'/uploads/{i}.png' for i in range(11)]
        })

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_login(self, client: AsyncClient):
        response = await client.get(BASE)

        assert response.status_code == 401


class TestFeed:
    """Listing and filtering"""

    @pytest.mark.asyncio
    async def test_newest_first(self, client: AsyncClient, alumni, student_headers):
        first = await publish(client, alumni, title='First')
        second = await publish(client, alumni, title='Second')

        response = await client.get(BASE, headers=student_headers)

        assert response.status_code == 200
        page = response.json()['data']
        assert [p['id'] for p in page['items']] == [second['id'], first['id']]
        assert page['total'] == 2

    @pytest.mark.asyncio
    async def test_filter_by_type_and_author(self, client: AsyncClient, alumni, faculty, student_headers):
        await publish(client, alumni, title='Plain')
        event = await publish(client, faculty, title='Webinar', type='event')

        by_type = await client.get(BASE, params={'type': 'event'}, headers=student_headers)
        by_author = await client.get(BASE, params={'author_id': str(alumni.id)}, headers=student_headers)

        assert [p['id'] for p in by_type.json()['data']['items']] == [event['id']]
        assert [p['title'] for p in by_author.json()['data']['items']] == ['Plain']

    @pytest.mark.asyncio
    async def test_pagination(self, client: AsyncClient, alumni, student_headers):
        for i in range(3):
            await publish(client, alumni, title=f'Post {i}')

        response = await client.get(BASE, params={'page': 2, 'page_size': 2}, headers=student_headers)

        page = response.json()['data']
        assert page['total'] == 3
        assert [p['title'] for p in page['items']] == ['Post 0']

    @pytest.mark.asyncio
    async def test_unknown_post(self, client: AsyncClient, student_headers):
        response = await client.get(f'{BASE}/00000000-0000-0000-0000-000000000000', headers=student_headers)

        assert response.status_code == 404


class TestEditing:
    """Update and delete permissions"""

    @pytest.mark.asyncio
    async def test_author_updates(self, client: AsyncClient, alumni):
        post = await publish(client, alumni)

        response = await client.put(f"{BASE}/{post['id']}", headers=auth_headers_for(alumni), json={
            'content': 'Applications closed'
        })

        assert response.status_code == 200
        assert response.json()['data']['content'] == 'Applications closed'
        assert response.json()['data']['title'] == 'Hiring interns'

    @pytest.mark.asyncio
    async def test_turning_event_into_post_clears_details(self, client: AsyncClient, faculty):
        post = await publish(client, faculty, type='event', event={'location': 'Lab 3'})

        response = await client.put(f"{BASE}/{post['id']}", headers=auth_headers_for(faculty), json={
            'type': 'post'
        })

        assert response.json()['data']['type'] == 'post'
        assert response.json()['data']['event'] is None

    @pytest.mark.asyncio
    async def test_other_user_cannot_update(self, client: AsyncClient, alumni, admin_headers):
        post = await publish(client, alumni)

        response = await client.put(f"{BASE}/{post['id']}", headers=admin_headers, json={'title': 'Mine'})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, client: AsyncClient, alumni, student_headers):
        post = await publish(client, alumni)

        response = await client.delete(f"{BASE}/{post['id']}", headers=student_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_author_deletes_with_likes_and_comments(self, client: AsyncClient, alumni, student_headers):
        post = await publish(client, alumni)
        await client.post(f"{BASE}/{post['id']}/like", headers=student_headers)
        await client.post(f"{BASE}/{post['id']}/comments", headers=student_headers, json={'content': 'Nice'})

        response = await client.delete(f"{BASE}/{post['id']}", headers=auth_headers_for(alumni))
        gone = await client.get(f"{BASE}/{post['id']}", headers=student_headers)

        assert response.status_code == 200
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_admin_removal_is_audited(self, client: AsyncClient, db_session, alumni, admin_headers):
        post = await publish(client, alumni, title='Spam')

        response = await client.delete(f"{BASE}/{post['id']}", headers=admin_headers)

        assert response.status_code == 200
        result = await db_session.execute(
            select(AuditLog).where(AuditLog.collection == 'Post')
        )
        audit = result.scalar_one()
        assert audit.action == AuditAction.DELETE
        assert audit.document_id == post['id']
        assert audit.changes['title'] == 'Spam'


class TestReactions:
    """Likes and comments"""

    @pytest.mark.asyncio
    async def test_like_toggles(self, client: AsyncClient, alumni, student_headers):
        post = await publish(client, alumni)

        liked = await client.post(f"{BASE}/{post['id']}/like", headers=student_headers)
        shown = await client.get(f"{BASE}/{post['id']}", headers=student_headers)
        unliked = await client.post(f"{BASE}/{post['id']}/like", headers=student_headers)

        assert liked.json()['data'] == {'postId': post['id'], 'liked': True, 'likeCount': 1}
        assert shown.json()['data']['likedByMe'] is True
        assert unliked.json()['data']['likeCount'] == 0

    @pytest.mark.asyncio
    async def test_comments_listed_oldest_first(self, client: AsyncClient, alumni, student, other_student):
        post = await publish(client, alumni)
        await client.post(f"{BASE}/{post['id']}/comments", headers=auth_headers_for(student),
                          json={'content': 'Interested'})
        await client.post(f"{BASE}/{post['id']}/comments", headers=auth_headers_for(other_student),
                          json={'content': 'Me too'})

        response = await client.get(f"{BASE}/{post['id']}", headers=auth_headers_for(alumni))

        comments = response.json()['data']['comments']
        assert [c['content'] for c in comments] == ['Interested', 'Me too']
        assert comments[0]['author']['id'] == str(student.id)

    @pytest.mark.asyncio
    async def test_comment_deletion_rights(self, client: AsyncClient, alumni, student, other_student,
                                           admin_headers):
        post = await publish(client, alumni)
        first = await client.post(f"{BASE}/{post['id']}/comments", headers=auth_headers_for(student),
                                  json={'content': 'First'})
        second = await client.post(f"{BASE}/{post['id']}/comments", headers=auth_headers_for(student),
                                   json={'content': 'Second'})
        first_id = first.json()['data']['id']
        second_id = second.json()['data']['id']

        forbidden = await client.delete(f"{BASE}/{post['id']}/comments/{first_id}",
                                        headers=auth_headers_for(other_student))
        own = await client.delete(f"{BASE}/{post['id']}/comments/{first_id}",
                                  headers=auth_headers_for(student))
        by_admin = await client.delete(f"{BASE}/{post['id']}/comments/{second_id}", headers=admin_headers)
        missing = await client.delete(f"{BASE}/{post['id']}/comments/{first_id}", headers=admin_headers)

        assert forbidden.status_code == 403
        assert own.status_code == 200
        assert by_admin.status_code == 200
        assert missing.status_code == 404
