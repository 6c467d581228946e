"""
Community membership rules and response assembly.

Visibility:
- public: listed for everyone, joining is immediate
- private: listed for everyone, joining creates a pending request that a
  moderator approves, posts are readable by active members only
- hidden: invisible (404) to everyone except members and admins
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from alumnet.core.exceptions import AuthorizationError, ResourceNotFoundError
from alumnet.models.community import (
    Community,
    CommunityMember,
    CommunityPost,
    CommunityVisibility,
    MemberStatus,
    PostComment,
    PostLike,
)
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.community import CommentResponse, CommunityResponse, PostResponse
from alumnet.schemas.connection import UserSummary
from alumnet.services.user_service import load_profiles, load_users, to_summary


async def get_community(db: AsyncSession, community_id: str) -> Community:
    result = await db.execute(
        select(Community).where(Community.id == community_id, Community.is_active.is_(True))
    )
    community = result.scalar_one_or_none()
    if community is None:
        raise ResourceNotFoundError("Community", community_id)
    return community


async def get_membership(db: AsyncSession, community_id: str, user_id: str) -> Optional[CommunityMember]:
    result = await db.execute(
        select(CommunityMember).where(
            CommunityMember.community_id == str(community_id),
            CommunityMember.user_id == str(user_id),
        )
    )
    return result.scalar_one_or_none()


def is_active_member(membership: Optional[CommunityMember]) -> bool:
    return membership is not None and membership.status == MemberStatus.ACTIVE


def can_see(community: Community, membership: Optional[CommunityMember], session: RequestSession) -> bool:
    if community.visibility != CommunityVisibility.HIDDEN or session.is_admin:
        return True
    return membership is not None


async def visible_community(db: AsyncSession, community_id: str,
                            session: RequestSession) -> tuple:
    """Community and the caller's membership; hidden ones are 404 to outsiders"""
    community = await get_community(db, community_id)
    membership = await get_membership(db, community.id, session.user_id)
    if not can_see(community, membership, session):
        raise ResourceNotFoundError("Community", community_id)
    return community, membership


def require_moderator(membership: Optional[CommunityMember], session: RequestSession) -> None:
    if session.is_admin:
        return
    if membership is None or not membership.is_moderator:
        raise AuthorizationError("Only community moderators can do this")


def require_reader(community: Community, membership: Optional[CommunityMember],
                   session: RequestSession) -> None:
    """Posts of non-public communities are for active members only"""
    if community.visibility == CommunityVisibility.PUBLIC or session.is_admin:
        return
    if not is_active_member(membership):
        raise AuthorizationError("Join this community to see its posts")


def require_active_member(membership: Optional[CommunityMember]) -> None:
    if not is_active_member(membership):
        raise AuthorizationError("Only community members can do this")


async def member_counts(db: AsyncSession, community_ids: Iterable[str]) -> Dict[str, int]:
    ids = [str(community_id) for community_id in community_ids]
    if not ids:
        return {}
    result = await db.execute(
        select(CommunityMember.community_id, func.count(CommunityMember.id))
        .where(
            CommunityMember.community_id.in_(ids),
            CommunityMember.status == MemberStatus.ACTIVE,
        )
        .group_by(CommunityMember.community_id)
    )
    return {str(community_id): count for community_id, count in result.all()}


def to_response(community: Community, member_count: int,
                membership: Optional[CommunityMember]) -> CommunityResponse:
    return CommunityResponse(
        id=str(community.id),
        name=community.name,
        description=community.description,
        category=community.category,
        tags=community.tags or [],
        visibility=community.visibility,
        icon=community.icon,
        cover_image=community.cover_image,
        post_count=community.post_count,
        member_count=member_count,
        created_by=str(community.created_by) if community.created_by else None,
        created_at=community.created_at,
        my_role=membership.role if membership else None,
        my_status=membership.status if membership else None,
    )


async def community_response(db: AsyncSession, community: Community,
                             membership: Optional[CommunityMember]) -> CommunityResponse:
    counts = await member_counts(db, [community.id])
    return to_response(community, counts.get(str(community.id), 0), membership)


async def build_posts(db: AsyncSession, posts: List[CommunityPost], viewer_id: str) -> List[PostResponse]:
    """Posts with authors, like counts and comments, in the given order"""
    if not posts:
        return []
    post_ids = [str(post.id) for post in posts]

    likes = await db.execute(
        select(PostLike.post_id, func.count(PostLike.id))
        .where(PostLike.post_id.in_(post_ids))
        .group_by(PostLike.post_id)
    )
    like_counts = {str(post_id): count for post_id, count in likes.all()}

    mine = await db.execute(
        select(PostLike.post_id).where(PostLike.post_id.in_(post_ids), PostLike.user_id == str(viewer_id))
    )
    liked = {str(row[0]) for row in mine.all()}

    comment_rows = await db.execute(
        select(PostComment)
        .where(PostComment.post_id.in_(post_ids))
        .order_by(PostComment.created_at, PostComment.id)
    )
    comments = list(comment_rows.scalars().all())

    author_ids = {str(post.user_id) for post in posts} | {str(c.user_id) for c in comments}
    users = await load_users(db, author_ids)
    profiles = await load_profiles(db, author_ids)

    def author(user_id) -> Optional[UserSummary]:
        user = users.get(str(user_id))
        return to_summary(user, profiles.get(str(user_id))) if user else None

    comments_by_post: Dict[str, List[CommentResponse]] = {}
    for comment in comments:
        summary = author(comment.user_id)
        if summary is None:
            continue
        comments_by_post.setdefault(str(comment.post_id), []).append(CommentResponse(
            id=str(comment.id),
            post_id=str(comment.post_id),
            author=summary,
            content=comment.content,
            created_at=comment.created_at,
        ))

    responses = []
    for post in posts:
        summary = author(post.user_id)
        if summary is None:
            continue
        responses.append(PostResponse(
            id=str(post.id),
            community_id=str(post.community_id),
            author=summary,
            content=post.content,
            media=post.media or [],
            is_pinned=post.is_pinned,
            like_count=like_counts.get(str(post.id), 0),
            liked_by_me=str(post.id) in liked,
            comments=comments_by_post.get(str(post.id), []),
            created_at=post.created_at,
            updated_at=post.updated_at,
        ))
    return responses


async def get_post(db: AsyncSession, community: Community, post_id: str) -> CommunityPost:
    result = await db.execute(
        select(CommunityPost).where(
            CommunityPost.id == post_id,
            CommunityPost.community_id == str(community.id),
        )
    )
    post = result.scalar_one_or_none()
    if post is None:
        raise ResourceNotFoundError("Post", post_id)
    return post
