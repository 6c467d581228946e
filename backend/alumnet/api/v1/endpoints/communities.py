"""
Communities, membership and community posts.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func, or_
from typing import List, Optional

from alumnet.core.database import get_db
from alumnet.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from alumnet.core.logging_config import logger
from alumnet.models.audit_log import AuditAction
from alumnet.models.community import (
    Community,
    CommunityCategory,
    CommunityMember,
    CommunityPost,
    CommunityVisibility,
    MemberRole,
    MemberStatus,
    PostComment,
    PostLike,
)
from alumnet.models.user import User, UserRole
from alumnet.modules.auth.dependencies import get_request_session, require_roles
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.common import APIResponse
from alumnet.schemas.community import (
    CommentCreate,
    CommentResponse,
    CommunityCreate,
    CommunityMemberResponse,
    CommunityResponse,
    CommunityUpdate,
    LikeResult,
    MembershipResult,
    PostCreate,
    PostResponse,
    PostUpdate,
)
from alumnet.services import community_service as cs
from alumnet.services.audit_service import record_audit, diff_fields
from alumnet.services.user_service import load_profiles, to_summary

router = APIRouter()

can_create_community = require_roles(UserRole.ALUMNI, UserRole.FACULTY, UserRole.ADMIN)


# ==================== Communities ====================

@router.get("", response_model=APIResponse[List[CommunityResponse]])
async def list_communities(
    category: Optional[CommunityCategory] = None,
    search: Optional[str] = None,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Active communities the caller can see, newest first"""
    query = select(Community).where(Community.is_active.is_(True))
    if category:
        query = query.where(Community.category == category)
    if search:
        term = f"%{search.strip()}%"
        query = query.where(or_(Community.name.ilike(term), Community.description.ilike(term)))
    result = await db.execute(query.order_by(Community.created_at.desc(), Community.id))
    communities = list(result.scalars().all())

    memberships = await db.execute(
        select(CommunityMember).where(CommunityMember.user_id == session.user_id)
    )
    mine = {str(m.community_id): m for m in memberships.scalars().all()}

    visible = [c for c in communities if cs.can_see(c, mine.get(str(c.id)), session)]
    counts = await cs.member_counts(db, [c.id for c in visible])
    data = [cs.to_response(c, counts.get(str(c.id), 0), mine.get(str(c.id))) for c in visible]
    return APIResponse[List[CommunityResponse]](data=data, count=len(data))


@router.get("/mine", response_model=APIResponse[List[CommunityResponse]])
async def my_communities(
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Communities the caller belongs to or has asked to join"""
    result = await db.execute(
        select(Community, CommunityMember)
        .join(CommunityMember, CommunityMember.community_id == Community.id)
        .where(CommunityMember.user_id == session.user_id, Community.is_active.is_(True))
        .order_by(CommunityMember.joined_at.desc())
    )
    rows = result.all()
    counts = await cs.member_counts(db, [c.id for c, _ in rows])
    data = [cs.to_response(c, counts.get(str(c.id), 0), m) for c, m in rows]
    return APIResponse[List[CommunityResponse]](data=data, count=len(data))


@router.post("", response_model=APIResponse[CommunityResponse], status_code=status.HTTP_201_CREATED)
async def create_community(
    community_data: CommunityCreate,
    session: RequestSession = Depends(can_create_community),
    db: AsyncSession = Depends(get_db)
):
    """Create a community (alumni, faculty and admins). The creator becomes its first member."""
    result = await db.execute(
        select(Community.id).where(func.lower(Community.name) == community_data.name.lower())
    )
    if result.first() is not None:
        raise ConflictError("A community with this name already exists", code="COMMUNITY_EXISTS")

    community = Community(
        name=community_data.name,
        description=community_data.description,
        category=community_data.category,
        tags=community_data.tags,
        visibility=community_data.visibility,
        icon=community_data.icon,
        cover_image=community_data.cover_image,
        created_by=session.user_id,
    )
    db.add(community)
    await db.flush()

    membership = CommunityMember(
        community_id=str(community.id),
        user_id=session.user_id,
        role=MemberRole.CREATOR,
        status=MemberStatus.ACTIVE,
    )
    db.add(membership)
    await db.flush()

    record_audit(
        db,
        AuditAction.CREATE,
        "Community",
        community.id,
        session=session,
        changes={"name": community.name, "visibility": community.visibility.value},
    )
    await db.commit()
    logger.info(f"[Communities] {session.user_id} created '{community.name}'")

    return APIResponse[CommunityResponse](
        message="Community created successfully",
        data=cs.to_response(community, 1, membership),
    )


@router.get("/{community_id}", response_model=APIResponse[CommunityResponse])
async def get_community(
    community_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    community, membership = await cs.visible_community(db, community_id, session)
    return APIResponse[CommunityResponse](data=await cs.community_response(db, community, membership))


@router.put("/{community_id}", response_model=APIResponse[CommunityResponse])
async def update_community(
    community_id: str,
    community_data: CommunityUpdate,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    community, membership = await cs.visible_community(db, community_id, session)
    cs.require_moderator(membership, session)

    updates = community_data.model_dump(exclude_unset=True)
    changes = diff_fields(community, updates)
    for field, value in updates.items():
        setattr(community, field, value)

    if changes:
        record_audit(
            db,
            AuditAction.UPDATE,
            "Community",
            community.id,
            session=session,
            changes={field: {"old": str(c["old"]), "new": str(c["new"])} for field, c in changes.items()},
        )
    await db.commit()

    return APIResponse[CommunityResponse](
        message="Community updated successfully",
        data=await cs.community_response(db, community, membership),
    )


@router.delete("/{community_id}", response_model=APIResponse[None])
async def delete_community(
    community_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate a community (its creator or an admin)"""
    community, _ = await cs.visible_community(db, community_id, session)
    if not session.is_admin and str(community.created_by) != session.user_id:
        raise AuthorizationError("Only the community creator can delete it")

    community.is_active = False
    record_audit(
        db,
        AuditAction.DELETE,
        "Community",
        community.id,
        session=session,
        changes={"name": community.name},
    )
    await db.commit()
    return APIResponse[None](message="Community deleted successfully")


# ==================== Membership ====================

@router.post("/{community_id}/join", response_model=APIResponse[MembershipResult])
async def join_community(
    community_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Join a public community, or request to join a private one"""
    community, membership = await cs.visible_community(db, community_id, session)
    if membership is not None:
        if membership.status == MemberStatus.PENDING:
            raise ConflictError("Join request already pending", code="JOIN_PENDING")
        raise ConflictError("You are already a member of this community", code="ALREADY_MEMBER")
    if community.visibility == CommunityVisibility.HIDDEN:
        raise AuthorizationError("This community is invite only")

    status_ = (
        MemberStatus.ACTIVE
        if community.visibility == CommunityVisibility.PUBLIC
        else MemberStatus.PENDING
    )
    membership = CommunityMember(
        community_id=str(community.id),
        user_id=session.user_id,
        role=MemberRole.MEMBER,
        status=status_,
    )
    db.add(membership)
    await db.commit()

    return APIResponse[MembershipResult](
        message="Joined community" if status_ == MemberStatus.ACTIVE else "Join request sent",
        data=MembershipResult(
            community_id=str(community.id),
            user_id=session.user_id,
            status=membership.status,
            role=membership.role,
        ),
    )


@router.post("/{community_id}/leave", response_model=APIResponse[MembershipResult])
async def leave_community(
    community_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    community, membership = await cs.visible_community(db, community_id, session)
    if membership is None:
        raise ValidationError("You are not a member of this community")
    if membership.role == MemberRole.CREATOR:
        raise ValidationError("The creator cannot leave the community")

    await db.delete(membership)
    await db.commit()
    return APIResponse[MembershipResult](
        message="Left community",
        data=MembershipResult(community_id=str(community.id), user_id=session.user_id),
    )


async def _members(db: AsyncSession, community: Community,
                   member_status: MemberStatus) -> List[CommunityMemberResponse]:
    result = await db.execute(
        select(CommunityMember, User)
        .join(User, User.id == CommunityMember.user_id)
        .where(CommunityMember.community_id == str(community.id), CommunityMember.status == member_status)
        .order_by(CommunityMember.joined_at)
    )
    rows = result.all()
    profiles = await load_profiles(db, [user.id for _, user in rows])
    return [
        CommunityMemberResponse(
            user=to_summary(user, profiles.get(str(user.id))),
            role=member.role,
            status=member.status,
            joined_at=member.joined_at,
        )
        for member, user in rows
    ]


@router.get("/{community_id}/members", response_model=APIResponse[List[CommunityMemberResponse]])
async def list_members(
    community_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    community, _ = await cs.visible_community(db, community_id, session)
    members = await _members(db, community, MemberStatus.ACTIVE)
    return APIResponse[List[CommunityMemberResponse]](data=members, count=len(members))


@router.get("/{community_id}/requests", response_model=APIResponse[List[CommunityMemberResponse]])
async def list_join_requests(
    community_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Pending join requests (moderators)"""
    community, membership = await cs.visible_community(db, community_id, session)
    cs.require_moderator(membership, session)
    pending = await _members(db, community, MemberStatus.PENDING)
    return APIResponse[List[CommunityMemberResponse]](data=pending, count=len(pending))


@router.post("/{community_id}/requests/{user_id}/approve", response_model=APIResponse[MembershipResult])
async def approve_join_request(
    community_id: str,
    user_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    community, membership = await cs.visible_community(db, community_id, session)
    cs.require_moderator(membership, session)

    request = await cs.get_membership(db, community.id, user_id)
    if request is None or request.status != MemberStatus.PENDING:
        raise ResourceNotFoundError("Join request", user_id)

    request.status = MemberStatus.ACTIVE
    await db.commit()
    return APIResponse[MembershipResult](
        message="Join request approved",
        data=MembershipResult(
            community_id=str(community.id),
            user_id=user_id,
            status=request.status,
            role=request.role,
        ),
    )


@router.delete("/{community_id}/members/{user_id}", response_model=APIResponse[MembershipResult])
async def remove_member(
    community_id: str,
    user_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Remove a member or decline a pending request (moderators)"""
    community, membership = await cs.visible_community(db, community_id, session)
    cs.require_moderator(membership, session)

    target = await cs.get_membership(db, community.id, user_id)
    if target is None:
        raise ResourceNotFoundError("Member", user_id)
    if target.role == MemberRole.CREATOR:
        raise ValidationError("The community creator cannot be removed")

    await db.delete(target)
    await db.commit()
    return APIResponse[MembershipResult](
        message="Member removed",
        data=MembershipResult(community_id=str(community.id), user_id=user_id),
    )


# ==================== Posts ====================

@router.get("/{community_id}/posts", response_model=APIResponse[List[PostResponse]])
async def list_posts(
    community_id: str,
    limit: int = Query(50, ge=1, le=100),
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Posts, pinned first and then newest first"""
    community, membership = await cs.visible_community(db, community_id, session)
    cs.require_reader(community, membership, session)

    result = await db.execute(
        select(CommunityPost)
        .where(CommunityPost.community_id == str(community.id))
        .order_by(CommunityPost.is_pinned.desc(), CommunityPost.created_at.desc(), CommunityPost.id)
        .limit(limit)
    )
    posts = await cs.build_posts(db, list(result.scalars().all()), session.user_id)
    return APIResponse[List[PostResponse]](data=posts, count=len(posts))


@router.post("/{community_id}/posts", response_model=APIResponse[PostResponse], status_code=status.HTTP_201_CREATED)
async def create_post(
    community_id: str,
    post_data: PostCreate,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    community, membership = await cs.visible_community(db, community_id, session)
    cs.require_active_member(membership)

    post = CommunityPost(
        community_id=str(community.id),
        user_id=session.user_id,
        content=post_data.content,
        media=post_data.media,
    )
    db.add(post)
    community.post_count = (community.post_count or 0) + 1
    await db.commit()

    posts = await cs.build_posts(db, [post], session.user_id)
    return APIResponse[PostResponse](message="Post created successfully", data=posts[0])


@router.put("/{community_id}/posts/{post_id}", response_model=APIResponse[PostResponse])
async def update_post(
    community_id: str,
    post_id: str,
    post_data: PostUpdate,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    community, _ = await cs.visible_community(db, community_id, session)
    post = await cs.get_post(db, community, post_id)
    if str(post.user_id) != session.user_id:
        raise AuthorizationError("Only the author can edit this post")

    for field, value in post_data.model_dump(exclude_unset=True).items():
        setattr(post, field, value)
    await db.commit()

    posts = await cs.build_posts(db, [post], session.user_id)
    return APIResponse[PostResponse](message="Post updated successfully", data=posts[0])


@router.delete("/{community_id}/posts/{post_id}", response_model=APIResponse[None])
async def delete_post(
    community_id: str,
    post_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Delete a post (its author or a moderator)"""
    community, membership = await cs.visible_community(db, community_id, session)
    post = await cs.get_post(db, community, post_id)
    if str(post.user_id) != session.user_id:
        cs.require_moderator(membership, session)

    await db.execute(delete(PostLike).where(PostLike.post_id == str(post.id)))
    await db.execute(delete(PostComment).where(PostComment.post_id == str(post.id)))
    await db.delete(post)
    community.post_count = max(0, (community.post_count or 0) - 1)
    await db.commit()
    return APIResponse[None](message="Post deleted successfully")


@router.post("/{community_id}/posts/{post_id}/pin", response_model=APIResponse[PostResponse])
async def toggle_pin(
    community_id: str,
    post_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    community, membership = await cs.visible_community(db, community_id, session)
    cs.require_moderator(membership, session)
    post = await cs.get_post(db, community, post_id)

    post.is_pinned = not post.is_pinned
    await db.commit()

    posts = await cs.build_posts(db, [post], session.user_id)
    return APIResponse[PostResponse](
        message="Post pinned" if post.is_pinned else "Post unpinned",
        data=posts[0],
    )


@router.post("/{community_id}/posts/{post_id}/like", response_model=APIResponse[LikeResult])
async def toggle_like(
    community_id: str,
    post_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    community, membership = await cs.visible_community(db, community_id, session)
    cs.require_reader(community, membership, session)
    post = await cs.get_post(db, community, post_id)

    result = await db.execute(
        select(PostLike).where(PostLike.post_id == str(post.id), PostLike.user_id == session.user_id)
    )
    like = result.scalar_one_or_none()
    if like is None:
        db.add(PostLike(post_id=str(post.id), user_id=session.user_id))
    else:
        await db.delete(like)
    await db.commit()

    like_count = await db.scalar(
        select(func.count(PostLike.id)).where(PostLike.post_id == str(post.id))
    ) or 0
    return APIResponse[LikeResult](
        data=LikeResult(post_id=str(post.id), liked=like is None, like_count=like_count)
    )


@router.post("/{community_id}/posts/{post_id}/comments", response_model=APIResponse[CommentResponse],
             status_code=status.HTTP_201_CREATED)
async def add_comment(
    community_id: str,
    post_id: str,
    comment_data: CommentCreate,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    community, membership = await cs.visible_community(db, community_id, session)
    cs.require_active_member(membership)
    post = await cs.get_post(db, community, post_id)

    comment = PostComment(post_id=str(post.id), user_id=session.user_id, content=comment_data.content)
    db.add(comment)
    await db.commit()

    profiles = await load_profiles(db, [session.user_id])
    return APIResponse[CommentResponse](
        message="Comment added",
        data=CommentResponse(
            id=str(comment.id),
            post_id=str(post.id),
            author=to_summary(session.user, profiles.get(session.user_id)),
            content=comment.content,
            created_at=comment.created_at,
        ),
    )


@router.delete("/{community_id}/posts/{post_id}/comments/{comment_id}", response_model=APIResponse[None])
async def delete_comment(
    community_id: str,
    post_id: str,
    comment_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    community, membership = await cs.visible_community(db, community_id, session)
    post = await cs.get_post(db, community, post_id)

    result = await db.execute(
        select(PostComment).where(PostComment.id == comment_id, PostComment.post_id == str(post.id))
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        raise ResourceNotFoundError("Comment", comment_id)
    if str(comment.user_id) != session.user_id:
        cs.require_moderator(membership, session)

    await db.delete(comment)
    await db.commit()
    return APIResponse[None](message="Comment deleted")
