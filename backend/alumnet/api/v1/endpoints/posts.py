"""
Global post feed: posts and events visible to every signed-in user.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from typing import Optional

from alumnet.core.database import get_db
from alumnet.core.exceptions import AuthorizationError, ResourceNotFoundError
from alumnet.core.logging_config import logger
from alumnet.models.audit_log import AuditAction
from alumnet.models.post import FeedComment, FeedLike, FeedPost, PostType
from alumnet.modules.auth.dependencies import get_request_session
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.common import APIResponse, Page
from alumnet.schemas.community import CommentCreate, CommentResponse, LikeResult
from alumnet.schemas.post import FeedPostCreate, FeedPostResponse, FeedPostUpdate
from alumnet.services import feed_service
from alumnet.services.audit_service import record_audit
from alumnet.services.user_service import load_profiles, to_summary
from alumnet.utils.pagination import paginate

router = APIRouter()


@router.get("", response_model=APIResponse[Page[FeedPostResponse]])
async def list_posts(
    post_type: Optional[PostType] = Query(None, alias="type"),
    author_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """The feed, newest first"""
    data = await paginate(db, feed_service.feed_query(post_type, author_id), page, page_size)
    data["items"] = await feed_service.build_posts(db, data["items"], session.user_id)
    return APIResponse[Page[FeedPostResponse]](
        data=Page[FeedPostResponse](**data), count=data["total"]
    )


@router.post("", response_model=APIResponse[FeedPostResponse], status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: FeedPostCreate,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    post = FeedPost(
        user_id=session.user_id,
        type=post_data.type,
        title=post_data.title,
        content=post_data.content,
        media=post_data.media,
    )
    feed_service.apply_event(post, post_data.event.model_dump() if post_data.event else None)
    db.add(post)
    await db.commit()
    logger.info(f"[Feed] {session.user_id} published {post.type.value} {post.id}")

    posts = await feed_service.build_posts(db, [post], session.user_id)
    return APIResponse[FeedPostResponse](message="Post created successfully", data=posts[0])


@router.get("/{post_id}", response_model=APIResponse[FeedPostResponse])
async def get_post(
    post_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    post = await feed_service.get_post(db, post_id)
    posts = await feed_service.build_posts(db, [post], session.user_id)
    return APIResponse[FeedPostResponse](data=posts[0])


@router.put("/{post_id}", response_model=APIResponse[FeedPostResponse])
async def update_post(
    post_id: str,
    post_data: FeedPostUpdate,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Edit a post (author only). A media list in the update replaces the current one."""
    post = await feed_service.get_post(db, post_id)
    if str(post.user_id) != session.user_id:
        raise AuthorizationError("Only the author can edit this post")

    updates = post_data.model_dump(exclude_unset=True)
    event = updates.pop("event", None)
    for field, value in updates.items():
        if value is not None:
            setattr(post, field, value)
    feed_service.apply_event(post, event)
    await db.commit()

    posts = await feed_service.build_posts(db, [post], session.user_id)
    return APIResponse[FeedPostResponse](message="Post updated successfully", data=posts[0])


@router.delete("/{post_id}", response_model=APIResponse[None])
async def delete_post(
    post_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Delete a post (its author or an admin)"""
    post = await feed_service.get_post(db, post_id)
    is_author = str(post.user_id) == session.user_id
    if not is_author and not session.is_admin:
        raise AuthorizationError("Not authorized to delete this post")

    await db.execute(delete(FeedLike).where(FeedLike.post_id == str(post.id)))
    await db.execute(delete(FeedComment).where(FeedComment.post_id == str(post.id)))
    await db.delete(post)
    if not is_author:
        record_audit(
            db,
            AuditAction.DELETE,
            "Post",
            post.id,
            session=session,
            changes={"title": post.title, "author_id": str(post.user_id)},
        )
    await db.commit()
    return APIResponse[None](message="Post deleted successfully")


@router.post("/{post_id}/like", response_model=APIResponse[LikeResult])
async def toggle_like(
    post_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    post = await feed_service.get_post(db, post_id)

    result = await db.execute(
        select(FeedLike).where(FeedLike.post_id == str(post.id), FeedLike.user_id == session.user_id)
    )
    like = result.scalar_one_or_none()
    if like is None:
        db.add(FeedLike(post_id=str(post.id), user_id=session.user_id))
    else:
        await db.delete(like)
    await db.commit()

    like_count = await db.scalar(
        select(func.count(FeedLike.id)).where(FeedLike.post_id == str(post.id))
    ) or 0
    return APIResponse[LikeResult](
        data=LikeResult(post_id=str(post.id), liked=like is None, like_count=like_count)
    )


@router.post("/{post_id}/comments", response_model=APIResponse[CommentResponse],
             status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: str,
    comment_data: CommentCreate,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    post = await feed_service.get_post(db, post_id)

    comment = FeedComment(post_id=str(post.id), user_id=session.user_id, content=comment_data.content)
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


@router.delete("/{post_id}/comments/{comment_id}", response_model=APIResponse[None])
async def delete_comment(
    post_id: str,
    comment_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Delete a comment (its author or an admin)"""
    post = await feed_service.get_post(db, post_id)

    result = await db.execute(
        select(FeedComment).where(FeedComment.id == comment_id, FeedComment.post_id == str(post.id))
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        raise ResourceNotFoundError("Comment", comment_id)
    if str(comment.user_id) != session.user_id and not session.is_admin:
        raise AuthorizationError("Not authorized to delete this comment")

    await db.delete(comment)
    await db.commit()
    return APIResponse[None](message="Comment deleted")
