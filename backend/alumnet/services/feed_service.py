"""
Global post feed: loading posts and assembling them with authors, likes
and comments.
"""
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from alumnet.core.exceptions import ResourceNotFoundError
from alumnet.models.post import FeedComment, FeedLike, FeedPost, PostType
from alumnet.schemas.community import CommentResponse
from alumnet.schemas.connection import UserSummary
from alumnet.schemas.post import EventDetails, FeedPostResponse
from alumnet.services.user_service import load_profiles, load_users, to_summary


async def get_post(db: AsyncSession, post_id: str) -> FeedPost:
    result = await db.execute(select(FeedPost).where(FeedPost.id == post_id))
    post = result.scalar_one_or_none()
    if post is None:
        raise ResourceNotFoundError("Post", post_id)
    return post


def feed_query(post_type: Optional[PostType] = None, author_id: Optional[str] = None):
    """Feed posts, newest first"""
    query = select(FeedPost)
    if post_type:
        query = query.where(FeedPost.type == post_type)
    if author_id:
        query = query.where(FeedPost.user_id == author_id)
    return query.order_by(FeedPost.created_at.desc(), FeedPost.id)


def apply_event(post: FeedPost, event: Optional[dict]) -> None:
    """Copy event details onto an event post; plain posts carry none"""
    if post.type != PostType.EVENT:
        post.event_date = None
        post.event_location = None
        post.event_description = None
        post.registration_link = None
        return
    if event is None:
        return
    for field, column in (("date", "event_date"), ("location", "event_location"),
                          ("description", "event_description"),
                          ("registration_link", "registration_link")):
        if field in event:
            setattr(post, column, event[field])


def _event(post: FeedPost) -> Optional[EventDetails]:
    if post.type != PostType.EVENT:
        return None
    return EventDetails(
        date=post.event_date,
        location=post.event_location,
        description=post.event_description,
        registration_link=post.registration_link,
    )


async def build_posts(db: AsyncSession, posts: List[FeedPost], viewer_id: str) -> List[FeedPostResponse]:
    """Posts with authors, like counts and comments, in the given order"""
    if not posts:
        return []
    post_ids = [str(post.id) for post in posts]

    likes = await db.execute(
        select(FeedLike.post_id, func.count(FeedLike.id))
        .where(FeedLike.post_id.in_(post_ids))
        .group_by(FeedLike.post_id)
    )
    like_counts = {str(post_id): count for post_id, count in likes.all()}

    mine = await db.execute(
        select(FeedLike.post_id).where(FeedLike.post_id.in_(post_ids), FeedLike.user_id == str(viewer_id))
    )
    liked = {str(row[0]) for row in mine.all()}

    comment_rows = await db.execute(
        select(FeedComment)
        .where(FeedComment.post_id.in_(post_ids))
        .order_by(FeedComment.created_at, FeedComment.id)
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
        responses.append(FeedPostResponse(
            id=str(post.id),
            author=summary,
            type=post.type,
            title=post.title,
            content=post.content,
            media=post.media or [],
            event=_event(post),
            like_count=like_counts.get(str(post.id), 0),
            liked_by_me=str(post.id) in liked,
            comments=comments_by_post.get(str(post.id), []),
            created_at=post.created_at,
            updated_at=post.updated_at,
        ))
    return responses
