# src/quill/api/v1/endpoints/posts.py
"""Post, comment, tag and vote endpoints for the Quill API.

Reads accept an optional bearer token: anonymous callers only see published
posts, authors also see their own drafts. Private content answers 404.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Query, status

from quill.api.v1.dependencies import (
    CurrentUserDep,
    OptionalUserDep,
    PageDep,
    SessionDep,
    StorageDep,
)
from quill.models import Comment, Post, Tag, User, Vote
from quill.schemas.post import (
    CommentCreate,
    CommentResponse,
    PostCreate,
    PostResponse,
    PostUpdate,
    TagResponse,
    VoteResponse,
)
from quill.services import posts as service
from quill.services import votes as vote_service
from quill.services.posts import CommentFilters, PostFilters
from quill.services.storage import remove_quietly
from quill.services.votes import VoteFilters

router = APIRouter(prefix="/posts", tags=["posts"])


def _actor_id(user: User | None) -> int | None:
    return user.id if user is not None else None


def _split(values: list[str]) -> list[str]:
    # Accept both ?tags=a,b and ?tags=a&tags=b
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


def _post_filters(
    user: User | None, author_id: int | None, q: str | None, tags: list[str]
) -> PostFilters:
    return PostFilters(actor_id=_actor_id(user), author_id=author_id, text=q, tags=_split(tags))


def _vote_filters(
    user: User | None,
    author_id: int | None,
    post_id: int | None,
    upvote: bool,
    downvote: bool,
) -> VoteFilters:
    is_upvote = None
    if upvote != downvote:
        is_upvote = upvote
    return VoteFilters(
        actor_id=_actor_id(user), author_id=author_id, post_id=post_id, is_upvote=is_upvote
    )


@router.get("", response_model=list[PostResponse])
async def list_posts(
    db: SessionDep,
    current_user: OptionalUserDep,
    page: PageDep,
    author_id: int | None = Query(None, alias="author"),
    q: str | None = Query(None, description="Search titles and contents"),
    tags: list[str] = Query([]),
) -> list[Post]:
    return service.find_posts(db, _post_filters(current_user, author_id, q, tags), page)


@router.get("/count", response_model=int)
async def count_posts(
    db: SessionDep,
    current_user: OptionalUserDep,
    author_id: int | None = Query(None, alias="author"),
    q: str | None = Query(None),
    tags: list[str] = Query([]),
) -> int:
    return service.count_posts(db, _post_filters(current_user, author_id, q, tags))


@router.get("/tags", response_model=list[TagResponse])
async def list_tags(db: SessionDep, tags: list[str] = Query([])) -> list[Tag]:
    return service.find_tags(db, _split(tags))


@router.get("/tags/count", response_model=int)
async def count_own_tags(db: SessionDep, current_user: CurrentUserDep) -> int:
    """Number of distinct tags across the caller's posts."""
    return service.count_distinct_tags_by_author(db, current_user.id)


@router.get("/comments", response_model=list[CommentResponse])
async def list_comments(
    db: SessionDep,
    current_user: OptionalUserDep,
    page: PageDep,
    author_id: int | None = Query(None, alias="author"),
    post_id: int | None = Query(None, alias="post"),
    q: str | None = Query(None),
) -> list[Comment]:
    filters = CommentFilters(
        actor_id=_actor_id(current_user), author_id=author_id, post_id=post_id, text=q
    )
    return service.find_comments(db, filters, page)


@router.get("/comments/count", response_model=int)
async def count_comments(
    db: SessionDep,
    current_user: OptionalUserDep,
    author_id: int | None = Query(None, alias="author"),
    post_id: int | None = Query(None, alias="post"),
    q: str | None = Query(None),
) -> int:
    filters = CommentFilters(
        actor_id=_actor_id(current_user), author_id=author_id, post_id=post_id, text=q
    )
    return service.count_comments(db, filters)


@router.get("/votes", response_model=list[VoteResponse])
async def list_votes(
    db: SessionDep,
    current_user: OptionalUserDep,
    page: PageDep,
    author_id: int | None = Query(None, alias="author"),
    post_id: int | None = Query(None, alias="post"),
    upvote: bool = Query(False),
    downvote: bool = Query(False),
) -> list[Vote]:
    filters = _vote_filters(current_user, author_id, post_id, upvote, downvote)
    return vote_service.find_votes(db, filters, page)


@router.get("/votes/count", response_model=int)
async def count_votes(
    db: SessionDep,
    current_user: OptionalUserDep,
    author_id: int | None = Query(None, alias="author"),
    post_id: int | None = Query(None, alias="post"),
    upvote: bool = Query(False),
    downvote: bool = Query(False),
) -> int:
    filters = _vote_filters(current_user, author_id, post_id, upvote, downvote)
    return vote_service.count_votes(db, filters)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: SessionDep, current_user: OptionalUserDep) -> Post:
    return service.find_post_or_404(db, post_id, _actor_id(current_user))


@router.get("/{post_id}/tags", response_model=list[str])
async def get_post_tags(post_id: int, db: SessionDep, current_user: OptionalUserDep) -> list[str]:
    service.find_post_or_404(db, post_id, _actor_id(current_user))
    return service.find_post_tags(db, post_id, _actor_id(current_user))


@router.get("/{post_id}/tags/count", response_model=int)
async def count_post_tags(post_id: int, db: SessionDep, current_user: OptionalUserDep) -> int:
    service.find_post_or_404(db, post_id, _actor_id(current_user))
    return service.count_post_tags(db, post_id, _actor_id(current_user))


@router.get("/{post_id}/comments", response_model=list[CommentResponse])
async def get_post_comments(
    post_id: int,
    db: SessionDep,
    current_user: OptionalUserDep,
    page: PageDep,
    author_id: int | None = Query(None, alias="author"),
    q: str | None = Query(None),
) -> list[Comment]:
    actor_id = _actor_id(current_user)
    service.find_post_or_404(db, post_id, actor_id)
    filters = CommentFilters(actor_id=actor_id, author_id=author_id, post_id=post_id, text=q)
    return service.find_comments(db, filters, page)


@router.get("/{post_id}/comments/count", response_model=int)
async def count_post_comments(post_id: int, db: SessionDep, current_user: OptionalUserDep) -> int:
    actor_id = _actor_id(current_user)
    service.find_post_or_404(db, post_id, actor_id)
    return service.count_comments(db, CommentFilters(actor_id=actor_id, post_id=post_id))


@router.get("/{post_id}/votes", response_model=list[VoteResponse])
async def get_post_votes(
    post_id: int,
    db: SessionDep,
    current_user: OptionalUserDep,
    page: PageDep,
    upvote: bool = Query(False),
    downvote: bool = Query(False),
) -> list[Vote]:
    service.find_post_or_404(db, post_id, _actor_id(current_user))
    filters = _vote_filters(current_user, None, post_id, upvote, downvote)
    return vote_service.find_votes(db, filters, page)


@router.get("/{post_id}/votes/count", response_model=int)
async def count_post_votes(post_id: int, db: SessionDep, current_user: OptionalUserDep) -> int:
    actor_id = _actor_id(current_user)
    service.find_post_or_404(db, post_id, actor_id)
    return vote_service.count_votes(db, VoteFilters(actor_id=actor_id, post_id=post_id))


@router.get("/{post_id}/comments/{comment_id}", response_model=CommentResponse)
async def get_post_comment(
    post_id: int, comment_id: int, db: SessionDep, current_user: OptionalUserDep
) -> Comment:
    return service.find_comment_or_404(db, post_id, comment_id, _actor_id(current_user))


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(payload: PostCreate, db: SessionDep, current_user: CurrentUserDep) -> Post:
    return service.create_post(db, current_user, payload)


@router.post("/{post_id}/upvote", response_model=PostResponse)
async def upvote_post(post_id: int, db: SessionDep, current_user: CurrentUserDep) -> Post:
    """Upvote a post. Repeating the call keeps the single vote."""
    return vote_service.upvote_post(db, post_id, current_user)


@router.post("/{post_id}/downvote", response_model=PostResponse)
async def downvote_post(post_id: int, db: SessionDep, current_user: CurrentUserDep) -> Post:
    """Withdraw the caller's vote, if any."""
    return vote_service.downvote_post(db, post_id, current_user)


@router.post("/{post_id}/comments", response_model=CommentResponse)
async def create_comment(
    post_id: int, payload: CommentCreate, db: SessionDep, current_user: CurrentUserDep
) -> Comment:
    return service.create_comment(db, post_id, current_user, payload)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int, payload: PostUpdate, db: SessionDep, current_user: CurrentUserDep
) -> Post:
    return service.update_post(db, post_id, current_user, payload)


@router.put("/{post_id}/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    post_id: int,
    comment_id: int,
    payload: CommentCreate,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> Comment:
    return service.update_comment(db, post_id, comment_id, current_user, payload)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: int,
    db: SessionDep,
    current_user: CurrentUserDep,
    storage: StorageDep,
    background_tasks: BackgroundTasks,
) -> None:
    removed_path = service.delete_post(db, post_id, current_user)
    if removed_path:
        background_tasks.add_task(remove_quietly, storage, removed_path)


@router.delete("/{post_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    post_id: int, comment_id: int, db: SessionDep, current_user: CurrentUserDep
) -> None:
    service.delete_comment(db, post_id, comment_id, current_user)
