from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

from app.models import PostType
from app.permissions import Role


# --- Tag ---

class TagCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)


class TagResponse(BaseModel):
    id: int
    title: str
    model_config = ConfigDict(from_attributes=True)


# --- Group / Category ---

class GroupCreate(BaseModel):
    label: str = Field(min_length=1, max_length=100)


class GroupResponse(BaseModel):
    id: int
    label: str
    model_config = ConfigDict(from_attributes=True)


class CategoryCreate(BaseModel):
    label: str = Field(min_length=1, max_length=100)
    group_id: int | None = None


class CategoryUpdate(BaseModel):
    label: str | None = Field(None, min_length=1, max_length=100)
    group_id: int | None = None


class CategoryResponse(BaseModel):
    id: int
    label: str
    group_id: int | None
    group_label: str | None = None


# --- User ---

class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=255)
    nickname: str | None = Field(None, max_length=100)


class UserRoleUpdate(BaseModel):
    role: Role


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    nickname: str | None
    role: Role
    created_at: datetime | None


# --- Comment ---

class CommentCreate(BaseModel):
    content: str = Field(min_length=1)


class CommentUpdate(CommentCreate):
    pass


class CommentAuthor(BaseModel):
    id: int
    nickname: str | None


class CommentResponse(BaseModel):
    id: int
    content: str
    post_id: int
    author: CommentAuthor | None = None
    created_at: datetime | None
    updated_at: datetime | None = None


# --- Post ---

class PostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    content: str = Field(min_length=1)
    preview_text: str | None = None
    thumbnail_url: str | None = None
    category_id: int
    tag_ids: list[int] = []
    read_permission: Role | None = None


class PostUpdate(BaseModel):
    # Presence is validated by the service so it can answer 400 like the
    # other domain checks; read_permission is only applied when sent.
    title: str | None = None
    content: str | None = None
    preview_text: str | None = None
    thumbnail_url: str | None = None
    category_id: int | None = None
    tag_ids: list[int] | None = None
    read_permission: Role | None = None


class PostListItem(BaseModel):
    id: int
    title: str
    preview_text: str | None
    thumbnail_url: str | None
    type: PostType
    created_at: datetime | None
    category_label: str | None
    group_label: str | None
    tags: list[TagResponse] = []
    author: str
    author_role: Role | None
    read_permission: Role | None


class RelatedPost(PostListItem):
    score: int


class PostDetail(PostListItem):
    content: str
    likes: int
    view: int
    author_id: int
    category_id: int | None
    updated_at: datetime | None
    comments: list[CommentResponse] = []


class AdjacentPosts(BaseModel):
    previous: PostListItem | None
    next: PostListItem | None


class LikesResponse(BaseModel):
    id: int
    likes: int


class ViewResponse(BaseModel):
    id: int
    view: int


# --- Pagination ---

class PaginatedResponse(BaseModel):
    items: list[PostListItem]
    total: int
    page: int
    page_size: int
    pages: int
    subject: str = ""
