# edushare/api/posts/schemas.py
from marshmallow import Schema, fields, validate

from edushare.api.comments.schemas import CommentResponseSchema
from edushare.models.post import POST_STATUSES, POST_STATUS_ACTIVE

_status_field = dict(validate=validate.OneOf(POST_STATUSES, error="status는 active 또는 inactive 여야 합니다."))


# --- API 요청 스키마 ---

class PostCreateSchema(Schema):
    """POST /api/posts 요청 본문의 유효성을 검사합니다."""
    title = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    # 비어 있으면 제목에서 slug를 만듭니다.
    slug = fields.Str(load_default=None, validate=validate.Length(max=255))
    content = fields.Str(required=True)
    featured_image = fields.Str(required=True, validate=validate.Length(min=1))
    status = fields.Str(load_default=POST_STATUS_ACTIVE, **_status_field)

class PostUpdateSchema(Schema):
    """PATCH /api/posts/{slug} 요청 본문의 유효성을 검사합니다."""
    title = fields.Str(validate=validate.Length(min=1, max=255))
    content = fields.Str()
    featured_image = fields.Str(validate=validate.Length(min=1))
    status = fields.Str(**_status_field)

class PostListQuerySchema(Schema):
    """GET /api/posts 쿼리 파라미터"""
    status = fields.Str(load_default=None, **_status_field)
    userid = fields.Str(load_default=None)
    limit = fields.Int(load_default=None, validate=validate.Range(min=1, max=100))


# --- API 응답 스키마 ---

class PostResponseSchema(Schema):
    """게시글 정보 응답을 위한 최종 JSON 형식을 정의합니다."""
    slug = fields.Str(required=True)
    title = fields.Str(required=True)
    content = fields.Str(required=True)
    featured_image = fields.Str(allow_none=True)
    status = fields.Str(required=True)
    userid = fields.Str(allow_none=True)
    username = fields.Str(required=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()

class LikeResponseSchema(Schema):
    like_id = fields.Str(required=True)
    post_id = fields.Str(required=True)
    user_id = fields.Str(required=True)
    created_at = fields.DateTime()

class PostDetailResponseSchema(Schema):
    """게시글 상세 화면 응답: 게시글 + 좋아요 + 댓글"""
    post = fields.Nested(PostResponseSchema, required=True)
    likes = fields.List(fields.Nested(LikeResponseSchema))
    like_count = fields.Int(required=True)
    liked_by_viewer = fields.Bool(dump_default=False)
    comments = fields.List(fields.Nested(CommentResponseSchema))
