# edushare/api/comments/schemas.py
from datetime import datetime
from marshmallow import Schema, fields, validate

from edushare.utils.datetime_utils import DateTimeUtils


class CommentCreateSchema(Schema):
    """
    POST /api/posts/{slug}/comments
    댓글 생성을 요청할 때의 데이터 형식을 정의하고 유효성을 검사합니다.
    """
    content = fields.Str(required=True, validate=validate.Length(min=1, max=1000, error="댓글은 1~1000자 사이여야 합니다."))

class CommentResponseSchema(Schema):
    """
    댓글 정보 응답을 위한 최종 JSON 형식을 정의합니다.
    """
    comment_id = fields.Str(required=True)
    post_id = fields.Str(required=True)
    user_id = fields.Str(allow_none=True)
    name = fields.Str(required=True)
    content = fields.Str(required=True)
    # 이전 댓글은 timestamp가 ISO 문자열로 저장되어 있음
    timestamp = fields.Method('dump_timestamp')

    def dump_timestamp(self, comment):
        value = comment.get('timestamp')
        if isinstance(value, datetime):
            return DateTimeUtils.to_iso_string(value)
        return value
