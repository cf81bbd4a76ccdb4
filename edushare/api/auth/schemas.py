# edushare/api/auth/schemas.py
from marshmallow import Schema, fields, validate


class SignupSchema(Schema):
    """회원가입 요청의 유효성을 검사하는 스키마"""
    email = fields.Email(required=True)
    password = fields.Str(
        required=True, load_only=True,
        validate=validate.Length(min=8, max=256, error="비밀번호는 8자 이상이어야 합니다.")
    )
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))


class LoginSchema(Schema):
    """로그인 요청의 유효성을 검사하는 스키마"""
    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True, validate=validate.Length(min=1))


class AccountUserSchema(Schema):
    user_id = fields.Str(required=True)
    email = fields.Str(allow_none=True)
    name = fields.Str(allow_none=True)


class ProfileResponseSchema(Schema):
    """공개 프로필 응답 스키마"""
    user_id = fields.Str(required=True)
    name = fields.Str(required=True)
    created_at = fields.DateTime()
