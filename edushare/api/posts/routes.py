# edushare/api/posts/routes.py
from flask import Blueprint, request, jsonify, Response, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from edushare.api.errors import error_response
from edushare.api.posts.schemas import (
    PostCreateSchema, PostUpdateSchema, PostListQuerySchema,
    PostResponseSchema, PostDetailResponseSchema, LikeResponseSchema
)
from edushare.models.post import POST_STATUS_ACTIVE

posts_bp = Blueprint('posts_bp', __name__)


@posts_bp.route('/', methods=['GET'])
def get_posts():
    """
    게시글 목록을 조회합니다.
    - status 미지정 시 active 게시글만 반환합니다.
    - userid로 특정 작성자의 게시글만 조회할 수 있습니다.
    """
    post_service = current_app.services['posts']
    query = PostListQuerySchema().load(request.args)
    filters = [("status", "==", query['status'] or POST_STATUS_ACTIVE)]
    if query['userid']:
        filters.append(("userid", "==", query['userid']))

    result = post_service.get_posts(filters, limit=query['limit'])
    if not result.ok:
        return error_response(result)
    return jsonify({
        "documents": PostResponseSchema(many=True).dump(result.value['documents']),
        "total": result.value['total']
    }), 200


@posts_bp.route('/', methods=['POST'])
@jwt_required()
def create_post():
    """
    새로운 게시글을 생성합니다. 첨부 파일은 /api/uploads로 먼저 업로드한 뒤 file_id를 전달합니다.
    """
    post_service = current_app.services['posts']
    auth_service = current_app.services['auth']
    user_id = get_jwt_identity()
    data = PostCreateSchema().load(request.get_json() or {})
    result = post_service.create_post(
        user_id=user_id,
        title=data['title'],
        content=data['content'],
        featured_image=data['featured_image'],
        status=data['status'],
        slug=data['slug'],
        username=auth_service.resolve_display_name(user_id)
    )
    if not result.ok:
        return error_response(result)
    return jsonify(PostResponseSchema().dump(result.value)), 201


@posts_bp.route('/<string:slug>', methods=['GET'])
@jwt_required(optional=True)
def get_post(slug: str):
    """게시글 상세: 게시글, 좋아요, 댓글을 함께 반환합니다."""
    post_service = current_app.services['posts']
    result = post_service.get_post_detail(slug, get_jwt_identity())
    if not result.ok:
        return error_response(result)
    return jsonify(PostDetailResponseSchema().dump(result.value)), 200


@posts_bp.route('/<string:slug>', methods=['PATCH'])
@jwt_required()
def update_post(slug: str):
    """특정 게시글의 내용을 수정합니다. (작성자 본인만 가능)"""
    post_service = current_app.services['posts']
    data = PostUpdateSchema().load(request.get_json() or {})
    result = post_service.update_post(slug, get_jwt_identity(), data)
    if not result.ok:
        return error_response(result)
    return jsonify(PostResponseSchema().dump(result.value)), 200


@posts_bp.route('/<string:slug>', methods=['DELETE'])
@jwt_required()
def delete_post(slug: str):
    """특정 게시글과 첨부 파일을 삭제합니다. (작성자 본인만 가능)"""
    post_service = current_app.services['posts']
    result = post_service.delete_post(slug, get_jwt_identity())
    if not result.ok:
        return error_response(result)
    return Response(status=204)


@posts_bp.route('/<string:slug>/like', methods=['POST'])
@jwt_required()
def like_post(slug: str):
    post_service = current_app.services['posts']
    result = post_service.like_post(slug, get_jwt_identity())
    if not result.ok:
        return error_response(result)
    return jsonify(LikeResponseSchema().dump(result.value)), 200


@posts_bp.route('/<string:slug>/like', methods=['DELETE'])
@jwt_required()
def unlike_post(slug: str):
    post_service = current_app.services['posts']
    result = post_service.unlike_post(slug, get_jwt_identity())
    if not result.ok:
        return error_response(result)
    return jsonify({"removed": result.value}), 200


@posts_bp.route('/<string:slug>/likes', methods=['GET'])
def get_likes(slug: str):
    post_service = current_app.services['posts']
    result = post_service.get_likes(slug)
    if not result.ok:
        return error_response(result)
    return jsonify({
        "documents": LikeResponseSchema(many=True).dump(result.value['documents']),
        "total": result.value['total']
    }), 200
