# edushare/api/comments/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from edushare.api.comments.schemas import CommentCreateSchema, CommentResponseSchema
from edushare.api.errors import error_response


comments_bp = Blueprint('comments_bp', __name__)

@comments_bp.route('/posts/<string:slug>/comments', methods=['POST'])
@jwt_required()
def add_comment(slug: str):
    """
    특정 게시글에 새로운 댓글을 작성합니다.
    - 작성자 이름은 작성 시점의 프로필 이름으로 함께 저장됩니다.
    - 성공 시, 생성된 댓글 정보를 201 Created 상태 코드와 함께 반환합니다.
    """
    comment_service = current_app.services['comments']
    auth_service = current_app.services['auth']
    user_id = get_jwt_identity()
    data = CommentCreateSchema().load(request.get_json() or {})
    result = comment_service.add_comment(slug, user_id, data['content'], auth_service.resolve_display_name(user_id))
    if not result.ok:
        return error_response(result)
    return jsonify(CommentResponseSchema().dump(result.value)), 201

@comments_bp.route('/posts/<string:slug>/comments', methods=['GET'])
def get_comments(slug: str):
    """
    특정 게시글의 댓글 목록을 작성 순서대로 조회합니다.
    """
    comment_service = current_app.services['comments']
    result = comment_service.get_comments(slug)
    if not result.ok:
        return error_response(result)
    return jsonify({
        "documents": CommentResponseSchema(many=True).dump(result.value['documents']),
        "total": result.value['total']
    }), 200
