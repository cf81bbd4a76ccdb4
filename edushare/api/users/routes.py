# edushare/api/users/routes.py
from flask import Blueprint, jsonify, current_app

from edushare.api.auth.schemas import ProfileResponseSchema
from edushare.api.errors import error_response

users_bp = Blueprint('users_bp', __name__)


@users_bp.route('/<string:user_id>/profile', methods=['GET'])
def get_user_profile(user_id: str):
    """특정 사용자의 공개 프로필(표시 이름)을 조회합니다."""
    auth_service = current_app.services['auth']
    result = auth_service.get_user_by_id(user_id)
    if not result.ok:
        return error_response(result)
    return jsonify(ProfileResponseSchema().dump(result.value)), 200
