# edushare/api/auth/routes.py

from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
    get_jwt,
)

from edushare.api.auth.schemas import SignupSchema, LoginSchema, AccountUserSchema
from edushare.api.auth.services import SESSION_VERSION_CLAIM
from edushare.api.errors import error_response

auth_bp = Blueprint('auth_bp', __name__)


def _session_response(account, status_code: int):
    """로그인된 계정으로 현재 세션 버전의 access/refresh 토큰을 발급해 응답합니다."""
    auth_service = current_app.services['auth']
    claims = {SESSION_VERSION_CLAIM: auth_service.get_session_version(account.user_id)}
    return jsonify({
        "access_token": create_access_token(identity=account.user_id, additional_claims=claims),
        "refresh_token": create_refresh_token(identity=account.user_id, additional_claims=claims),
        "user": AccountUserSchema().dump(account)
    }), status_code


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """회원가입 후 곧바로 로그인 상태의 토큰을 반환합니다."""
    auth_service = current_app.services['auth']
    data = SignupSchema().load(request.get_json() or {})
    result = auth_service.create_account(data['email'], data['password'], data['name'])
    if not result.ok:
        return error_response(result)
    return _session_response(result.value, 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    auth_service = current_app.services['auth']
    data = LoginSchema().load(request.get_json() or {})
    result = auth_service.login(data['email'], data['password'])
    if not result.ok:
        return error_response(result)
    return _session_response(result.value, 200)


@auth_bp.route('/me', methods=['GET'])
@jwt_required(optional=True)
def get_current_user():
    """
    현재 로그인된 사용자를 조회합니다.
    로그인하지 않은 경우도 정상 응답이며 user는 null 입니다.
    """
    auth_service = current_app.services['auth']
    result = auth_service.get_current_user(get_jwt_identity())
    if result.is_not_found:
        return jsonify({"user": None}), 200
    if not result.ok:
        return error_response(result)
    return jsonify({"user": AccountUserSchema().dump(result.value)}), 200


# --- 토큰 재발급 엔드포인트 ---
@auth_bp.route('/token/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh_token():
    """유효한 Refresh Token으로 같은 세션 버전의 새로운 Access Token을 발급합니다."""
    current_user_id = get_jwt_identity()
    claims = {SESSION_VERSION_CLAIM: get_jwt().get(SESSION_VERSION_CLAIM, 0)}
    new_access_token = create_access_token(identity=current_user_id, additional_claims=claims)
    return jsonify(access_token=new_access_token), 200


# --- 로그아웃 엔드포인트 ---
@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    """현재 사용자의 모든 세션을 폐기합니다. 결과는 success 플래그로 전달합니다."""
    auth_service = current_app.services['auth']
    result = auth_service.logout(get_jwt_identity())
    if not result.ok:
        return jsonify({"success": False, "error_code": result.error_kind.value, "message": result.message}), 200
    return jsonify({"success": True, "message": "로그아웃 되었습니다."}), 200
