# edushare/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials, firestore

# - 설정
from edushare.core.config import config_by_name, find_missing_settings

# - API 블루프린트
from edushare.api.auth.routes import auth_bp
from edushare.api.users.routes import users_bp
from edushare.api.posts.routes import posts_bp
from edushare.api.comments.routes import comments_bp
from edushare.api.uploads.routes import uploads_bp

# - 서비스 모듈
from edushare.services.storage_service import StorageService
from edushare.services.identity_service import FirebaseIdentityService
from edushare.api.auth.services import AuthService
from edushare.api.posts.services import PostService
from edushare.api.comments.services import CommentService


def create_app(config_name=None, firestore_client=None, storage_bucket=None, identity_service=None):
    """
    Flask 애플리케이션 팩토리 함수.
    테스트에서는 firestore_client / storage_bucket / identity_service를 주입해
    Firebase 초기화 없이 앱을 만들 수 있습니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # 필수 환경 변수 검증 (외부 클라이언트를 주입받은 경우 인증 파일은 필요 없음)
    missing_settings = find_missing_settings(app.config)
    if firestore_client is not None:
        missing_settings = [name for name in missing_settings if name != 'FIREBASE_CREDENTIALS_PATH']
    if missing_settings:
        raise ValueError(f"필수 환경 변수가 설정되지 않았습니다: {', '.join(missing_settings)}")

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    jwt = JWTManager(app)

    if firestore_client is None:
        if not firebase_admin._apps:
            cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
            if not os.path.exists(cred_path):
                raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
            cred = credentials.Certificate(cred_path)
            firebase_admin.initialize_app(cred, {
                'projectId': app.config['FIREBASE_PROJECT_ID'],
                'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
            })
        firestore_client = firestore.client()

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 다른 서비스의 기반이 되는 공용 서비스 먼저 생성
    try:
        storage_instance = StorageService()
        storage_instance.init_app(app, bucket=storage_bucket)
        app.services['storage'] = storage_instance
        logging.info("Storage service initialized successfully")
    except Exception as e:
        logging.error(f"Failed to initialize storage service: {e}")
        raise

    if identity_service is None:
        identity_service = FirebaseIdentityService()
        identity_service.init_app(app)
    app.services['identity'] = identity_service

    # 5-2. 다른 서비스를 주입받아야 하는 도메인 서비스 생성
    app.services['auth'] = AuthService(
        firestore_client,
        identity_service=app.services['identity'],
        profiles_collection=app.config['PROFILES_COLLECTION'],
        revoked_sessions_collection=app.config['REVOKED_SESSIONS_COLLECTION']
    )
    # 콘텐츠 서비스는 인증 서비스 대신 이름 조회 함수만 주입받습니다.
    resolve_display_name = app.services['auth'].resolve_display_name

    app.services['comments'] = CommentService(
        firestore_client,
        resolve_display_name=resolve_display_name,
        posts_collection=app.config['POSTS_COLLECTION'],
        comments_collection=app.config['COMMENTS_COLLECTION'],
        max_workers=app.config['ENRICHMENT_MAX_WORKERS']
    )
    app.services['posts'] = PostService(
        firestore_client,
        storage_service=app.services['storage'],
        resolve_display_name=resolve_display_name,
        comment_service=app.services['comments'],
        posts_collection=app.config['POSTS_COLLECTION'],
        likes_collection=app.config['LIKES_COLLECTION'],
        max_workers=app.config['ENRICHMENT_MAX_WORKERS']
    )
    logging.info("Content services initialized successfully")

    # - 로그아웃된 세션의 토큰 차단
    @jwt.token_in_blocklist_loader
    def check_if_session_revoked(jwt_header, jwt_payload):
        return app.services['auth'].is_session_revoked(jwt_payload)

    @jwt.revoked_token_loader
    def handle_revoked_token(jwt_header, jwt_payload):
        return jsonify({"error_code": "SESSION_REVOKED", "message": "로그아웃된 세션입니다. 다시 로그인해주세요."}), 401

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(comments_bp, url_prefix='/api')
    app.register_blueprint(uploads_bp, url_prefix='/api/uploads')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # HTTP 예외(404, 405 등)는 원래 응답을 유지
        if isinstance(err, HTTPException):
            return err
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
