# edushare/core/config.py

import os
from datetime import timedelta


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명 키. 세션(access/refresh 토큰)의 위변조를 방지합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.getenv('JWT_ACCESS_TOKEN_MINUTES', 60)))
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=int(os.getenv('JWT_REFRESH_TOKEN_DAYS', 14)))

    # Firebase 프로젝트 식별자
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')
    # 이메일/비밀번호 로그인(Identity Toolkit REST)에 사용하는 웹 API 키
    FIREBASE_WEB_API_KEY = os.getenv('FIREBASE_WEB_API_KEY')
    FIREBASE_STORAGE_ENDPOINT = os.getenv('FIREBASE_STORAGE_ENDPOINT', 'https://firebasestorage.googleapis.com/v0')

    # Firestore 컬렉션 이름
    POSTS_COLLECTION = os.getenv('POSTS_COLLECTION', 'posts')
    PROFILES_COLLECTION = os.getenv('PROFILES_COLLECTION', 'profiles')
    LIKES_COLLECTION = os.getenv('LIKES_COLLECTION', 'likes')
    COMMENTS_COLLECTION = os.getenv('COMMENTS_COLLECTION', 'comments')
    REVOKED_SESSIONS_COLLECTION = os.getenv('REVOKED_SESSIONS_COLLECTION', 'revoked_sessions')

    # 작성자 이름 조회 등 일괄 조회에 사용하는 스레드 수
    ENRICHMENT_MAX_WORKERS = int(os.getenv('ENRICHMENT_MAX_WORKERS', 8))

    # create_app에서 누락 여부를 검사하는 필수 설정
    REQUIRED_SETTINGS = (
        'JWT_SECRET_KEY',
        'FIREBASE_CREDENTIALS_PATH',
        'FIREBASE_PROJECT_ID',
        'FIREBASE_STORAGE_BUCKET',
        'FIREBASE_WEB_API_KEY',
    )


class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')


class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다. 외부 서비스는 테스트에서 주입합니다."""
    TESTING = True
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    JWT_SECRET_KEY = 'edushare-test-secret-key-with-enough-length'
    FIREBASE_PROJECT_ID = 'edushare-test'
    FIREBASE_STORAGE_BUCKET = 'edushare-test.appspot.com'
    FIREBASE_WEB_API_KEY = 'test-api-key'
    ENRICHMENT_MAX_WORKERS = 4


class ProductionConfig(Config):
    """운영 환경을 위한 설정 클래스입니다."""
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')


# FLASK_ENV 값에 따라 create_app에서 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)


def find_missing_settings(config: dict) -> list:
    """필수 설정 중 비어 있는 항목의 이름 목록을 반환합니다."""
    return [name for name in config.get('REQUIRED_SETTINGS', ()) if not config.get(name)]
