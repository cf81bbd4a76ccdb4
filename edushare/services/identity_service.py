# edushare/services/identity_service.py

import logging
import requests
from flask import Flask
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from edushare.core.result import ErrorKind
from edushare.models.user import AccountUser


class IdentityError(Exception):
    """Firebase Authentication 연동 중 발생한 오류의 기반 클래스."""
    error_kind = ErrorKind.TRANSIENT_FAILURE


class InvalidCredentialsError(IdentityError):
    error_kind = ErrorKind.VALIDATION_FAILURE


class InvalidAccountDataError(IdentityError):
    error_kind = ErrorKind.VALIDATION_FAILURE


class AccountExistsError(IdentityError):
    error_kind = ErrorKind.CONFLICT


class AccountNotFoundError(IdentityError):
    error_kind = ErrorKind.NOT_FOUND


# Identity Toolkit 오류 코드 중 잘못된 입력으로 간주하는 것들
_CREDENTIAL_ERROR_CODES = {
    "EMAIL_NOT_FOUND",
    "INVALID_PASSWORD",
    "INVALID_LOGIN_CREDENTIALS",
    "INVALID_EMAIL",
    "USER_DISABLED",
    "MISSING_PASSWORD",
}


def _to_account_user(record) -> AccountUser:
    return AccountUser(user_id=record.uid, email=record.email, name=record.display_name)


class FirebaseIdentityService:
    """
    Firebase Authentication과의 실제 통신을 담당하는 서비스 클래스입니다.
    - 계정 생성/조회/세션 폐기는 Admin SDK를 사용합니다.
    - 이메일/비밀번호 로그인은 Admin SDK가 지원하지 않으므로 Identity Toolkit REST API를 호출합니다.
    """
    _sign_in_url = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"

    def __init__(self, timeout: int = 10):
        self.api_key = None
        self.timeout = timeout

    def init_app(self, app: Flask):
        api_key = app.config.get('FIREBASE_WEB_API_KEY')
        if not api_key:
            raise ValueError("FIREBASE_WEB_API_KEY 설정이 .env 또는 설정 파일에 필요합니다.")
        self.api_key = api_key
        logging.info("FirebaseIdentityService: Firebase Authentication 연동이 초기화되었습니다.")

    def create_user(self, email: str, password: str, name: str) -> AccountUser:
        try:
            record = firebase_auth.create_user(email=email, password=password, display_name=name)
        except firebase_auth.EmailAlreadyExistsError as e:
            raise AccountExistsError("이미 가입된 이메일입니다.") from e
        except ValueError as e:
            # Admin SDK는 이메일/비밀번호 형식 오류를 ValueError로 알립니다.
            raise InvalidAccountDataError(str(e)) from e
        except firebase_exceptions.InvalidArgumentError as e:
            raise InvalidAccountDataError(str(e)) from e
        except firebase_exceptions.FirebaseError as e:
            raise IdentityError(f"계정 생성 실패: {e}") from e
        return _to_account_user(record)

    @staticmethod
    def _read_json(response) -> dict:
        try:
            return response.json()
        except ValueError as e:
            raise IdentityError(f"Identity Toolkit 응답을 해석할 수 없습니다 (status: {response.status_code})") from e

    def sign_in_with_password(self, email: str, password: str) -> AccountUser:
        if not self.api_key:
            raise RuntimeError("FirebaseIdentityService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")
        try:
            response = requests.post(
                self._sign_in_url,
                params={"key": self.api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise IdentityError(f"로그인 요청 실패: {e}") from e

        if response.status_code == 400:
            error_message = self._read_json(response).get("error", {}).get("message", "")
            # 예: "TOO_MANY_ATTEMPTS_TRY_LATER : Access to this account has been temporarily disabled..."
            error_code = error_message.split(" ")[0]
            if error_code in _CREDENTIAL_ERROR_CODES:
                raise InvalidCredentialsError("이메일 또는 비밀번호가 올바르지 않습니다.")
            raise IdentityError(f"로그인 실패: {error_message}")

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise IdentityError(f"로그인 요청 실패: {e}") from e

        data = self._read_json(response)
        return AccountUser(
            user_id=data["localId"],
            email=data.get("email", email),
            name=data.get("displayName") or None
        )

    def get_user(self, user_id: str) -> AccountUser:
        try:
            return _to_account_user(firebase_auth.get_user(user_id))
        except firebase_auth.UserNotFoundError as e:
            raise AccountNotFoundError(f"사용자를 찾을 수 없습니다: {user_id}") from e
        except firebase_exceptions.FirebaseError as e:
            raise IdentityError(f"사용자 조회 실패: {e}") from e

    def revoke_sessions(self, user_id: str) -> None:
        """사용자의 모든 refresh 토큰(세션)을 폐기합니다."""
        try:
            firebase_auth.revoke_refresh_tokens(user_id)
        except firebase_auth.UserNotFoundError as e:
            raise AccountNotFoundError(f"사용자를 찾을 수 없습니다: {user_id}") from e
        except firebase_exceptions.FirebaseError as e:
            raise IdentityError(f"세션 폐기 실패: {e}") from e
