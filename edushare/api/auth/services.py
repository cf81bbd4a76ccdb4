# edushare/api/auth/services.py
import logging
from dataclasses import asdict
from typing import Optional
from google.api_core import exceptions as gcp_exceptions

from edushare.core.result import ServiceResult, ErrorKind
from edushare.models.profile import Profile
from edushare.services.identity_service import FirebaseIdentityService, IdentityError, AccountNotFoundError
from edushare.utils.datetime_utils import DateTimeUtils
from edushare.utils.text_utils import fallback_display_name, ANONYMOUS_LABEL

# access/refresh 토큰에 담는 세션 버전 claim 이름
SESSION_VERSION_CLAIM = "session_version"


class AuthService:
    """
    계정/세션 관련 비즈니스 로직을 담당하는 서비스 클래스.
    - 계정 생성, 로그인, 현재 사용자 조회, 로그아웃
    - 사용자 ID -> 표시 이름을 위한 'profiles' 컬렉션 관리
    """
    def __init__(self, db, identity_service: FirebaseIdentityService,
                 profiles_collection: str = 'profiles',
                 revoked_sessions_collection: str = 'revoked_sessions'):
        self.db = db
        self.identity_service = identity_service
        self.profiles_ref = self.db.collection(profiles_collection)
        self.revoked_sessions_ref = self.db.collection(revoked_sessions_collection)

    # --- 계정 / 세션 ---
    def create_account(self, email: str, password: str, name: str) -> ServiceResult:
        """
        Firebase 계정을 만들고 같은 ID로 프로필을 생성한 뒤 로그인 결과를 반환합니다.
        프로필 생성 실패는 로그만 남기고 가입은 성공으로 처리합니다.
        """
        try:
            account = self.identity_service.create_user(email, password, name)
        except IdentityError as e:
            logging.error(f"계정 생성 실패 (email: {email}): {e}")
            return ServiceResult.from_exception(e, str(e))

        profile_result = self.create_profile(account.user_id, name)
        if not profile_result.ok:
            logging.warning(f"프로필 없이 가입이 진행됩니다 (user_id: {account.user_id}): {profile_result.message}")

        logging.info(f"신규 계정 생성 완료 (user_id: {account.user_id})")
        return self.login(email, password)

    def login(self, email: str, password: str) -> ServiceResult:
        try:
            account = self.identity_service.sign_in_with_password(email, password)
            return ServiceResult.success(account)
        except IdentityError as e:
            logging.error(f"로그인 실패 (email: {email}): {e}")
            return ServiceResult.from_exception(e, str(e))

    def get_current_user(self, user_id: Optional[str]) -> ServiceResult:
        """활성 세션의 사용자를 조회합니다. 세션이 없는 것은 오류가 아닌 정상적인 결과입니다."""
        if not user_id:
            logging.info("현재 활성 세션이 없습니다.")
            return ServiceResult.not_found("로그인된 사용자가 없습니다.")
        try:
            return ServiceResult.success(self.identity_service.get_user(user_id))
        except AccountNotFoundError as e:
            logging.info(f"세션의 사용자가 존재하지 않습니다 (user_id: {user_id}): {e}")
            return ServiceResult.not_found("로그인된 사용자가 없습니다.")
        except IdentityError as e:
            logging.error(f"현재 사용자 조회 실패 (user_id: {user_id}): {e}")
            return ServiceResult.from_exception(e, "사용자 조회 중 오류가 발생했습니다.")

    def logout(self, user_id: str) -> ServiceResult:
        """
        사용자의 모든 세션을 폐기합니다. 실패해도 예외를 던지지 않습니다.
        세션 버전을 1 올리므로 이전 버전으로 발급된 토큰은 모두 거부됩니다.
        """
        try:
            self.identity_service.revoke_sessions(user_id)
            new_version = self.get_session_version(user_id) + 1
            self.revoked_sessions_ref.document(user_id).set(DateTimeUtils.for_firestore({
                'user_id': user_id,
                'session_version': new_version,
                'revoked_at': DateTimeUtils.now()
            }))
            logging.info(f"사용자 로그아웃 처리 완료 (user_id: {user_id}, session_version: {new_version})")
            return ServiceResult.success(True)
        except Exception as e:
            logging.error(f"로그아웃 처리 실패 (user_id: {user_id}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "로그아웃 처리 중 오류가 발생했습니다.")

    def get_session_version(self, user_id: str) -> int:
        """현재 세션 버전. 로그아웃한 적이 없으면 0 입니다."""
        doc = self.revoked_sessions_ref.document(user_id).get()
        if not doc.exists:
            return 0
        return int(doc.to_dict().get('session_version') or 0)

    def is_session_revoked(self, jwt_payload: dict) -> bool:
        """토큰의 세션 버전이 현재 세션 버전보다 낮으면 폐기된 세션입니다."""
        token_version = jwt_payload.get(SESSION_VERSION_CLAIM, 0)
        return token_version < self.get_session_version(jwt_payload['sub'])

    # --- 프로필 ---
    def create_profile(self, user_id: str, name: str) -> ServiceResult:
        profile = Profile(user_id=user_id, name=name)
        try:
            # 문서 ID = user_id, 이미 있으면 AlreadyExists
            self.profiles_ref.document(user_id).create(DateTimeUtils.for_firestore(asdict(profile)))
            return ServiceResult.success(asdict(profile))
        except gcp_exceptions.AlreadyExists:
            logging.warning(f"이미 프로필이 존재합니다 (user_id: {user_id})")
            return ServiceResult.failure(ErrorKind.CONFLICT, "이미 프로필이 존재합니다.")
        except Exception as e:
            logging.error(f"프로필 생성 실패 (user_id: {user_id}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "프로필 생성 중 오류가 발생했습니다.")

    def get_user_by_id(self, user_id: Optional[str]) -> ServiceResult:
        if not user_id:
            logging.warning("get_user_by_id: user_id가 비어 있습니다.")
            return ServiceResult.failure(ErrorKind.VALIDATION_FAILURE, "user_id가 필요합니다.")
        try:
            docs = self.profiles_ref.where('user_id', '==', user_id).limit(1).get()
            if docs:
                return ServiceResult.success(DateTimeUtils.from_firestore(docs[0].to_dict()))
            return ServiceResult.not_found(f"프로필을 찾을 수 없습니다: {user_id}")
        except Exception as e:
            logging.error(f"프로필 조회 실패 (user_id: {user_id}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "프로필 조회 중 오류가 발생했습니다.")

    def resolve_display_name(self, user_id: Optional[str]) -> str:
        """
        게시글/댓글 작성자의 표시 이름을 결정합니다.
        - 작성자 ID 없음: "Anonymous"
        - 프로필 이름이 있으면 그 이름, 없으면 "User-" + ID 앞 4자리
        """
        if not user_id:
            return ANONYMOUS_LABEL
        result = self.get_user_by_id(user_id)
        if result.ok and result.value.get('name'):
            return result.value['name']
        return fallback_display_name(user_id)
