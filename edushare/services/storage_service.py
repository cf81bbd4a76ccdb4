# edushare/services/storage_service.py
import uuid
import logging
from typing import BinaryIO, Optional
from urllib.parse import quote
from flask import Flask
from firebase_admin import storage

from edushare.core.result import ServiceResult, ErrorKind
from edushare.models.attachment import FileInfo, ALLOWED_ATTACHMENT_TYPES


def is_pdf(file_id: str, mime_type: Optional[str]) -> bool:
    """MIME 타입을 우선 확인하고, 없으면 파일 ID의 확장자로 판단합니다."""
    if mime_type and 'pdf' in mime_type.lower():
        return True
    return bool(file_id) and file_id.lower().endswith('.pdf')


class StorageService:
    """
    Firebase Storage 관련 로직을 담당하는 서비스 클래스입니다.
    게시글 첨부 파일(이미지/PDF)의 업로드, 삭제, 메타데이터 및 조회 URL을 제공합니다.
    """
    ATTACHMENT_FOLDER = "attachments"

    def __init__(self):
        """
        실제 버킷 객체는 init_app 메서드를 통해 주입됩니다.
        """
        self.bucket = None
        self.bucket_name = None
        self.endpoint = None
        self.project_id = None

    def init_app(self, app: Flask, bucket=None):
        """
        Flask 앱 초기화 과정에서 호출되어 Storage 버킷을 설정합니다.

        :param app: Flask 애플리케이션 객체
        :param bucket: 테스트 등에서 주입하는 버킷 객체 (없으면 firebase_admin에서 생성)
        """
        bucket_name = app.config.get('FIREBASE_STORAGE_BUCKET')
        if not bucket_name:
            raise ValueError("FIREBASE_STORAGE_BUCKET 설정이 .env 또는 설정 파일에 필요합니다.")

        self.bucket_name = bucket_name
        self.endpoint = app.config.get('FIREBASE_STORAGE_ENDPOINT', '').rstrip('/')
        self.project_id = app.config.get('FIREBASE_PROJECT_ID')
        self.bucket = bucket if bucket is not None else storage.bucket(bucket_name)
        logging.info("StorageService: Firebase Storage 서비스가 성공적으로 초기화되었습니다.")

    def _ensure_ready(self):
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

    def _blob_path(self, file_id: str) -> str:
        return f"{self.ATTACHMENT_FOLDER}/{file_id}"

    def _view_url(self, file_id: str) -> str:
        encoded_path = quote(self._blob_path(file_id), safe='')
        return f"{self.endpoint}/b/{self.bucket_name}/o/{encoded_path}?alt=media&project={self.project_id}"

    def _to_file_info(self, blob, file_id: str) -> FileInfo:
        metadata = blob.metadata or {}
        mime_type = blob.content_type
        view_url = self._view_url(file_id)
        pdf = is_pdf(file_id, mime_type)
        return FileInfo(
            file_id=file_id,
            name=metadata.get('original_filename') or file_id,
            owner_id=metadata.get('owner_id'),
            mime_type=mime_type,
            size=blob.size,
            view_url=view_url,
            created_at=blob.time_created,
            is_pdf=pdf,
            pdf_viewer_url=f"https://docs.google.com/viewer?url={quote(view_url, safe='')}&embedded=true" if pdf else None
        )

    def upload_file(self, stream: BinaryIO, filename: str, content_type: str,
                    owner_id: Optional[str] = None) -> ServiceResult:
        """
        첨부 파일을 무작위 파일 ID로 업로드합니다.

        :param stream: 업로드할 파일 스트림
        :param filename: 클라이언트가 올린 원본 파일명 (확장자 파악에 사용)
        :param content_type: 파일의 MIME 타입 (이미지 또는 PDF만 허용)
        :param owner_id: 업로드한 사용자 ID. 삭제와 게시글 첨부는 이 사용자만 할 수 있습니다.
        :return: 성공 시 FileInfo를 담은 ServiceResult
        """
        self._ensure_ready()
        if content_type not in ALLOWED_ATTACHMENT_TYPES:
            return ServiceResult.failure(
                ErrorKind.VALIDATION_FAILURE,
                f"'{content_type}'은(는) 허용되지 않는 파일 형식입니다. (허용: {', '.join(ALLOWED_ATTACHMENT_TYPES)})"
            )

        extension = filename.rsplit('.', 1)[-1].lower() if filename and '.' in filename else ''
        file_id = f"{uuid.uuid4()}.{extension}" if extension else str(uuid.uuid4())

        try:
            blob = self.bucket.blob(self._blob_path(file_id))
            blob.metadata = {'original_filename': filename, 'owner_id': owner_id}
            blob.upload_from_file(stream, content_type=content_type)
            logging.info(f"첨부 파일 업로드 완료 (file_id: {file_id}, type: {content_type})")
            return ServiceResult.success(self._to_file_info(blob, file_id))
        except Exception as e:
            logging.error(f"첨부 파일 업로드 실패 (filename: {filename}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "파일 업로드 중 오류가 발생했습니다.")

    def check_owner(self, file_id: str, user_id: Optional[str]) -> ServiceResult:
        """파일이 존재하고 user_id가 업로드한 파일인지 확인합니다."""
        self._ensure_ready()
        if not file_id:
            return ServiceResult.failure(ErrorKind.VALIDATION_FAILURE, "파일 ID가 필요합니다.")
        try:
            blob = self.bucket.get_blob(self._blob_path(file_id))
            if blob is None:
                return ServiceResult.not_found(f"파일을 찾을 수 없습니다: {file_id}")
            owner_id = (blob.metadata or {}).get('owner_id')
            if not user_id or owner_id != user_id:
                logging.warning(f"다른 사용자의 첨부 파일 접근 거부 (file_id: {file_id}, user_id: {user_id})")
                return ServiceResult.failure(ErrorKind.FORBIDDEN, "본인이 업로드한 파일만 사용할 수 있습니다.")
            return ServiceResult.success(True)
        except Exception as e:
            logging.error(f"첨부 파일 소유자 확인 실패 (file_id: {file_id}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "파일 정보 조회 중 오류가 발생했습니다.")

    def delete_file(self, file_id: str, user_id: Optional[str] = None) -> ServiceResult:
        """
        첨부 파일을 삭제합니다.
        user_id를 넘기면 그 사용자가 업로드한 파일일 때만 삭제합니다.
        """
        self._ensure_ready()
        if not file_id:
            return ServiceResult.failure(ErrorKind.VALIDATION_FAILURE, "파일 ID가 필요합니다.")
        if user_id is not None:
            owner_check = self.check_owner(file_id, user_id)
            if not owner_check.ok:
                return owner_check
        try:
            self.bucket.blob(self._blob_path(file_id)).delete()
            logging.info(f"첨부 파일 삭제 완료 (file_id: {file_id})")
            return ServiceResult.success(True)
        except Exception as e:
            result = ServiceResult.from_exception(e, f"파일을 삭제할 수 없습니다: {file_id}")
            if result.is_not_found:
                logging.warning(f"삭제할 첨부 파일이 없습니다 (file_id: {file_id})")
            else:
                logging.error(f"첨부 파일 삭제 실패 (file_id: {file_id}): {e}", exc_info=True)
            return result

    def get_file_preview(self, file_id: str) -> ServiceResult:
        """파일 조회 URL을 만듭니다. 네트워크 요청 없이 결정적으로 생성됩니다."""
        if not file_id:
            return ServiceResult.failure(ErrorKind.VALIDATION_FAILURE, "파일 ID가 필요합니다.")
        return ServiceResult.success(self._view_url(file_id))

    def get_file_info(self, file_id: str) -> ServiceResult:
        self._ensure_ready()
        if not file_id:
            return ServiceResult.failure(ErrorKind.VALIDATION_FAILURE, "파일 ID가 필요합니다.")
        try:
            blob = self.bucket.get_blob(self._blob_path(file_id))
            if blob is None:
                return ServiceResult.not_found(f"파일을 찾을 수 없습니다: {file_id}")
            return ServiceResult.success(self._to_file_info(blob, file_id))
        except Exception as e:
            logging.error(f"첨부 파일 정보 조회 실패 (file_id: {file_id}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "파일 정보 조회 중 오류가 발생했습니다.")
