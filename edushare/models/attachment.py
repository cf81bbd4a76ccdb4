# edushare/models/attachment.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

# 업로드 허용 MIME 타입 (이미지 및 PDF)
ALLOWED_ATTACHMENT_TYPES = (
    "image/png",
    "image/jpg",
    "image/jpeg",
    "image/gif",
    "application/pdf",
)


@dataclass
class FileInfo:
    """Storage 버킷에 저장된 첨부 파일의 메타데이터."""
    file_id: str
    name: str
    mime_type: Optional[str]
    size: Optional[int]
    view_url: str
    owner_id: Optional[str] = None  # 업로드한 사용자
    created_at: Optional[datetime] = None
    is_pdf: bool = False
    pdf_viewer_url: Optional[str] = None
