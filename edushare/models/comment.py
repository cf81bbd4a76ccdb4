# edushare/models/comment.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class Comment:
    """
    Firestore 'comments' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    """
    comment_id: str
    post_id: str
    user_id: str
    content: str
    name: Optional[str] = None  # 작성 시점의 작성자 이름 (이전 데이터에는 없을 수 있음)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
