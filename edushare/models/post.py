# edushare/models/post.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from edushare.utils.text_utils import ANONYMOUS_LABEL

POST_STATUS_ACTIVE = "active"
POST_STATUS_INACTIVE = "inactive"
POST_STATUSES = (POST_STATUS_ACTIVE, POST_STATUS_INACTIVE)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Post:
    """
    Firestore 'posts' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    문서 ID는 slug 입니다.
    """
    slug: str
    title: str
    content: str
    featured_image: str
    userid: str
    status: str = POST_STATUS_ACTIVE
    username: str = ANONYMOUS_LABEL  # 작성 시점에 저장되는 작성자 이름
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_dict(cls, data: dict) -> "Post":
        return cls(
            slug=data.get('slug'),
            title=data.get('title', ''),
            content=data.get('content', ''),
            featured_image=data.get('featured_image'),
            userid=data.get('userid'),
            status=data.get('status', POST_STATUS_ACTIVE),
            username=data.get('username') or ANONYMOUS_LABEL,
            created_at=data.get('created_at') or _utcnow(),
            updated_at=data.get('updated_at') or _utcnow(),
        )

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        return bool(user_id) and self.userid == user_id
