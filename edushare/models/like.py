# edushare/models/like.py
from dataclasses import dataclass, field
from datetime import datetime, timezone


def make_like_id(user_id: str, post_id: str) -> str:
    """(사용자, 게시글) 쌍마다 하나뿐인 좋아요 문서 ID를 만듭니다."""
    return f"{user_id}_{post_id}"


@dataclass
class Like:
    """
    Firestore 'likes' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    """
    like_id: str
    post_id: str
    user_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_pair(cls, post_id: str, user_id: str) -> "Like":
        return cls(like_id=make_like_id(user_id, post_id), post_id=post_id, user_id=user_id)
