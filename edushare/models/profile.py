# edushare/models/profile.py
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class Profile:
    """
    Firestore 'profiles' 컬렉션의 문서 구조.
    문서 ID = user_id 이므로 사용자당 프로필은 하나뿐입니다.
    """
    user_id: str
    name: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
