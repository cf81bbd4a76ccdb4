# edushare/models/user.py
from dataclasses import dataclass
from typing import Optional


@dataclass
class AccountUser:
    """
    Firebase Authentication이 관리하는 계정 정보.
    이 코드베이스에서는 저장하지 않고 조회만 합니다.
    """
    user_id: str
    email: Optional[str]
    name: Optional[str]
