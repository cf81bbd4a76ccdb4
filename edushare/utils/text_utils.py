# edushare/utils/text_utils.py
import re
from typing import Optional

ANONYMOUS_LABEL = "Anonymous"
FALLBACK_PREFIX = "User-"

_NON_ALNUM_SPACE = re.compile(r'[^a-zA-Z\d\s]+')
_WHITESPACE = re.compile(r'\s+')
_VALID_SLUG = re.compile(r'^[a-z\d][a-z\d\-]*$')


def slug_transform(value: Optional[str]) -> str:
    """
    게시글 제목을 slug(게시글 문서 ID)로 변환합니다.
    영문/숫자/공백 외의 문자 묶음과 공백 묶음은 '-' 하나로 바뀝니다.

    >>> slug_transform("  Hello World  ")
    'hello-world'
    """
    if not value or not isinstance(value, str):
        return ""
    slug = value.strip().lower()
    slug = _NON_ALNUM_SPACE.sub('-', slug)
    return _WHITESPACE.sub('-', slug)


def is_valid_slug(slug: Optional[str]) -> bool:
    # Firestore 문서 ID에 '/'가 들어갈 수 없으므로 변환 결과만 허용
    return bool(slug) and len(slug) <= 255 and bool(_VALID_SLUG.match(slug))


def fallback_display_name(user_id: Optional[str]) -> str:
    """프로필이 없는 사용자의 표시 이름: 'User-' + user_id 앞 4자리."""
    if not user_id:
        return ANONYMOUS_LABEL
    return f"{FALLBACK_PREFIX}{user_id[:4]}"
