# edushare/services/name_resolution.py
"""
작성자 표시 이름 일괄 조회

콘텐츠 서비스(게시글/댓글)는 인증 서비스를 직접 import 하지 않고
`resolve_display_name(user_id) -> str` 형태의 함수를 주입받아 사용합니다.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, Optional

DisplayNameResolver = Callable[[Optional[str]], str]


def resolve_display_names(resolver: DisplayNameResolver,
                          user_ids: Iterable[Optional[str]],
                          max_workers: int = 8) -> Dict[Optional[str], str]:
    """
    중복을 제거한 user_id 목록의 표시 이름을 동시에 조회하고,
    모든 조회가 끝난 뒤 {user_id: 이름} 딕셔너리를 반환합니다.
    """
    unique_ids = list(dict.fromkeys(user_ids))
    if not unique_ids:
        return {}
    if len(unique_ids) == 1:
        return {unique_ids[0]: resolver(unique_ids[0])}

    with ThreadPoolExecutor(max_workers=min(max_workers, len(unique_ids))) as executor:
        names = list(executor.map(resolver, unique_ids))
    return dict(zip(unique_ids, names))
