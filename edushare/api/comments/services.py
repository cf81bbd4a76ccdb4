# edushare/api/comments/services.py

import logging
import uuid
from dataclasses import asdict
from typing import Optional
from firebase_admin import firestore

from edushare.core.result import ServiceResult, ErrorKind
from edushare.models.comment import Comment
from edushare.services.name_resolution import DisplayNameResolver, resolve_display_names
from edushare.utils.datetime_utils import DateTimeUtils

MAX_COMMENT_LENGTH = 1000


class CommentService:
    """
    댓글 관련 비즈니스 로직을 담당하는 서비스 클래스.
    댓글은 추가만 가능하며(수정/삭제 없음), 작성 시점의 작성자 이름을 함께 저장합니다.
    """
    def __init__(self, db, resolve_display_name: DisplayNameResolver,
                 posts_collection: str = 'posts',
                 comments_collection: str = 'comments',
                 max_workers: int = 8):
        self.db = db
        self.posts_ref = self.db.collection(posts_collection)
        self.comments_ref = self.db.collection(comments_collection)
        self.resolve_display_name = resolve_display_name
        self.max_workers = max_workers

    def add_comment(self, post_id: str, user_id: str, content: str, name: Optional[str] = None) -> ServiceResult:
        """새로운 댓글을 생성합니다."""
        content = (content or '').strip()
        if not content or len(content) > MAX_COMMENT_LENGTH:
            return ServiceResult.failure(ErrorKind.VALIDATION_FAILURE, f"댓글은 1~{MAX_COMMENT_LENGTH}자 사이여야 합니다.")
        if not user_id:
            return ServiceResult.failure(ErrorKind.VALIDATION_FAILURE, "댓글 작성자가 필요합니다.")

        try:
            if not self.posts_ref.document(post_id).get().exists:
                return ServiceResult.not_found("댓글을 작성할 게시물이 존재하지 않습니다.")

            new_comment = Comment(
                comment_id=str(uuid.uuid4()),
                post_id=post_id,
                user_id=user_id,
                content=content,
                name=name
            )
            self.comments_ref.document(new_comment.comment_id).set(DateTimeUtils.for_firestore(asdict(new_comment)))
            return ServiceResult.success(asdict(new_comment))
        except Exception as e:
            logging.error(f"댓글 생성 실패 (post_id: {post_id}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "댓글 생성 중 오류가 발생했습니다.")

    def get_comments(self, post_id: str) -> ServiceResult:
        """
        게시글의 댓글을 작성 시각 오름차순으로 조회합니다.
        이름이 저장되지 않은 이전 댓글은 작성자 프로필에서 이름을 채웁니다.
        """
        try:
            query = self.comments_ref.where('post_id', '==', post_id).order_by(
                'timestamp', direction=firestore.Query.ASCENDING
            )
            comments = [DateTimeUtils.from_firestore(doc.to_dict()) for doc in query.stream()]
            # 이전 데이터는 timestamp가 ISO 문자열이라 Firestore 정렬 순서가 섞일 수 있음
            comments.sort(key=lambda c: DateTimeUtils.sort_key(c.get('timestamp')))

            unnamed_ids = [c.get('user_id') for c in comments if not c.get('name')]
            names = resolve_display_names(self.resolve_display_name, unnamed_ids, self.max_workers)
            for comment in comments:
                if not comment.get('name'):
                    comment['name'] = names[comment.get('user_id')]

            return ServiceResult.success({"documents": comments, "total": len(comments)})
        except Exception as e:
            logging.error(f"댓글 목록 조회 실패 (post_id: {post_id}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "댓글 목록 조회 중 오류가 발생했습니다.")
