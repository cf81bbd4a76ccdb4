# edushare/api/posts/services.py
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from typing import Optional, Dict, Any, List, Tuple
from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions

from edushare.core.result import ServiceResult, ErrorKind
from edushare.models.post import Post, POST_STATUSES, POST_STATUS_ACTIVE
from edushare.models.like import Like, make_like_id
from edushare.services.name_resolution import DisplayNameResolver, resolve_display_names
from edushare.services.storage_service import StorageService
from edushare.utils.datetime_utils import DateTimeUtils
from edushare.utils.text_utils import slug_transform, is_valid_slug

# get_posts의 기본 필터: 공개(active) 게시글만
DEFAULT_POST_FILTERS: List[Tuple[str, str, Any]] = [("status", "==", POST_STATUS_ACTIVE)]

UPDATABLE_FIELDS = ('title', 'content', 'featured_image', 'status')


class PostService:
    """
    게시글과 좋아요 관련 비즈니스 로직을 담당하는 서비스 클래스.
    작성자 이름은 주입받은 resolve_display_name으로 조회합니다.
    """
    def __init__(self, db, storage_service: StorageService, resolve_display_name: DisplayNameResolver,
                 comment_service=None,
                 posts_collection: str = 'posts',
                 likes_collection: str = 'likes',
                 max_workers: int = 8):
        self.db = db
        self.posts_ref = self.db.collection(posts_collection)
        self.likes_ref = self.db.collection(likes_collection)
        self.storage_service = storage_service
        self.resolve_display_name = resolve_display_name
        self.comment_service = comment_service
        self.max_workers = max_workers

    # --- 게시글 ---
    def create_post(self, user_id: str, title: str, content: str, featured_image: str,
                    status: str = POST_STATUS_ACTIVE, slug: Optional[str] = None,
                    username: Optional[str] = None) -> ServiceResult:
        """
        slug를 문서 ID로 새 게시글을 생성합니다.
        입력한 slug도 제목과 같은 규칙으로 변환하며, 없으면 제목에서 만듭니다.
        첨부 파일은 작성자 본인이 업로드한 파일이어야 합니다.
        """
        slug = slug_transform(slug or title)
        if not is_valid_slug(slug):
            return ServiceResult.failure(ErrorKind.VALIDATION_FAILURE, f"사용할 수 없는 slug 입니다: '{slug}'")
        if status not in POST_STATUSES:
            return ServiceResult.failure(ErrorKind.VALIDATION_FAILURE, f"알 수 없는 게시글 상태입니다: '{status}'")

        attachment_check = self._check_attachment(featured_image, user_id)
        if attachment_check:
            return attachment_check

        new_post = Post(
            slug=slug, title=title, content=content,
            featured_image=featured_image, userid=user_id,
            status=status, username=username or self.resolve_display_name(user_id)
        )
        try:
            self.posts_ref.document(slug).create(DateTimeUtils.for_firestore(asdict(new_post)))
            logging.info(f"게시글 생성 완료 (slug: {slug}, user_id: {user_id})")
            return ServiceResult.success(asdict(new_post))
        except gcp_exceptions.AlreadyExists:
            logging.warning(f"이미 사용 중인 slug 입니다 (slug: {slug})")
            return ServiceResult.failure(ErrorKind.CONFLICT, f"이미 사용 중인 slug 입니다: '{slug}'")
        except Exception as e:
            logging.error(f"게시글 생성 실패 (user_id: {user_id}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "게시글 생성 중 오류가 발생했습니다.")

    def _check_attachment(self, file_id: str, user_id: str) -> Optional[ServiceResult]:
        """첨부 파일이 없거나 다른 사용자의 파일이면 실패 결과를 반환합니다."""
        owner_check = self.storage_service.check_owner(file_id, user_id)
        if owner_check.ok:
            return None
        if owner_check.is_not_found:
            return ServiceResult.failure(ErrorKind.VALIDATION_FAILURE, f"첨부 파일을 찾을 수 없습니다: {file_id}")
        return owner_check

    def _load_owned_post(self, slug: str, user_id: str) -> Tuple[Any, Optional[Post], Optional[ServiceResult]]:
        """게시글을 읽고 작성자 본인인지 확인합니다. 실패 시 세 번째 값에 결과가 담깁니다."""
        post_ref = self.posts_ref.document(slug)
        doc = post_ref.get()
        if not doc.exists:
            return post_ref, None, ServiceResult.not_found(f"게시글을 찾을 수 없습니다: {slug}")
        post = Post.from_dict(DateTimeUtils.from_firestore(doc.to_dict()))
        if not post.is_owned_by(user_id):
            return post_ref, post, ServiceResult.failure(ErrorKind.FORBIDDEN, "게시글 작성자만 수정/삭제할 수 있습니다.")
        return post_ref, post, None

    def update_post(self, slug: str, user_id: str, changes: Dict[str, Any]) -> ServiceResult:
        """
        작성자 본인의 게시글을 수정합니다.
        첨부 파일이 교체되면 이전 파일은 Storage에서 삭제합니다.
        """
        update_data = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}
        if 'status' in update_data and update_data['status'] not in POST_STATUSES:
            return ServiceResult.failure(ErrorKind.VALIDATION_FAILURE, f"알 수 없는 게시글 상태입니다: '{update_data['status']}'")
        try:
            post_ref, post, failure = self._load_owned_post(slug, user_id)
            if failure:
                return failure

            new_image = update_data.get('featured_image')
            image_replaced = bool(new_image) and new_image != post.featured_image
            if image_replaced:
                attachment_check = self._check_attachment(new_image, user_id)
                if attachment_check:
                    return attachment_check

            update_data['updated_at'] = DateTimeUtils.now()
            post_ref.update(DateTimeUtils.for_firestore(update_data))

            if image_replaced and post.featured_image:
                deleted = self.storage_service.delete_file(post.featured_image, user_id=user_id)
                if not deleted.ok:
                    logging.warning(f"교체된 첨부 파일 삭제 실패 (file_id: {post.featured_image}): {deleted.message}")

            return ServiceResult.success(DateTimeUtils.from_firestore(post_ref.get().to_dict()))
        except Exception as e:
            logging.error(f"게시글 수정 실패 (slug: {slug}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "게시글 수정 중 오류가 발생했습니다.")

    def delete_post(self, slug: str, user_id: str) -> ServiceResult:
        """작성자 본인의 게시글과 첨부 파일을 함께 삭제합니다."""
        try:
            post_ref, post, failure = self._load_owned_post(slug, user_id)
            if failure:
                return failure

            post_ref.delete()
            if post.featured_image:
                deleted = self.storage_service.delete_file(post.featured_image, user_id=user_id)
                if not deleted.ok and not deleted.is_not_found:
                    logging.error(f"게시글 첨부 파일 삭제 실패 (slug: {slug}, file_id: {post.featured_image}): {deleted.message}")
            logging.info(f"게시글 삭제 완료 (slug: {slug})")
            return ServiceResult.success(True)
        except Exception as e:
            logging.error(f"게시글 삭제 실패 (slug: {slug}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "게시글 삭제 중 오류가 발생했습니다.")

    def get_post(self, slug: str) -> ServiceResult:
        """게시글을 조회하고 작성자 이름(username)을 프로필 기준으로 채웁니다."""
        try:
            doc = self.posts_ref.document(slug).get()
            if not doc.exists:
                return ServiceResult.not_found(f"게시글을 찾을 수 없습니다: {slug}")
            post = DateTimeUtils.from_firestore(doc.to_dict())
            post['username'] = self.resolve_display_name(post.get('userid'))
            return ServiceResult.success(post)
        except Exception as e:
            logging.error(f"게시글 조회 실패 (slug: {slug}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "게시글 조회 중 오류가 발생했습니다.")

    def get_posts(self, filters: Optional[List[Tuple[str, str, Any]]] = None,
                  limit: Optional[int] = None) -> ServiceResult:
        """
        필터에 맞는 게시글 목록을 최신순으로 조회합니다. (기본: active 게시글만)
        페이지 내 작성자 이름은 동시에 조회한 뒤 한꺼번에 채웁니다.
        """
        if filters is None:
            filters = DEFAULT_POST_FILTERS
        try:
            filtered = self.posts_ref
            for field_path, op, value in filters:
                filtered = filtered.where(field_path, op, value)
            query = filtered.order_by('created_at', direction=firestore.Query.DESCENDING)
            if limit:
                query = query.limit(limit)

            posts = [DateTimeUtils.from_firestore(doc.to_dict()) for doc in query.stream()]
            names = resolve_display_names(
                self.resolve_display_name, [p.get('userid') for p in posts], self.max_workers
            )
            for post in posts:
                post['username'] = names[post.get('userid')]

            # limit이 있으면 total은 페이지 크기가 아닌 전체 일치 개수
            total = self._count(filtered) if limit else len(posts)
            return ServiceResult.success({"documents": posts, "total": total})
        except Exception as e:
            logging.error(f"게시글 목록 조회 실패 (filters: {filters}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "게시글 목록 조회 중 오류가 발생했습니다.")

    @staticmethod
    def _count(query) -> int:
        """Firestore count() 집계로 문서를 읽지 않고 개수만 조회합니다."""
        results = query.count(alias='total').get()
        return int(results[0][0].value)

    def get_post_detail(self, slug: str, viewer_id: Optional[str] = None) -> ServiceResult:
        """게시글 상세 화면용: 게시글과 함께 좋아요/댓글 목록을 동시에 조회합니다."""
        post_result = self.get_post(slug)
        if not post_result.ok:
            return post_result

        with ThreadPoolExecutor(max_workers=2) as executor:
            likes_future = executor.submit(self.get_likes, slug)
            comments_future = executor.submit(self.comment_service.get_comments, slug)
            likes_result = likes_future.result()
            comments_result = comments_future.result()

        for result in (likes_result, comments_result):
            if not result.ok:
                return result

        likes = likes_result.value['documents']
        return ServiceResult.success({
            "post": post_result.value,
            "likes": likes,
            "like_count": likes_result.value['total'],
            "liked_by_viewer": bool(viewer_id) and any(like.get('user_id') == viewer_id for like in likes),
            "comments": comments_result.value['documents'],
        })

    # --- 좋아요 ---
    def like_post(self, post_id: str, user_id: str) -> ServiceResult:
        """
        좋아요를 생성합니다. 문서 ID가 f"{user_id}_{post_id}" 이므로
        같은 쌍의 좋아요는 저장소에서 하나로 보장되며, 이미 있으면 기존 문서를 반환합니다.
        """
        if not post_id or not user_id:
            return ServiceResult.failure(ErrorKind.VALIDATION_FAILURE, "post_id와 user_id가 필요합니다.")
        try:
            if not self.posts_ref.document(post_id).get().exists:
                return ServiceResult.not_found(f"게시글을 찾을 수 없습니다: {post_id}")

            new_like = Like.for_pair(post_id, user_id)
            like_ref = self.likes_ref.document(new_like.like_id)
            try:
                like_ref.create(DateTimeUtils.for_firestore(asdict(new_like)))
                logging.info(f"좋아요 생성 (post_id: {post_id}, user_id: {user_id})")
                return ServiceResult.success(asdict(new_like))
            except gcp_exceptions.AlreadyExists:
                return ServiceResult.success(DateTimeUtils.from_firestore(like_ref.get().to_dict()))
        except Exception as e:
            logging.error(f"좋아요 실패 (post_id: {post_id}, user_id: {user_id}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "좋아요 처리 중 오류가 발생했습니다.")

    def unlike_post(self, post_id: str, user_id: str) -> ServiceResult:
        """좋아요를 취소합니다. 취소할 좋아요가 없으면 value=False."""
        try:
            like_ref = self.likes_ref.document(make_like_id(user_id, post_id))
            if not like_ref.get().exists:
                return ServiceResult.success(False)
            like_ref.delete()
            logging.info(f"좋아요 취소 (post_id: {post_id}, user_id: {user_id})")
            return ServiceResult.success(True)
        except Exception as e:
            logging.error(f"좋아요 취소 실패 (post_id: {post_id}, user_id: {user_id}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "좋아요 취소 중 오류가 발생했습니다.")

    def get_likes(self, post_id: str) -> ServiceResult:
        try:
            docs = self.likes_ref.where('post_id', '==', post_id).stream()
            likes = [DateTimeUtils.from_firestore(doc.to_dict()) for doc in docs]
            return ServiceResult.success({"documents": likes, "total": len(likes)})
        except Exception as e:
            logging.error(f"좋아요 목록 조회 실패 (post_id: {post_id}): {e}", exc_info=True)
            return ServiceResult.from_exception(e, "좋아요 목록 조회 중 오류가 발생했습니다.")
