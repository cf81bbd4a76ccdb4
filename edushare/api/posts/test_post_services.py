# edushare/api/posts/test_post_services.py
"""
게시글 / 좋아요 서비스 테스트

사용법: python -m pytest edushare/api/posts/test_post_services.py -v
"""

from datetime import datetime, timezone, timedelta
from concurrent.futures import ThreadPoolExecutor

from edushare.api.posts.services import PostService
from edushare.core.result import ErrorKind


# --- 게시글 생성 ---

def test_create_post_uses_title_slug(post_service, make_user, make_post, fake_db):
    user = make_user(name="Alice")

    post = make_post(user.user_id, title="  My First Post ")

    assert post['slug'] == "my-first-post"
    assert post['username'] == "Alice"
    assert fake_db.collection('posts').document("my-first-post").get().exists


def test_create_post_with_taken_slug_is_conflict(post_service, make_user, make_post, upload_attachment):
    user = make_user()
    make_post(user.user_id, title="Intro")

    result = post_service.create_post(user.user_id, "Intro", "<p>again</p>", upload_attachment(owner_id=user.user_id))

    assert result.error_kind is ErrorKind.CONFLICT


def test_create_post_rejects_unusable_slug(post_service, upload_attachment):
    result = post_service.create_post("u-1", "!!!", "<p>x</p>", upload_attachment(owner_id="u-1"))
    assert result.error_kind is ErrorKind.VALIDATION_FAILURE

    result = post_service.create_post("u-1", "Title", "<p>x</p>", upload_attachment(owner_id="u-1"), slug="@@")
    assert result.error_kind is ErrorKind.VALIDATION_FAILURE


def test_create_post_transforms_typed_slug(post_service, upload_attachment):
    result = post_service.create_post("u-1", "Title", "<p>x</p>", upload_attachment(owner_id="u-1"), slug="My Post")

    assert result.ok
    assert result.value["slug"] == "my-post"
    assert post_service.get_post("my-post").ok


def test_create_post_rejects_unknown_status(post_service, upload_attachment):
    result = post_service.create_post("u-1", "Draft", "<p>x</p>", upload_attachment(owner_id="u-1"), status="draft")
    assert result.error_kind is ErrorKind.VALIDATION_FAILURE


# --- 게시글 조회 ---

def test_get_posts_defaults_to_active_and_labels_authors(post_service, make_user, make_post, fake_db):
    user = make_user(name="Alice")
    make_post(user.user_id, title="Visible")
    make_post(user.user_id, title="Hidden", status="inactive")
    # 프로필이 없는 작성자와 작성자 ID가 없는 게시글
    make_post("zyxw9876", title="No Profile")
    fake_db.collection('posts').document("orphan").set({
        'slug': "orphan", 'title': "Orphan", 'content': "", 'featured_image': None,
        'userid': None, 'status': "active", 'created_at': datetime.now(timezone.utc),
    })

    result = post_service.get_posts()

    assert result.ok
    by_slug = {p['slug']: p for p in result.value['documents']}
    assert set(by_slug) == {"visible", "no-profile", "orphan"}
    assert result.value['total'] == 3
    assert by_slug["visible"]['username'] == "Alice"
    assert by_slug["no-profile"]['username'] == "User-zyxw"
    assert by_slug["orphan"]['username'] == "Anonymous"


def test_get_posts_newest_first_with_filters(post_service, fake_db):
    base = datetime(2024, 3, 1, tzinfo=timezone.utc)
    posts_ref = fake_db.collection('posts')
    for i, owner in enumerate(["a", "b", "a"]):
        posts_ref.document(f"post-{i}").set({
            'slug': f"post-{i}", 'title': f"Post {i}", 'content': "", 'featured_image': None,
            'userid': owner, 'status': "active", 'created_at': base + timedelta(days=i),
        })

    result = post_service.get_posts([("status", "==", "active"), ("userid", "==", "a")])

    assert [p['slug'] for p in result.value['documents']] == ["post-2", "post-0"]

    limited = post_service.get_posts(limit=1)
    assert [p['slug'] for p in limited.value['documents']] == ["post-2"]
    # total은 페이지 크기가 아니라 전체 일치 개수
    assert limited.value['total'] == 3


def test_get_post_missing_is_not_found(post_service):
    assert post_service.get_post("nope").is_not_found


def test_content_service_only_needs_a_name_function(fake_db, storage_service, upload_attachment):
    calls = []

    def resolve(user_id):
        calls.append(user_id)
        return f"name:{user_id}"

    service = PostService(fake_db, storage_service, resolve_display_name=resolve)
    service.create_post("u-1", "One", "<p>1</p>", upload_attachment(owner_id="u-1"), username="Writer")
    service.create_post("u-1", "Two", "<p>2</p>", upload_attachment(owner_id="u-1"), username="Writer")

    result = service.get_posts()

    assert {p['username'] for p in result.value['documents']} == {"name:u-1"}
    # 같은 작성자는 한 번만 조회
    assert calls.count("u-1") == 1


# --- 게시글 수정 / 삭제 ---

def test_update_post_by_owner_replaces_attachment(post_service, make_user, make_post, upload_attachment, fake_bucket):
    user = make_user()
    post = make_post(user.user_id, title="Lesson")
    old_image = post['featured_image']
    new_image = upload_attachment(owner_id=user.user_id, filename="new.png")

    result = post_service.update_post("lesson", user.user_id, {'title': "Lesson v2", 'featured_image': new_image})

    assert result.ok
    assert result.value['title'] == "Lesson v2"
    assert result.value['featured_image'] == new_image
    assert f"attachments/{old_image}" not in fake_bucket.objects
    assert f"attachments/{new_image}" in fake_bucket.objects


def test_update_post_by_other_user_is_forbidden(post_service, make_user, make_post):
    owner = make_user(name="Owner")
    other = make_user(name="Other")
    make_post(owner.user_id, title="Mine")

    result = post_service.update_post("mine", other.user_id, {'title': "Hijacked"})

    assert result.error_kind is ErrorKind.FORBIDDEN
    assert post_service.get_post("mine").value['title'] == "Mine"


def test_update_post_keeps_author_name(post_service, make_user, make_post):
    user = make_user(name="Alice")
    make_post(user.user_id, title="Named")

    result = post_service.update_post("named", user.user_id, {'username': "Mallory", 'content': "<p>v2</p>"})

    assert result.ok
    assert result.value['username'] == "Alice"
    assert result.value['content'] == "<p>v2</p>"


def test_update_missing_post_is_not_found(post_service):
    assert post_service.update_post("ghost", "u-1", {'title': "x"}).is_not_found


def test_delete_post_removes_attachment(post_service, make_user, make_post, fake_bucket):
    user = make_user()
    post = make_post(user.user_id, title="Temporary")

    result = post_service.delete_post("temporary", user.user_id)

    assert result.ok
    assert post_service.get_post("temporary").is_not_found
    assert f"attachments/{post['featured_image']}" not in fake_bucket.objects


def test_delete_post_succeeds_when_attachment_already_gone(post_service, storage_service, make_user, make_post):
    user = make_user()
    post = make_post(user.user_id, title="Gone")
    storage_service.delete_file(post['featured_image'])

    assert post_service.delete_post("gone", user.user_id).ok


def test_delete_post_by_other_user_is_forbidden(post_service, make_user, make_post):
    owner = make_user()
    post = make_post(owner.user_id, title="Keep")

    result = post_service.delete_post("keep", "intruder")

    assert result.error_kind is ErrorKind.FORBIDDEN
    assert post_service.get_post("keep").ok
    assert post['featured_image']


# --- 첨부 파일 소유자 ---

def test_create_post_with_someone_elses_attachment_is_forbidden(post_service, make_user, upload_attachment, fake_bucket):
    alice = make_user(name="Alice")
    bob = make_user(name="Bob")
    alice_file = upload_attachment(owner_id=alice.user_id)

    result = post_service.create_post(bob.user_id, "Borrowed", "<p>x</p>", alice_file)

    assert result.error_kind is ErrorKind.FORBIDDEN
    assert post_service.get_post("borrowed").is_not_found
    assert f"attachments/{alice_file}" in fake_bucket.objects


def test_create_post_with_unknown_attachment_is_rejected(post_service):
    result = post_service.create_post("u-1", "No File", "<p>x</p>", "missing.png")
    assert result.error_kind is ErrorKind.VALIDATION_FAILURE


def test_update_post_cannot_take_someone_elses_attachment(post_service, make_user, make_post, upload_attachment, fake_bucket):
    alice = make_user(name="Alice")
    bob = make_user(name="Bob")
    alice_file = upload_attachment(owner_id=alice.user_id)
    bob_post = make_post(bob.user_id, title="Bob Post")

    result = post_service.update_post("bob-post", bob.user_id, {'featured_image': alice_file})

    assert result.error_kind is ErrorKind.FORBIDDEN
    assert post_service.get_post("bob-post").value['featured_image'] == bob_post['featured_image']
    assert f"attachments/{bob_post['featured_image']}" in fake_bucket.objects

    # 게시글을 삭제해도 다른 사용자의 파일은 남아 있어야 함
    assert post_service.delete_post("bob-post", bob.user_id).ok
    assert f"attachments/{alice_file}" in fake_bucket.objects


# --- 좋아요 ---

def test_like_is_idempotent(post_service, make_user, make_post):
    user = make_user()
    make_post(user.user_id, title="Popular")

    first = post_service.like_post("popular", user.user_id)
    second = post_service.like_post("popular", user.user_id)

    assert first.ok and second.ok
    assert first.value['like_id'] == second.value['like_id'] == f"{user.user_id}_popular"
    assert post_service.get_likes("popular").value['total'] == 1


def test_concurrent_likes_keep_one_document(post_service, make_user, make_post):
    user = make_user()
    make_post(user.user_id, title="Race")

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(lambda _: post_service.like_post("race", user.user_id), range(16)))

    assert all(r.ok for r in results)
    assert post_service.get_likes("race").value['total'] == 1


def test_like_missing_post_is_not_found(post_service):
    assert post_service.like_post("ghost", "u-1").is_not_found


def test_unlike(post_service, make_user, make_post):
    user = make_user()
    make_post(user.user_id, title="Meh")
    post_service.like_post("meh", user.user_id)

    assert post_service.unlike_post("meh", user.user_id).value is True
    assert post_service.unlike_post("meh", user.user_id).value is False
    assert post_service.get_likes("meh").value['total'] == 0


def test_get_likes_only_for_that_post(post_service, make_user, make_post):
    user = make_user()
    make_post(user.user_id, title="A")
    make_post(user.user_id, title="B")
    post_service.like_post("a", user.user_id)
    post_service.like_post("b", user.user_id)
    post_service.like_post("b", "someone-else")

    assert post_service.get_likes("a").value['total'] == 1
    assert post_service.get_likes("b").value['total'] == 2


# --- 상세 ---

def test_get_post_detail(post_service, comment_service, make_user, make_post):
    author = make_user(name="Author")
    reader = make_user(name="Reader")
    make_post(author.user_id, title="Detail")
    post_service.like_post("detail", reader.user_id)
    comment_service.add_comment("detail", reader.user_id, "Nice post", "Reader")

    result = post_service.get_post_detail("detail", viewer_id=reader.user_id)

    assert result.ok
    detail = result.value
    assert detail['post']['username'] == "Author"
    assert detail['like_count'] == 1
    assert detail['liked_by_viewer'] is True
    assert [c['content'] for c in detail['comments']] == ["Nice post"]

    anonymous_view = post_service.get_post_detail("detail")
    assert anonymous_view.value['liked_by_viewer'] is False


def test_get_post_detail_missing(post_service):
    assert post_service.get_post_detail("ghost").is_not_found
