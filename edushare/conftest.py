# edushare/conftest.py
"""
테스트 공용 fixture

Firestore / Storage / Firebase Authentication을 메모리 기반 가짜 객체로 대체해
실제 Firebase 프로젝트 없이 서비스와 API를 테스트합니다.
"""

import copy
import io
import threading
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from flask_jwt_extended import create_access_token
from google.api_core import exceptions as gcp_exceptions

from edushare import create_app
from edushare.models.user import AccountUser
from edushare.services.identity_service import (
    AccountExistsError, AccountNotFoundError, InvalidAccountDataError, InvalidCredentialsError
)


# =====================================================================================
# Firestore
# =====================================================================================

def _order_key(value):
    # Firestore 타입 순서: 숫자 < 타임스탬프 < 문자열
    if isinstance(value, bool) or isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, datetime):
        return (2, value.timestamp())
    return (3, str(value))


class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocumentReference:
    def __init__(self, collection, doc_id):
        self._collection = collection
        self.id = doc_id

    @property
    def path(self):
        return f"{self._collection.name}/{self.id}"

    def get(self, transaction=None):
        return FakeSnapshot(self, self._collection.docs.get(self.id))

    def set(self, data, merge=False):
        with self._collection.lock:
            if merge and self.id in self._collection.docs:
                self._collection.docs[self.id].update(copy.deepcopy(data))
            else:
                self._collection.docs[self.id] = copy.deepcopy(data)

    def create(self, data):
        with self._collection.lock:
            if self.id in self._collection.docs:
                raise gcp_exceptions.AlreadyExists(f"Document already exists: {self.path}")
            self._collection.docs[self.id] = copy.deepcopy(data)

    def update(self, data):
        with self._collection.lock:
            if self.id not in self._collection.docs:
                raise gcp_exceptions.NotFound(f"No document to update: {self.path}")
            self._collection.docs[self.id].update(copy.deepcopy(data))

    def delete(self):
        with self._collection.lock:
            self._collection.docs.pop(self.id, None)


class FakeQuery:
    def __init__(self, collection, filters=(), orders=(), limit_count=None):
        self._collection = collection
        self._filters = tuple(filters)
        self._orders = tuple(orders)
        self._limit = limit_count

    def where(self, field_path, op, value):
        return FakeQuery(self._collection, self._filters + ((field_path, op, value),), self._orders, self._limit)

    def order_by(self, field_path, direction="ASCENDING"):
        return FakeQuery(self._collection, self._filters, self._orders + ((field_path, direction),), self._limit)

    def limit(self, count):
        return FakeQuery(self._collection, self._filters, self._orders, count)

    def _matches(self, data):
        for field_path, op, value in self._filters:
            if op == '==' and data.get(field_path) != value:
                return False
            if op == 'in' and data.get(field_path) not in value:
                return False
        return True

    def stream(self):
        with self._collection.lock:
            items = list(self._collection.docs.items())
        snapshots = [
            FakeSnapshot(FakeDocumentReference(self._collection, doc_id), copy.deepcopy(data))
            for doc_id, data in items if self._matches(data)
        ]
        for field_path, direction in reversed(self._orders):
            # order_by 필드가 없는 문서는 결과에서 제외됩니다.
            snapshots = [s for s in snapshots if s._data.get(field_path) is not None]
            snapshots.sort(key=lambda s: _order_key(s._data[field_path]), reverse=(direction == "DESCENDING"))
        if self._limit is not None:
            snapshots = snapshots[:self._limit]
        return iter(snapshots)

    def get(self):
        return list(self.stream())

    def count(self, alias=None):
        return FakeAggregationQuery(self, alias)


class FakeAggregationQuery:
    def __init__(self, query, alias):
        self._query = query
        self._alias = alias

    def get(self):
        # 실제 SDK와 같은 형태: [[AggregationResult(alias, value, read_time)]]
        value = len(self._query.get())
        return [[SimpleNamespace(alias=self._alias, value=value, read_time=datetime.now(timezone.utc))]]


class FakeCollection(FakeQuery):
    def __init__(self, name):
        self.name = name
        self.docs = {}
        self.lock = threading.Lock()
        super().__init__(self)

    def document(self, doc_id=None):
        return FakeDocumentReference(self, doc_id or uuid.uuid4().hex)


class FakeFirestore:
    def __init__(self):
        self._collections = {}

    def collection(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]


# =====================================================================================
# Storage
# =====================================================================================

class FakeBlob:
    def __init__(self, bucket, name):
        self.bucket = bucket
        self.name = name
        self.metadata = None
        self.content_type = None
        self.size = None
        self.time_created = None
        self.data = None

    def upload_from_file(self, file_obj, content_type=None):
        self.data = file_obj.read()
        self.content_type = content_type
        self.size = len(self.data)
        self.time_created = datetime.now(timezone.utc)
        self.bucket.objects[self.name] = self

    def exists(self):
        return self.name in self.bucket.objects

    def delete(self):
        if self.name not in self.bucket.objects:
            raise gcp_exceptions.NotFound(f"No such object: {self.bucket.name}/{self.name}")
        del self.bucket.objects[self.name]


class FakeBucket:
    def __init__(self, name):
        self.name = name
        self.objects = {}

    def blob(self, name):
        return FakeBlob(self, name)

    def get_blob(self, name):
        return self.objects.get(name)


# =====================================================================================
# Firebase Authentication
# =====================================================================================

class FakeIdentityService:
    def __init__(self):
        self.users = {}
        self.revoked_user_ids = []

    def create_user(self, email, password, name):
        if any(user['email'] == email for user in self.users.values()):
            raise AccountExistsError("이미 가입된 이메일입니다.")
        if not password or len(password) < 6:
            raise InvalidAccountDataError("password must be a string at least 6 characters long.")
        user_id = uuid.uuid4().hex[:28]
        self.users[user_id] = {'email': email, 'password': password, 'name': name}
        return AccountUser(user_id=user_id, email=email, name=name)

    def sign_in_with_password(self, email, password):
        for user_id, user in self.users.items():
            if user['email'] == email and user['password'] == password:
                return AccountUser(user_id=user_id, email=email, name=user['name'])
        raise InvalidCredentialsError("이메일 또는 비밀번호가 올바르지 않습니다.")

    def get_user(self, user_id):
        user = self.users.get(user_id)
        if user is None:
            raise AccountNotFoundError(f"사용자를 찾을 수 없습니다: {user_id}")
        return AccountUser(user_id=user_id, email=user['email'], name=user['name'])

    def revoke_sessions(self, user_id):
        if user_id not in self.users:
            raise AccountNotFoundError(f"사용자를 찾을 수 없습니다: {user_id}")
        self.revoked_user_ids.append(user_id)


# =====================================================================================
# Fixtures
# =====================================================================================

@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def fake_bucket():
    return FakeBucket('edushare-test.appspot.com')


@pytest.fixture
def fake_identity():
    return FakeIdentityService()


@pytest.fixture
def app(fake_db, fake_bucket, fake_identity):
    app = create_app('testing', firestore_client=fake_db, storage_bucket=fake_bucket, identity_service=fake_identity)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_service(app):
    return app.services['auth']


@pytest.fixture
def post_service(app):
    return app.services['posts']


@pytest.fixture
def comment_service(app):
    return app.services['comments']


@pytest.fixture
def storage_service(app):
    return app.services['storage']


@pytest.fixture
def make_user(auth_service):
    """가입(프로필 포함)까지 마친 AccountUser를 만드는 팩토리"""
    def _make_user(name="Alice", email=None, password="password123"):
        email = email or f"{uuid.uuid4().hex[:8]}@example.com"
        result = auth_service.create_account(email, password, name)
        assert result.ok, result.message
        return result.value
    return _make_user


@pytest.fixture
def upload_attachment(storage_service):
    """owner_id 사용자로 첨부 파일을 업로드하고 file_id를 반환하는 팩토리"""
    def _upload(owner_id=None, filename="cover.png", content_type="image/png", data=b"\x89PNG fake"):
        result = storage_service.upload_file(io.BytesIO(data), filename, content_type, owner_id=owner_id)
        assert result.ok, result.message
        return result.value.file_id
    return _upload


@pytest.fixture
def make_post(post_service, upload_attachment):
    """작성자가 올린 첨부 파일이 있는 게시글을 만드는 팩토리"""
    def _make_post(user_id, title="My First Post", status="active", slug=None):
        result = post_service.create_post(
            user_id=user_id, title=title, content="<p>hello</p>",
            featured_image=upload_attachment(owner_id=user_id), status=status, slug=slug
        )
        assert result.ok, result.message
        return result.value
    return _make_post


@pytest.fixture
def auth_headers(app):
    """user_id로 access 토큰을 발급해 Authorization 헤더를 만듭니다."""
    def _auth_headers(user_id):
        with app.app_context():
            token = create_access_token(identity=user_id)
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers
