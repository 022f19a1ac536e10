import pytest
from werkzeug.security import check_password_hash, generate_password_hash

import services.user_service as user_service
from utils.errors import ServiceError
from utils.session import decode_session, encode_session


class _Basket:
    """In-memory Pantry basket patched over the storage functions user_service imports."""

    def __init__(self, users=None):
        self.users = list(users or [])
        self.saves = 0

    def get_users(self):
        return [dict(u) for u in self.users]

    def save_users(self, users):
        self.saves += 1
        self.users = [dict(u) for u in users]
        return True

    def find_user_by_email(self, email):
        return next((dict(u) for u in self.users if u["email"].lower() == email.lower()), None)


@pytest.fixture
def basket(monkeypatch):
    b = _Basket([
        {
            "id": "1",
            "email": "ada@example.com",
            "name": "Ada",
            "password_hash": generate_password_hash("hunter22"),
        }
    ])
    for name in ("get_users", "save_users", "find_user_by_email"):
        monkeypatch.setattr(user_service, name, getattr(b, name))
    return b


def test_session_roundtrip():
    token = encode_session({"id": "1", "email": "ada@example.com", "name": "Ada", "password_hash": "x"})

    user = decode_session(token)

    assert user == {"id": "1", "email": "ada@example.com", "name": "Ada"}, "only public fields are signed"


def test_session_rejects_other_secret_and_garbage():
    token = encode_session({"id": "1"}, secret="one")

    assert decode_session(token, secret="two") is None
    assert decode_session("not.a.token") is None
    assert decode_session("") is None


def test_session_rejects_expired_token():
    token = encode_session({"id": "1"})

    assert decode_session(token, max_age=-1) is None


def test_authenticate_checks_hash(basket):
    assert user_service.authenticate("ADA@example.com", "hunter22")["id"] == "1"
    assert user_service.authenticate("ada@example.com", "wrong") is None
    assert user_service.authenticate("nobody@example.com", "hunter22") is None


def test_authenticate_requires_both_fields(basket):
    with pytest.raises(ServiceError) as exc:
        user_service.authenticate("ada@example.com", "")
    assert exc.value.status == 400


def test_change_password_updates_hash(basket):
    user_service.change_password("1", "hunter22", "correct-horse")

    stored = basket.users[0]
    assert check_password_hash(stored["password_hash"], "correct-horse")
    assert stored["updatedAt"], "expected updatedAt to be stamped"
    assert basket.saves == 1


@pytest.mark.parametrize(
    "current,new,fragment",
    [
        ("hunter22", "short", "at least 6"),
        ("hunter22", "hunter22", "different"),
        ("wrong-one", "correct-horse", "incorrect"),
        ("", "correct-horse", "required"),
    ],
)
def test_change_password_rejections(basket, current, new, fragment):
    with pytest.raises(ServiceError) as exc:
        user_service.change_password("1", current, new)

    assert fragment in exc.value.message
    assert basket.saves == 0, "rejected changes must not touch the basket"


def test_seed_users_hashes_and_skips_existing(basket):
    out = user_service.seed_users([
        {"email": "ada@example.com", "password": "ignored"},
        {"email": "grace@example.com", "password": "cobol-rules", "name": "Grace"},
        {"email": "", "password": "x"},
    ])

    emails = [u["email"] for u in out]
    assert emails == ["ada@example.com", "grace@example.com"]
    grace = basket.find_user_by_email("grace@example.com")
    assert grace["password_hash"] != "cobol-rules"
    assert check_password_hash(grace["password_hash"], "cobol-rules")
    assert all("password_hash" not in u for u in out), "seed result must not leak hashes"


def test_seed_users_is_idempotent(basket):
    user_service.seed_users([{"email": "grace@example.com", "password": "cobol-rules"}])
    user_service.seed_users([{"email": "grace@example.com", "password": "cobol-rules"}])

    assert basket.saves == 1
    assert len(basket.users) == 2
