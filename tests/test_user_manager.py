"""Tests for the credential store."""

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from core.exceptions import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    UserNotFoundError,
    ValidationError,
)
from core.permissions import Role
from models.user import UserModel
from utils.user_manager import UserManager

from conftest import TEST_BCRYPT_ROUNDS

usernames = st.text(
    alphabet=st.characters(whitelist_categories=("Lu", "Ll", "Nd")),
    min_size=1,
    max_size=20,
)
passwords = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",), blacklist_characters="\x00"),
    min_size=1,
    max_size=40,
)


@settings(
    max_examples=15,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
@given(names=st.lists(usernames, min_size=1, max_size=4, unique=True))
def test_register_succeeds_once_per_username(fresh_db, names) -> None:
    manager = UserManager(fresh_db(), bcrypt_rounds=TEST_BCRYPT_ROUNDS)

    ids = [manager.register(name, "pw", f"{i}@example.com") for i, name in enumerate(names)]
    assert len(set(ids)) == len(names)

    for name in names:
        with pytest.raises(DuplicateUsernameError):
            manager.register(name, "other", "x@example.com")


@settings(
    max_examples=15,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
@given(password=passwords, attempt=passwords)
def test_authenticate_iff_password_matches(fresh_db, password, attempt) -> None:
    manager = UserManager(fresh_db(), bcrypt_rounds=TEST_BCRYPT_ROUNDS)
    manager.register("bob", password, "bob@example.com")

    # bcrypt only sees the first 72 bytes
    matches = password.encode("utf-8")[:72] == attempt.encode("utf-8")[:72]
    if matches:
        assert manager.authenticate("bob", attempt).username == "bob"
    else:
        with pytest.raises(InvalidCredentialsError):
            manager.authenticate("bob", attempt)


def test_unknown_user_and_wrong_password_are_indistinguishable(user_manager, alice_id):
    with pytest.raises(InvalidCredentialsError) as unknown:
        user_manager.authenticate("mallory", "correct horse")
    with pytest.raises(InvalidCredentialsError) as wrong:
        user_manager.authenticate("alice", "wrong")

    assert type(unknown.value) is type(wrong.value)
    assert str(unknown.value) == str(wrong.value) == "Invalid credentials"


def test_password_is_stored_hashed(user_manager, alice_id, db):
    model = db.query(UserModel).filter(UserModel.user_id == alice_id).one()
    assert model.password_hash != "correct horse"
    assert model.password_hash.startswith("$2")
    assert user_manager.verify_password("correct horse", model.password_hash)


def test_public_user_has_no_password_hash(user_manager, alice_id):
    user = user_manager.get_user_by_id(alice_id)
    assert "password_hash" not in user.model_dump()
    assert user.roles == [Role.PLAYER]


def test_verify_password_rejects_malformed_hash(user_manager):
    assert user_manager.verify_password("anything", "not-a-bcrypt-hash") is False


def test_long_passwords_match_on_first_72_bytes(user_manager):
    long_password = "x" * 100
    user_manager.register("carol", long_password, "carol@example.com")
    assert user_manager.authenticate("carol", "x" * 72).username == "carol"


@pytest.mark.parametrize(
    "username,password,email",
    [
        ("", "pw", "a@example.com"),
        ("   ", "pw", "a@example.com"),
        ("dave", "", "a@example.com"),
        ("dave", "pw", ""),
        ("dave", "pw", "not-an-email"),
    ],
)
def test_register_validates_required_fields(user_manager, username, password, email):
    with pytest.raises(ValidationError):
        user_manager.register(username, password, email)


def test_register_rejects_unknown_role(user_manager):
    with pytest.raises(ValidationError):
        user_manager.register("erin", "pw", "erin@example.com", roles=["superuser"])


def test_register_with_explicit_roles(user_manager):
    user_id = user_manager.register(
        "root", "pw", "root@example.com", roles=[Role.ADMIN]
    )
    assert user_manager.get_user_by_id(user_id).roles == [Role.ADMIN]


def test_register_with_empty_role_set(user_manager):
    user_id = user_manager.register("ghost", "pw", "ghost@example.com", roles=[])
    assert user_manager.get_user_by_id(user_id).roles == []


def test_unique_constraint_decides_concurrent_registration(session_factory, monkeypatch):
    first = UserManager(session_factory(), bcrypt_rounds=TEST_BCRYPT_ROUNDS)
    second = UserManager(session_factory(), bcrypt_rounds=TEST_BCRYPT_ROUNDS)
    first.register("frank", "pw", "f1@example.com")

    real_check = second._username_taken
    calls = []

    def stale_precheck(username, exclude_user_id=None):
        calls.append(username)
        # The pre-check ran before the other request committed
        if len(calls) == 1:
            return False
        return real_check(username, exclude_user_id)

    monkeypatch.setattr(second, "_username_taken", stale_precheck)
    with pytest.raises(DuplicateUsernameError):
        second.register("frank", "pw", "f2@example.com")

    assert second.db.query(UserModel).filter(UserModel.username == "frank").count() == 1


def test_find_by_email(user_manager, alice_id):
    assert user_manager.find_by_email("alice@example.com").user_id == alice_id
    assert user_manager.find_by_email("nobody@example.com") is None


def test_list_users(user_manager, alice_id):
    user_manager.register("bob", "pw", "bob@example.com")
    assert [u.username for u in user_manager.list_users()] == ["alice", "bob"]


def test_update_user_changes_fields_and_rehashes(user_manager, alice_id):
    updated = user_manager.update_user(
        alice_id, username="alice2", email="new@example.com", password="new pw"
    )
    assert updated.username == "alice2"
    assert updated.email == "new@example.com"
    assert updated.updated_at is not None

    assert user_manager.authenticate("alice2", "new pw").user_id == alice_id
    with pytest.raises(InvalidCredentialsError):
        user_manager.authenticate("alice2", "correct horse")


def test_update_user_keeps_own_username(user_manager, alice_id):
    updated = user_manager.update_user(alice_id, username="alice")
    assert updated.username == "alice"


def test_update_user_rejects_taken_username(user_manager, alice_id):
    user_manager.register("bob", "pw", "bob@example.com")
    with pytest.raises(DuplicateUsernameError):
        user_manager.update_user(alice_id, username="bob")


def test_update_user_roles(user_manager, alice_id):
    updated = user_manager.update_user(alice_id, roles=[Role.MODERATOR, Role.PLAYER])
    assert set(updated.roles) == {Role.MODERATOR, Role.PLAYER}


def test_update_missing_user(user_manager):
    with pytest.raises(UserNotFoundError):
        user_manager.update_user("missing", email="x@example.com")


def test_delete_user(user_manager, alice_id):
    user_manager.delete_user(alice_id)
    assert user_manager.get_user_by_id(alice_id) is None
    with pytest.raises(UserNotFoundError):
        user_manager.delete_user(alice_id)
