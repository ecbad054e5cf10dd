"""
Tests for AccountManager against a temporary SQLite database.

Tests cover:
- Registration checks and their order
- Duplicate usernames, including the unique-constraint fallback
- Authentication success and every failure path
"""

import pytest

from socialmedia.account_manager import AccountManager
from socialmedia.exceptions import (
    AuthenticationFailedError,
    DuplicateUsernameError,
    InvalidPasswordError,
    InvalidUsernameError,
)
from socialmedia.models import Account
from socialmedia.schemas import AccountRegistration, LoginCredentials
from socialmedia.storage import AccountRepository


@pytest.fixture
def repo(db):
    return AccountRepository(db)


@pytest.fixture
def manager(repo):
    return AccountManager(repo)


def account_count(db) -> int:
    return db.query(Account).count()


class TestRegisterAccount:
    """Test registration rules."""

    def test_register_assigns_id(self, manager):
        account = manager.register_account(AccountRegistration(username="alice", password="pass1"))

        assert account.account_id == 1
        assert account.username == "alice"
        assert account.password == "pass1"

    @pytest.mark.parametrize("username", [None, "", " ", "\t\n  "])
    def test_blank_username_rejected(self, manager, db, username):
        with pytest.raises(InvalidUsernameError):
            manager.register_account(AccountRegistration(username=username, password="pass1"))
        assert account_count(db) == 0

    def test_blank_username_checked_before_password(self, manager):
        with pytest.raises(InvalidUsernameError):
            manager.register_account(AccountRegistration(username="  ", password="x"))

    @pytest.mark.parametrize("password", [None, "", "a", "abc"])
    def test_short_password_rejected(self, manager, db, password):
        with pytest.raises(InvalidPasswordError):
            manager.register_account(AccountRegistration(username="alice", password=password))
        assert account_count(db) == 0

    def test_four_character_password_accepted(self, manager):
        account = manager.register_account(AccountRegistration(username="alice", password="abcd"))
        assert account.account_id is not None

    def test_duplicate_username_rejected(self, manager, db):
        manager.register_account(AccountRegistration(username="alice", password="pass1"))

        with pytest.raises(DuplicateUsernameError):
            manager.register_account(AccountRegistration(username="alice", password="other"))
        assert account_count(db) == 1

    def test_password_checked_before_duplicate(self, manager):
        manager.register_account(AccountRegistration(username="alice", password="pass1"))

        with pytest.raises(InvalidPasswordError):
            manager.register_account(AccountRegistration(username="alice", password="abc"))

    def test_unique_constraint_reported_as_duplicate(self, manager, repo, db, monkeypatch):
        """A registration that slips past the lookup is stopped by the unique index."""
        manager.register_account(AccountRegistration(username="alice", password="pass1"))
        monkeypatch.setattr(repo, "find_by_username", lambda username: None)

        with pytest.raises(DuplicateUsernameError):
            manager.register_account(AccountRegistration(username="alice", password="other"))
        assert account_count(db) == 1

    def test_supplied_account_id_ignored(self, manager):
        candidate = AccountRegistration.model_validate(
            {"accountId": 42, "username": "alice", "password": "pass1"}
        )
        account = manager.register_account(candidate)
        assert account.account_id == 1


class TestAuthenticate:
    """Test credential checks."""

    @pytest.fixture(autouse=True)
    def alice(self, manager):
        return manager.register_account(AccountRegistration(username="alice", password="pass1"))

    def test_matching_credentials(self, manager, alice):
        account = manager.authenticate(LoginCredentials(username="alice", password="pass1"))
        assert account.account_id == alice.account_id
        assert account.username == "alice"

    @pytest.mark.parametrize(
        "username,password",
        [
            ("alice", "wrong"),
            ("bob", "pass1"),
            ("Alice", "pass1"),
            ("alice", "pass1 "),
        ],
    )
    def test_mismatch_fails(self, manager, username, password):
        with pytest.raises(AuthenticationFailedError):
            manager.authenticate(LoginCredentials(username=username, password=password))

    @pytest.mark.parametrize(
        "username,password",
        [(None, "pass1"), ("alice", None), ("", "pass1"), ("alice", "   "), (None, None)],
    )
    def test_blank_credentials_fail(self, manager, username, password):
        with pytest.raises(AuthenticationFailedError):
            manager.authenticate(LoginCredentials(username=username, password=password))

    def test_blank_and_wrong_credentials_share_message(self, manager):
        with pytest.raises(AuthenticationFailedError) as blank:
            manager.authenticate(LoginCredentials(username="", password=""))
        with pytest.raises(AuthenticationFailedError) as wrong:
            manager.authenticate(LoginCredentials(username="alice", password="nope"))
        assert blank.value.message == wrong.value.message
