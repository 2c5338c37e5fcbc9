"""
Tests for SessionHolder and its SQLite-backed SessionStore
"""

import asyncio

import pytest

from database import SessionStore
from fakes import FakeGateway
from services.errors import AuthenticationError
from services.session import (
    ACCESS_DENIED_MSG,
    LOGIN_FAILED_MSG,
    MISSING_CREDENTIALS_MSG,
    SessionHolder,
    allocation_access_message,
)


def make_holder(store, login_result=None):
    gateway = FakeGateway()
    gateway.login_result = login_result
    return SessionHolder(store, gateway), gateway


class TestSessionStore:
    def test_empty_store_loads_none(self, session_store):
        assert session_store.load() is None

    def test_save_then_load(self, session_store):
        session_store.save("alice", "tok-1")
        assert session_store.load() == {"username": "alice", "token": "tok-1"}

    def test_save_replaces_previous_record(self, session_store):
        session_store.save("alice", "tok-1")
        session_store.save("bob", "tok-2")
        assert session_store.load() == {"username": "bob", "token": "tok-2"}

    def test_clear_removes_record(self, session_store):
        session_store.save("alice", "tok-1")
        session_store.clear()
        assert session_store.load() is None

    def test_malformed_json_loads_none(self, session_store, write_raw_session):
        write_raw_session("{not json")
        assert session_store.load() is None

    def test_non_record_json_loads_none(self, session_store, write_raw_session):
        write_raw_session("[1, 2, 3]")
        assert session_store.load() is None

    def test_blank_client_key_rejected(self, session_db):
        with pytest.raises(ValueError):
            SessionStore(session_db, client_key="")
        with pytest.raises(ValueError):
            SessionStore(session_db, client_key="   ")

    def test_records_are_scoped_per_client(self, session_db):
        first = SessionStore(session_db, client_key="browser-a")
        second = SessionStore(session_db, client_key="browser-b")

        first.save("alice", "tok-1")

        assert second.load() is None
        second.save("bob", "tok-2")
        second.clear()
        assert first.load() == {"username": "alice", "token": "tok-1"}


class TestRestore:
    def test_restore_adopts_well_formed_session(self, session_store):
        session_store.save("alice", "tok-1")
        holder, _ = make_holder(session_store)

        assert holder.restore() is True
        assert holder.is_authenticated
        assert holder.username == "alice"
        assert holder.token == "tok-1"

    def test_restore_without_record_is_unauthenticated(self, session_store):
        holder, _ = make_holder(session_store)
        assert holder.restore() is False
        assert not holder.is_authenticated

    def test_restore_malformed_json_is_unauthenticated(self, session_store, write_raw_session):
        write_raw_session("{oops")
        holder, _ = make_holder(session_store)

        assert holder.restore() is False
        assert holder.current is None

    def test_restore_partial_record_is_unauthenticated(self, session_store, write_raw_session):
        write_raw_session('{"username": "alice"}')
        holder, _ = make_holder(session_store)

        assert holder.restore() is False
        assert holder.token is None

    def test_restore_empty_token_is_unauthenticated(self, session_store):
        session_store.save("alice", "")
        holder, _ = make_holder(session_store)
        assert holder.restore() is False


class TestLogin:
    def test_successful_login_persists(self, session_store):
        holder, gateway = make_holder(session_store, {"username": "alice", "token": "tok-1"})

        ok, _ = asyncio.run(holder.login("alice", "secret"))

        assert ok is True
        assert holder.username == "alice"
        assert session_store.load() == {"username": "alice", "token": "tok-1"}
        assert gateway.calls == [("login", "alice")]

    def test_empty_credentials_make_no_call(self, session_store):
        holder, gateway = make_holder(session_store)

        assert asyncio.run(holder.login("", "secret")) == (False, MISSING_CREDENTIALS_MSG)
        assert asyncio.run(holder.login("alice", "")) == (False, MISSING_CREDENTIALS_MSG)
        assert gateway.calls == []

    def test_empty_credentials_leave_existing_session(self, session_store):
        session_store.save("alice", "tok-1")
        holder, _ = make_holder(session_store)
        holder.restore()

        asyncio.run(holder.login("", ""))

        assert holder.username == "alice"
        assert session_store.load() is not None

    def test_failed_login_clears_prior_session(self, session_store):
        session_store.save("alice", "tok-1")
        holder, _ = make_holder(
            session_store, AuthenticationError("rejected", reason="Invalid credentials", status_code=401)
        )
        holder.restore()

        ok, message = asyncio.run(holder.login("bob", "wrong"))

        assert ok is False
        assert message == "Invalid credentials"
        assert not holder.is_authenticated
        assert session_store.load() is None

    def test_failed_login_without_reason_uses_generic_message(self, session_store):
        holder, _ = make_holder(session_store, AuthenticationError("network down"))

        ok, message = asyncio.run(holder.login("bob", "pw"))

        assert ok is False
        assert message == LOGIN_FAILED_MSG

    def test_response_without_token_is_a_failure(self, session_store):
        session_store.save("alice", "tok-1")
        holder, _ = make_holder(session_store, {"username": "bob", "token": ""})
        holder.restore()

        ok, message = asyncio.run(holder.login("bob", "pw"))

        assert (ok, message) == (False, LOGIN_FAILED_MSG)
        assert holder.current is None
        assert session_store.load() is None


class TestLogout:
    def test_logout_clears_everything(self, session_store):
        session_store.save("alice", "tok-1")
        holder, _ = make_holder(session_store)
        holder.restore()

        holder.logout()

        assert not holder.is_authenticated
        assert session_store.load() is None

    def test_logout_when_not_logged_in(self, session_store):
        holder, _ = make_holder(session_store)
        holder.logout()
        assert holder.current is None

    def test_invalidate_clears_session(self, session_store):
        session_store.save("alice", "tok-1")
        holder, _ = make_holder(session_store)
        holder.restore()

        holder.invalidate("credential rejected")

        assert holder.token is None
        assert session_store.load() is None


class TestClientIsolation:
    def test_operator_login_is_not_shared_with_other_browsers(self, session_db):
        operator, _ = make_holder(
            SessionStore(session_db, client_key="operator-browser"),
            {"username": "alice", "token": "tok-1"},
        )
        ok, _ = asyncio.run(operator.login("alice", "secret"))
        assert ok is True

        visitor, _ = make_holder(SessionStore(session_db, client_key="visitor-browser"))

        assert visitor.restore() is False
        assert not visitor.can_allocate
        assert allocation_access_message(visitor) == ACCESS_DENIED_MSG

    def test_visitor_logout_leaves_operator_session(self, session_db):
        operator_store = SessionStore(session_db, client_key="operator-browser")
        operator_store.save("alice", "tok-1")

        visitor, _ = make_holder(SessionStore(session_db, client_key="visitor-browser"))
        visitor.logout()

        operator, _ = make_holder(operator_store)
        assert operator.restore() is True
        assert operator.username == "alice"


class TestAllocationAccess:
    def test_no_session_is_denied(self):
        assert allocation_access_message(None) == ACCESS_DENIED_MSG

    def test_unauthenticated_holder_is_denied(self, session_store):
        holder, _ = make_holder(session_store)
        holder.restore()

        assert holder.can_allocate is False
        assert allocation_access_message(holder) == ACCESS_DENIED_MSG

    def test_authenticated_holder_is_allowed(self, session_store):
        holder, _ = make_holder(session_store, {"username": "alice", "token": "tok-1"})
        asyncio.run(holder.login("alice", "secret"))

        assert holder.can_allocate is True
        assert allocation_access_message(holder) is None

    def test_invalidated_holder_is_denied_again(self, session_store):
        session_store.save("alice", "tok-1")
        holder, _ = make_holder(session_store)
        holder.restore()

        holder.invalidate("credential rejected")

        assert allocation_access_message(holder) == ACCESS_DENIED_MSG
