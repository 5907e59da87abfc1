"""Tests for the Session facade."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from selenese.config import SessionSettings
from selenese.errors import CommandAssertionError, TransportError
from selenese.outcome import OutcomeStatus
from selenese.session import Session

if TYPE_CHECKING:
    from conftest import ScriptedTransport


class TestLifecycle:
    """Tests for starting and stopping the remote session."""

    def test_start_binds_session_id(self, session: Session, transport: ScriptedTransport) -> None:
        """Test that the new session id is sent with later commands."""
        transport.reply("getNewBrowserSession", "abc123")

        assert session.start() == "abc123"
        session.dispatch("open", "/")

        assert transport.calls("getNewBrowserSession") == [("*chrome", "about:blank")]
        assert session.session_id == "abc123"
        assert transport.session_ids == [None, "abc123"]

    def test_start_overrides(self, session: Session, transport: ScriptedTransport) -> None:
        """Test explicit browser and start URL."""
        session.start("*firefox", "http://app.test/")
        assert transport.calls("getNewBrowserSession") == [("*firefox", "http://app.test/")]

    def test_start_failure(self, session: Session, transport: ScriptedTransport) -> None:
        """Test that a failed launch raises and leaves no session bound."""
        transport.fail("getNewBrowserSession", "Browser not available")
        with pytest.raises(TransportError, match="Browser not available"):
            session.start()
        assert session.session_id is None

    def test_stop(self, session: Session, transport: ScriptedTransport) -> None:
        """Test that stop ends the remote session and closes the transport."""
        session.start()
        session.stop()
        assert transport.names()[-1] == "testComplete"
        assert session.session_id is None
        assert transport.closed

    def test_stop_without_start(self, session: Session, transport: ScriptedTransport) -> None:
        """Test that stopping an unstarted session sends nothing."""
        session.stop()
        assert transport.sent == []
        assert transport.closed

    def test_context_manager(
        self, settings: SessionSettings, transport: ScriptedTransport
    ) -> None:
        """Test with-statement lifecycle."""
        with Session(settings, transport=transport) as session:
            assert session.session_id == "session-1"
        assert transport.names() == ["getNewBrowserSession", "testComplete"]


class TestCommandMethods:
    """Tests for catalog commands exposed as methods."""

    def test_camel_and_snake_case(self, session: Session, transport: ScriptedTransport) -> None:
        """Test both method spellings."""
        transport.reply("getTitle", "Home", "Home")
        assert session.getTitle() == "Home"
        assert session.get_title() == "Home"

    def test_action_methods(self, session: Session, transport: ScriptedTransport) -> None:
        """Test actions called as methods."""
        session.open("/login")
        session.type("id=user", "alice")
        session.clickAndWait("css=button")
        assert transport.names() == ["open", "type", "click", "getEval"]

    def test_verify_returns_outcome(self, session: Session, transport: ScriptedTransport) -> None:
        """Test that verify* methods return the outcome."""
        transport.reply("getTitle", "Login")
        outcome = session.verifyTitle("Dashboard")
        assert outcome.status == OutcomeStatus.VERIFICATION_FAILED

    def test_store_method(self, session: Session, transport: ScriptedTransport) -> None:
        """Test store* through a method and substitution afterwards."""
        transport.reply("getLocation", "http://app.test/cart")
        session.storeLocation("cart_url")
        session.open("${cart_url}")
        assert session.variables.get("cart_url") == "http://app.test/cart"
        assert transport.calls("open") == [("http://app.test/cart",)]

    def test_unknown_attribute(self, session: Session) -> None:
        """Test that unknown names still raise AttributeError."""
        with pytest.raises(AttributeError):
            session.frobnicate()

    def test_method_docstring(self, session: Session) -> None:
        """Test generated method metadata."""
        method = session.assertText
        assert method.__name__ == "assertText"
        assert "locator, pattern" in method.__doc__

    def test_initial_variables(self, settings: SessionSettings, transport: ScriptedTransport) -> None:
        """Test seeding the variable store."""
        session = Session(settings, transport=transport, variables={"user": "bob"})
        session.type("id=user", "${user}")
        assert transport.calls("type") == [("id=user", "bob")]


class TestVerifications:
    """Tests for collected verification failures."""

    def test_check_verifications_raises_summary(
        self, session: Session, transport: ScriptedTransport
    ) -> None:
        """Test the end-of-test verification hook."""
        transport.reply("getTitle", "Login")
        transport.reply("isTextPresent", "false")
        session.verifyTitle("Dashboard")
        session.verifyTextPresent("Welcome")

        assert len(session.verification_failures) == 2
        with pytest.raises(CommandAssertionError, match="2 verification\\(s\\) failed") as exc_info:
            session.check_verifications()

        assert "verifyTitle" in str(exc_info.value)
        assert "verifyTextPresent" in str(exc_info.value)
        assert session.verification_failures == []

    def test_check_verifications_without_failures(self, session: Session) -> None:
        """Test that the hook is silent when everything passed."""
        session.check_verifications()
