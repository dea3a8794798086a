"""
Tests for the browser lifecycle bridge.
"""

import re

import pytest

from budget_vault.models.security import LOCK_TRIGGERS, LifecycleSignal
from budget_vault.security.lifecycle import (
    EMITTED_SIGNALS,
    LIFECYCLE_SCRIPT,
    SIGNAL_PARAM,
    parse_signal,
)


class TestLifecycleScript:
    """The injected script must keep firing for the life of the page."""

    def test_listeners_are_not_one_shot(self):
        """A visible event must not use up the hidden listener."""
        assert "once" not in LIFECYCLE_SCRIPT

    def test_reload_is_guarded(self):
        assert "if (relocking) return;" in LIFECYCLE_SCRIPT

    def test_blur_emits_focus_lost(self):
        assert 'addEventListener("blur"' in LIFECYCLE_SCRIPT
        assert f'relock("{LifecycleSignal.FOCUS_LOST.value}")' in LIFECYCLE_SCRIPT

    def test_blur_ignores_focus_moving_into_own_iframes(self):
        assert "hasFocus()" in LIFECYCLE_SCRIPT

    def test_hidden_and_restored_are_bridged(self):
        assert 'addEventListener("visibilitychange"' in LIFECYCLE_SCRIPT
        assert 'addEventListener("pageshow"' in LIFECYCLE_SCRIPT
        assert "event.persisted" in LIFECYCLE_SCRIPT

    def test_uses_signal_param(self):
        assert f'searchParams.set("{SIGNAL_PARAM}"' in LIFECYCLE_SCRIPT

    def test_formatting_left_no_placeholders(self):
        assert re.search(r"%\(\w+\)s", LIFECYCLE_SCRIPT) is None

    def test_emitted_signals_match_script(self):
        emitted = set(re.findall(r'relock\("(\w+)"\)', LIFECYCLE_SCRIPT))
        assert emitted == {signal.value for signal in EMITTED_SIGNALS}

    def test_emitted_signals_are_lock_triggers(self):
        assert set(EMITTED_SIGNALS) <= LOCK_TRIGGERS


class TestParseSignal:
    @pytest.mark.parametrize("signal", list(LifecycleSignal))
    def test_known_values(self, signal):
        assert parse_signal(signal.value) is signal

    @pytest.mark.parametrize("value", [None, "", "unlock", "VISIBILITY_HIDDEN"])
    def test_unknown_values_are_none(self, value):
        assert parse_signal(value) is None


class TestBridgedSignalsLock:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("signal", EMITTED_SIGNALS)
    async def test_emitted_signal_locks_unlocked_app(self, authenticator, lock_controller, signal):
        await authenticator.set_pin("4242")
        await lock_controller.unlock("4242")

        lock_controller.handle_signal(parse_signal(signal.value))
        assert lock_controller.is_locked
        assert lock_controller.session_key is None
