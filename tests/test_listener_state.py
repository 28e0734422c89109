"""
Tests for the listener IDLE/ACTIVE state machine.
"""

import threading

from playernotify.listener_state import ListenerState, ListenerStateMachine


class TestListenerState:
    def test_state_string_values(self):
        assert str(ListenerState.IDLE) == "idle"
        assert str(ListenerState.ACTIVE) == "active"


class TestListenerStateMachine:
    """Test the ListenerStateMachine class."""

    def setup_method(self):
        self.state_machine = ListenerStateMachine()

    def test_initial_state(self):
        """Test that state machine starts IDLE."""
        assert self.state_machine.current_state == ListenerState.IDLE
        assert self.state_machine.previous_state is None

    def test_cycle(self):
        """Test that the machine cycles between IDLE and ACTIVE indefinitely."""
        for _ in range(3):
            assert self.state_machine.transition_to(ListenerState.ACTIVE, "spawned")
            assert self.state_machine.transition_to(ListenerState.IDLE, "exited")
        assert self.state_machine.current_state == ListenerState.IDLE
        assert self.state_machine.previous_state == ListenerState.ACTIVE

    def test_second_activation_rejected(self):
        """Test that ACTIVE -> ACTIVE is invalid."""
        self.state_machine.transition_to(ListenerState.ACTIVE)
        assert not self.state_machine.transition_to(ListenerState.ACTIVE, "duplicate")
        assert self.state_machine.current_state == ListenerState.ACTIVE

    def test_idle_to_idle_rejected(self):
        assert not self.state_machine.transition_to(ListenerState.IDLE)
        assert self.state_machine.previous_state is None

    def test_get_valid_transitions(self):
        assert self.state_machine.get_valid_transitions() == {ListenerState.ACTIVE}
        self.state_machine.transition_to(ListenerState.ACTIVE)
        assert self.state_machine.get_valid_transitions() == {ListenerState.IDLE}

    def test_concurrent_activation_allows_one_winner(self):
        """Test that racing activations produce exactly one ACTIVE transition."""
        results = []
        barrier = threading.Barrier(8)

        def activate():
            barrier.wait()
            results.append(self.state_machine.transition_to(ListenerState.ACTIVE))

        threads = [threading.Thread(target=activate) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert self.state_machine.current_state == ListenerState.ACTIVE
