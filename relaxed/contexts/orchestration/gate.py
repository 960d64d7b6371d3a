"""Single-flight gate: at most one conversion pipeline at a time."""


class SingleFlightGate:
    """
    Busy flag with an acquire/release contract and no queue.

    A caller that fails to acquire must drop its work rather than wait. Only
    the event-loop thread touches the gate, so no lock is needed.

    Example:
        gate = SingleFlightGate()
        if gate.try_acquire():
            try:
                ...
            finally:
                gate.release()
    """

    def __init__(self):
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def try_acquire(self) -> bool:
        """Mark busy and return True iff the gate was free."""
        if self._busy:
            return False
        self._busy = True
        return True

    def release(self) -> None:
        """Clear busy, whatever the outcome of the task."""
        self._busy = False

    def __repr__(self) -> str:
        return f"SingleFlightGate(busy={self._busy})"
