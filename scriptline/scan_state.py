"""Per-file scanning state machines.

Branch termination: once a file has jumped to another script file and then
stopped (``[s]``), whatever follows the next label is taken to be a branch
entered from elsewhere, and scanning of the file ends there. This mirrors
how scenario files are usually laid out; it is not an evaluation of the
script's control flow. Several external jumps before one stop, or stops
nested in conditionals, are all treated the same way.

Message clears: the first ``[cm]`` of a file, seen before any pacing or
dialogue, is scene setup and does not advance the clock.
"""

from enum import Enum


class ScanState(str, Enum):
    SCANNING = "scanning"
    EXTERNAL_JUMP_SEEN = "external_jump_seen"
    SKIPPING_AFTER_BRANCH = "skipping_after_branch"
    HALTED = "halted"


class ScanSignal(str, Enum):
    EXTERNAL_JUMP = "external_jump"
    HALT = "halt"
    LABEL = "label"


_TRANSITIONS: dict[tuple[ScanState, ScanSignal], ScanState] = {
    (ScanState.SCANNING, ScanSignal.EXTERNAL_JUMP): ScanState.EXTERNAL_JUMP_SEEN,
    (ScanState.EXTERNAL_JUMP_SEEN, ScanSignal.HALT): ScanState.SKIPPING_AFTER_BRANCH,
    (ScanState.SKIPPING_AFTER_BRANCH, ScanSignal.LABEL): ScanState.HALTED,
}


def transition(state: ScanState, signal: ScanSignal) -> ScanState:
    """Next scan state. Pairs not listed keep the current state."""
    return _TRANSITIONS.get((state, signal), state)


class ClearPolicy(str, Enum):
    SETUP = "setup"
    COUNTING = "counting"


class ClearTracker:
    """Decides whether a message clear consumes clock time."""

    def __init__(self) -> None:
        self.state = ClearPolicy.SETUP

    def mark_content(self) -> None:
        """Pacing or dialogue has been seen; every later clear counts."""
        self.state = ClearPolicy.COUNTING

    def consume(self) -> bool:
        """Register one clear. Returns True when it advances the clock."""
        if self.state is ClearPolicy.SETUP:
            self.state = ClearPolicy.COUNTING
            return False
        return True
