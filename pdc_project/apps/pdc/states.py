"""
PDC status enumeration and the transition table.

The table is the only place edges are defined; services ask it whether a
move is legal instead of comparing status strings.
"""
from django.db import models


class PDCStatus(models.TextChoices):
    RECEIVED = 'RECEIVED', 'Received'
    DUE = 'DUE', 'Due'
    DEPOSITED = 'DEPOSITED', 'Deposited'
    CLEARED = 'CLEARED', 'Cleared'
    BOUNCED = 'BOUNCED', 'Bounced'
    REPLACED = 'REPLACED', 'Replaced'
    WITHDRAWN = 'WITHDRAWN', 'Withdrawn'
    CANCELLED = 'CANCELLED', 'Cancelled'

    @property
    def is_terminal(self):
        return not TRANSITIONS[self]

    def can_transition_to(self, target):
        return PDCStatus(target) in TRANSITIONS[self]


TRANSITIONS = {
    PDCStatus.RECEIVED: frozenset({PDCStatus.DUE, PDCStatus.WITHDRAWN, PDCStatus.CANCELLED}),
    PDCStatus.DUE: frozenset({PDCStatus.DEPOSITED, PDCStatus.WITHDRAWN}),
    PDCStatus.DEPOSITED: frozenset({PDCStatus.CLEARED, PDCStatus.BOUNCED}),
    PDCStatus.BOUNCED: frozenset({PDCStatus.REPLACED}),
    PDCStatus.CLEARED: frozenset(),
    PDCStatus.REPLACED: frozenset(),
    PDCStatus.WITHDRAWN: frozenset(),
    PDCStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({
    PDCStatus.CLEARED, PDCStatus.REPLACED, PDCStatus.WITHDRAWN, PDCStatus.CANCELLED,
})

# Statuses whose amount is still expected to turn into money
OUTSTANDING_STATUSES = (PDCStatus.RECEIVED, PDCStatus.DUE, PDCStatus.DEPOSITED)


def _check_table():
    missing = set(PDCStatus) - set(TRANSITIONS)
    if missing:
        raise ImportError(f"PDC transition table is missing {sorted(missing)}")
    for source, targets in TRANSITIONS.items():
        if source in targets:
            raise ImportError(f"PDC transition table has a self-loop on {source}")
    declared_terminal = {s for s, targets in TRANSITIONS.items() if not targets}
    if declared_terminal != TERMINAL_STATUSES:
        raise ImportError("PDC terminal statuses disagree with the transition table")


_check_table()


def allowed_targets(status):
    return TRANSITIONS[PDCStatus(status)]
