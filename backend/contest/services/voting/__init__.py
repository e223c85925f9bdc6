"""Voting & event lifecycle engine.

Phase derivation, one-shot vote casting and gated results. Imported by the
HTTP blueprint and the CLI; transport concerns stay out of this package.
"""

from .clock import EventPhase, current_time, phase
from .engine import VoteReceipt, cast_votes, set_results_open, update_deadlines
from .results import Results, results

__all__ = [
    'EventPhase',
    'current_time',
    'phase',
    'VoteReceipt',
    'cast_votes',
    'set_results_open',
    'update_deadlines',
    'Results',
    'results',
]
