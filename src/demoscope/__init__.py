"""
DemoScope - TF2 Demo Match Analyser

Reconstructs a recorded TF2 match from the decoded records of a demo file:
participants with their team/class history, kills, rounds, chat, connection
churn and votes, as one chronological event log.

Usage:
    from demoscope import analyse, load_records

    state = analyse(load_records("match.jsonl"))

    for event in state.events:
        print(event.tick, event.kind)
"""

__version__ = "0.3.0"
__author__ = "DemoScope Contributors"


def __getattr__(name):
    """Lazy import of the public API."""
    if name == "Analyser":
        from demoscope.analysis.analyser import Analyser
        return Analyser
    elif name == "analyse":
        from demoscope.analysis.analyser import analyse
        return analyse
    elif name == "MatchState":
        from demoscope.analysis.models import MatchState
        return MatchState
    elif name == "load_records":
        from demoscope.core.records import load_records
        return load_records
    elif name == "describe_event":
        from demoscope.analysis.describe import describe_event
        return describe_event
    elif name == "export_match":
        from demoscope.export import export_match
        return export_match
    raise AttributeError(f"module 'demoscope' has no attribute '{name}'")


__all__ = [
    "__version__",
    "Analyser",
    "analyse",
    "MatchState",
    "load_records",
    "describe_event",
    "export_match",
]
