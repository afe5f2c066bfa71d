"""Exceptions raised by DemoScope."""


class DemoScopeError(Exception):
    """Base class for DemoScope errors."""


class MalformedRecordError(DemoScopeError, ValueError):
    """A decoded record holds a value outside its contract (e.g. a ballot option index)."""


class RecordFormatError(DemoScopeError, ValueError):
    """A record dump cannot be turned into records."""
