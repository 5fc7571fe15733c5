"""Error taxonomy for the value-stream engine."""


class VSMError(ValueError):
    """Base class for all validation errors raised by the engine."""


class InvalidDemand(VSMError):
    """Daily demand or available time is not strictly positive."""


class InvalidProcess(VSMError):
    """A process record violates its field invariants."""


class InvalidInventory(VSMError):
    """An inventory record carries a negative quantity, level or cost."""


class EmptyValueStream(VSMError):
    """Raised only on explicit request; aggregates treat an empty stream as zero."""
