"""Centralized failure type for contract violations.

Contracts fail fast, loud, and once. All violations raise the same
exception type, allowing the caller to handle combiner bugs uniformly.
"""


class ContractViolation(RuntimeError):
    """Raised when a combiner invariant is violated.

    This indicates a bug in the combiner or input that breaks its ordering
    assumptions (e.g. a granule that is not sorted in time), not a recoverable
    problem with a single granule.

    Key distinction:
    - SourceError: bad granule, skipped
    - ContractViolation: broken invariant, run aborted
    """
    pass
