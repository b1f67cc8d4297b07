"""Base contract enforcement utility.

The require() function is the single enforcement mechanism for all contracts.
"""

from rads_combine.contracts.failure import ContractViolation


def require(condition: bool, message: str) -> None:
    """Enforce a combiner contract.

    Parameters
    ----------
    condition : bool
        The invariant that must be true. If False, ContractViolation is raised.

    message : str
        Error message explaining the contract violation.

    Raises
    ------
    ContractViolation
        If condition is False.

    Examples
    --------
    >>> require(span.rec1 >= span.rec0, "Span contract: empty span")
    """
    if not condition:
        raise ContractViolation(message)
