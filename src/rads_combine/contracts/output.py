"""Pass file contract.

Enforces the guarantee that a pass dataset about to be written holds exactly
the buffered records and carries the provenance field.
"""

import xarray as xr
from rads_combine.contracts.base import require


def assert_pass_dataset(ds: xr.Dataset, time_dim: str, expected_count: int,
                        provenance_var: str) -> None:
    """Enforce pass file contract.

    Parameters
    ----------
    ds : xr.Dataset
        Dataset assembled by the writer.
    time_dim : str
        Name of the record dimension.
    expected_count : int
        Sum of the span lengths in the flushed buffer.
    provenance_var : str
        Name of the per-record provenance field.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    require(
        time_dim in ds.dims,
        f"Pass contract violated: missing '{time_dim}' dimension"
    )
    require(
        ds.sizes[time_dim] == expected_count,
        f"Pass contract violated: {ds.sizes[time_dim]} records, "
        f"expected {expected_count}"
    )
    require(
        provenance_var in ds.data_vars,
        f"Pass contract violated: missing '{provenance_var}' variable"
    )
    for name, var in ds.data_vars.items():
        require(
            var.dims == (time_dim,),
            f"Pass contract violated: '{name}' has dims {var.dims}, "
            f"expected ({time_dim!r},)"
        )
