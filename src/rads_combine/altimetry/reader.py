"""Open raw altimeter granules and extract what the segmenter needs.

A granule is opened once with xarray, without CF decoding, so that the
writer can later copy packed values and their attributes verbatim. Only the
time, latitude and longitude arrays and a handful of global attributes are
loaded eagerly.

Key capabilities:
- Fixes the mission identity of the run from the first accepted granule
- Rejects granules from another mission, without a time dimension, or with
  too many records (logged and skipped by the caller)
- Converts packed integer coordinates to degrees
- Applies the cycle correction hook before the pass key is formed
"""

from pathlib import Path
from typing import Optional
import logging

import numpy as np
import xarray as xr

from rads_combine.altimetry.buffer import SourceRecord, SourceHandlePool
from rads_combine.altimetry.corrections import (
    GranuleMetadata,
    CycleCorrection,
    identity_correction,
)
from rads_combine.altimetry.orbit import orbit_type_from_xref
from rads_combine.errors import (
    SourceOpenError,
    IdentityMismatch,
    SizeLimitExceeded,
    MissingTimeDimension,
)

__all__ = ['SourceReader', 'to_degrees']

logger = logging.getLogger(__name__)


def to_degrees(var: xr.DataArray, default_scale: float) -> np.ndarray:
    """Return coordinate values in degrees.

    Floating-point fields are returned as stored. Integer fields are scaled
    with their ``scale_factor``/``add_offset`` attributes, or with
    ``default_scale`` when the field carries no scale factor.
    """
    values = np.asarray(var.values)
    if values.dtype.kind == "f":
        return values.astype(np.float64)
    scale = float(var.attrs.get("scale_factor", default_scale))
    offset = float(var.attrs.get("add_offset", 0.0))
    return values.astype(np.float64) * scale + offset


class SourceReader:
    """Open granules one by one for a single combiner run.

    Configuration
    =============
    Reads from ``config.mission``:

    - `mission_prefix` : str, required start of the ``mission_name`` attribute
    - `time_dim`, `time_var`, `lat_var`, `lon_var` : str, names in the granule
    - `coordinate_scale` : float, scale of integer lat/lon without scale_factor
    - `xref_code` : (start, stop), slice of ``xref_orbit_data`` with the orbit code

    and ``config.combiner.max_records``.

    Notes
    -----
    - Not thread-safe: one reader per run, it holds the run's mission identity
    - Source-scoped failures raise ``SourceError`` subclasses with the granule
      already closed
    - Accepted granules are registered in the handle pool and stay open

    Examples
    --------
    >>> pool = SourceHandlePool(20)
    >>> reader = SourceReader(config, pool)
    >>> record = reader.open("S3A_SR_2_WAT____20170301T000000.SEN3/standard_measurement.nc")
    >>> record.nrec, record.cycle_number, record.pass_number
    (2873, 15, 240)
    """

    def __init__(self, config, pool: SourceHandlePool,
                 correction: Optional[CycleCorrection] = None):
        self.mission_cfg = config.mission
        self.max_records = config.combiner.max_records
        self.pool = pool
        self.correction = correction or identity_correction
        self.mission_name: Optional[str] = None

    def open(self, source_id: Path | str) -> SourceRecord:
        """Open one granule and return its ``SourceRecord``.

        Raises
        ------
        SourceOpenError
            File cannot be opened, or a required attribute or field is
            missing or malformed.
        IdentityMismatch
            Mission differs from the one fixed earlier in the run.
        MissingTimeDimension
            Time dimension not present.
        SizeLimitExceeded
            More records than ``max_records``.
        ResourceExhausted
            Handle pool is full (run-fatal).
        """
        source_id = str(source_id)
        try:
            ds = xr.open_dataset(source_id, decode_cf=False)
        except (OSError, ValueError) as e:
            raise SourceOpenError(source_id, f"Error while opening file ({e})") from e

        try:
            record = self._extract(source_id, ds)
        except Exception:
            ds.close()
            raise

        self.pool.acquire(record)
        logger.debug("Opened granule: %s (%d records)", source_id, record.nrec)
        return record

    def _check_identity(self, source_id: str, ds: xr.Dataset) -> str:
        mission_name = str(ds.attrs.get("mission_name", "")).strip()
        if not mission_name.startswith(self.mission_cfg.mission_prefix):
            raise IdentityMismatch(source_id, f'Unknown mission name "{mission_name}"')
        if self.mission_name is None:
            self.mission_name = mission_name
            logger.info("Mission fixed for this run: %s", mission_name)
        elif mission_name != self.mission_name:
            raise IdentityMismatch(
                source_id, f'Mission name "{mission_name}" not same as former'
            )
        return mission_name

    def _extract(self, source_id: str, ds: xr.Dataset) -> SourceRecord:
        cfg = self.mission_cfg
        mission_name = self._check_identity(source_id, ds)

        if cfg.time_dim not in ds.dims:
            raise MissingTimeDimension(source_id, f"No '{cfg.time_dim}' dimension")
        nrec = ds.sizes[cfg.time_dim]
        if nrec > self.max_records:
            raise SizeLimitExceeded(
                source_id, f"Too many measurements in input file ({nrec} > {self.max_records})"
            )

        try:
            meta = GranuleMetadata(
                source_id=source_id,
                product_name=str(ds.attrs["product_name"]),
                cycle_number=int(ds.attrs["cycle_number"]),
                pass_number=int(ds.attrs["pass_number"]),
                absolute_pass_number=int(ds.attrs["absolute_pass_number"]),
                absolute_rev_number=int(ds.attrs["absolute_rev_number"]),
            )
            xref_orbit_data = str(ds.attrs["xref_orbit_data"])
            time = np.asarray(ds[cfg.time_var].values, dtype=np.float64)
            lat = to_degrees(ds[cfg.lat_var], cfg.coordinate_scale)
            lon = to_degrees(ds[cfg.lon_var], cfg.coordinate_scale)
        except KeyError as e:
            raise SourceOpenError(source_id, f"Missing attribute or field {e}") from e
        except (ValueError, TypeError) as e:
            raise SourceOpenError(source_id, f"Malformed attribute or field ({e})") from e

        cycle, pass_number = self.correction(meta)

        return SourceRecord(
            source_id=source_id,
            time=time,
            lat=lat,
            lon=lon,
            cycle_number=cycle,
            pass_number=pass_number,
            absolute_pass_number=meta.absolute_pass_number,
            absolute_rev_number=meta.absolute_rev_number,
            product_name=meta.product_name,
            mission_name=mission_name,
            orbit_type=orbit_type_from_xref(xref_orbit_data, cfg.xref_code),
            handle=ds,
        )
