"""Write buffered passes to RADS pass files.

The writer turns the spans of one completed pass into a single netCDF file.
Writing is idempotent: when a pass file already exists and holds at least as
many records as the buffer, the existing file is kept and the buffer is
dropped. This makes a rerun over the same (or a partially overlapping) list
of granules safe after a crash.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging

import numpy as np
import xarray as xr

from rads_combine.altimetry.buffer import SegmentBuffer, SourceHandlePool
from rads_combine.altimetry.orbit import (
    SegmentKey,
    EquatorPredictor,
    RepeatOrbitEphemeris,
    ORBIT_TYPES,
    ORBIT_TYPE_MEANINGS,
    UNKNOWN_ORBIT_TYPE,
    format_time,
)
from rads_combine.altimetry.segmenter import audit_line
from rads_combine.contracts import assert_buffer_consistent, assert_pass_dataset
from rads_combine.errors import WriteFailure
from rads_combine.setup_directories import get_pass_path

__all__ = ['PassWriter', 'FlushResult']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlushResult:
    """Outcome of flushing one pass.

    ``action`` is "created" when the buffer was written and "kept" when an
    existing pass file was left in place. ``nrec`` is the record count of
    the pass file after the flush, ``buffered`` that of the buffer.
    """
    key: SegmentKey
    action: str
    path: Path
    nrec: int
    buffered: int
    first_time: str
    last_time: str


class PassWriter:
    """Flush segment buffers to pass files under a destination directory.

    Parameters
    ----------
    config : InternalConfig
        Uses ``config.combiner`` (dest_dir, exclude_fields, passes_per_cycle,
        pass_number_offset, unsupported_dtypes, output_format) and
        ``config.mission`` (time_dim, lat/lon names, product-name slices,
        epoch, provenance_var).
    pool : SourceHandlePool
        Granules whose last record is flushed or kept are released here.
    ephemeris : EquatorPredictor, optional
        Source of equator crossing time and longitude. Defaults to the
        nominal repeat orbit of ``config.ephemeris``.

    Notes
    -----
    - Field definitions and attributes are copied from the first granule of
      the pass; data is copied span by span in buffer order
    - Fields not one-dimensional on the time dimension (e.g. 20-Hz data),
      excluded fields and unsupported types are not copied
    - One int8 field with the orbit provenance of each record is added
    - A failed write removes the partial file and raises WriteFailure
    """

    def __init__(self, config, pool: SourceHandlePool,
                 ephemeris: Optional[EquatorPredictor] = None):
        cfg = config.combiner
        if cfg.dest_dir is None:
            raise ValueError("Destination directory (combiner.dest_dir) is required")
        self.dest_dir = Path(cfg.dest_dir)
        self.exclude_fields = set(cfg.exclude_fields)
        self.passes_per_cycle = cfg.passes_per_cycle
        self.pass_number_offset = cfg.pass_number_offset
        self.unsupported_dtypes = set(cfg.unsupported_dtypes)
        self.output_format = cfg.output_format
        self.mission = config.mission
        self.pool = pool
        self.ephemeris = ephemeris or RepeatOrbitEphemeris(config)

    def pass_path(self, key: SegmentKey, product_name: str) -> Path:
        return get_pass_path(
            self.dest_dir, product_name, key.cycle, key.pass_number,
            prefix=self.mission.product_prefix, suffix=self.mission.product_suffix,
        )

    def _read_existing(self, path: Path):
        """Record count and time range of an existing pass file, None if unreadable."""
        try:
            with xr.open_dataset(path, decode_cf=False) as old:
                return (
                    int(old.sizes.get(self.mission.time_dim, 0)),
                    str(old.attrs.get("first_meas_time", "")),
                    str(old.attrs.get("last_meas_time", "")),
                )
        except (OSError, ValueError) as e:
            logger.warning("Unreadable pass file will be replaced: %s (%s)", path, e)
            return None

    def flush(self, key: SegmentKey, buffer: SegmentBuffer) -> Optional[FlushResult]:
        """Write ``buffer`` as pass ``key`` unless a larger pass file exists.

        Returns None for an empty buffer. The buffer itself is not cleared.
        """
        if not buffer:
            return None
        assert_buffer_consistent(buffer)
        nrec = buffer.record_count
        path = self.pass_path(key, buffer.first.source.product_name)

        if path.exists():
            existing = self._read_existing(path)
            if existing is not None:
                nout, first_time, last_time = existing
                if nrec <= nout:
                    self.pool.release_drained(buffer)
                    logger.info(audit_line("Keeping", 0, nout - 1, nout,
                                           first_time, last_time, ">", path))
                    return FlushResult(key, "kept", path, nout, nrec, first_time, last_time)
            path.unlink()

        first_time = format_time(buffer.first.time0, self.mission.epoch)
        last_time = format_time(buffer.last.time1, self.mission.epoch)
        logger.info(audit_line("Creating", 0, nrec - 1, nrec, first_time, last_time, ">", path))

        ds, encoding = self.build_dataset(key, buffer, path.name)
        assert_pass_dataset(ds, self.mission.time_dim, nrec, self.mission.provenance_var)
        try:
            ds.to_netcdf(path, format=self.output_format, encoding=encoding)
        except Exception as e:
            path.unlink(missing_ok=True)
            raise WriteFailure(f"Error writing pass file {path}: {e}") from e
        finally:
            ds.close()

        self.pool.release_drained(buffer)
        return FlushResult(key, "created", path, nrec, nrec, first_time, last_time)

    def select_fields(self, ds: xr.Dataset) -> list[str]:
        """Names of the fields of ``ds`` that are copied to the pass file."""
        names = []
        for name, var in ds.variables.items():
            if name in self.exclude_fields:
                continue
            if var.dims != (self.mission.time_dim,):
                continue
            if str(var.dtype) in self.unsupported_dtypes:
                continue
            names.append(name)
        return names

    def _copy_field(self, name: str, buffer: SegmentBuffer) -> np.ndarray:
        parts = []
        for span in buffer:
            src = span.source.handle
            if src is None:
                raise WriteFailure(f"Granule already closed: {span.source_id}")
            if name not in src.variables:
                raise WriteFailure(f"Field '{name}' missing in {span.source_id}")
            var = src.variables[name]
            parts.append(np.asarray(var.isel({self.mission.time_dim: span.index_slice()}).values))
        return np.concatenate(parts)

    def provenance_field(self, buffer: SegmentBuffer) -> xr.Variable:
        """Per-record orbit provenance tag of the pass."""
        values = np.concatenate([
            np.full(span.length, span.orbit_type, dtype=np.int8) for span in buffer
        ])
        attrs = {
            "long_name": "Type of data file used for orbit computation",
            "flag_values": np.array(sorted(ORBIT_TYPES.values()), dtype=np.int8),
            "flag_meanings": ORBIT_TYPE_MEANINGS,
            "coordinates": f"{self.mission.lon_var} {self.mission.lat_var}",
        }
        return xr.Variable((self.mission.time_dim,), values, attrs=attrs)

    def summary_attributes(self, key: SegmentKey, buffer: SegmentBuffer, product_name: str) -> dict:
        """Global attributes describing the pass as a whole."""
        absolute_pass_number = ((key.cycle - 1) * self.passes_per_cycle
                                + key.pass_number - self.pass_number_offset)
        absolute_rev_number = int(absolute_pass_number / 2)
        equator = self.ephemeris.predict_equator(key)
        return {
            "product_name": product_name,
            "cycle_number": np.int32(key.cycle),
            "pass_number": np.int32(key.pass_number),
            "absolute_pass_number": np.int32(absolute_pass_number),
            "absolute_rev_number": np.int32(absolute_rev_number),
            "equator_time": format_time(equator.time, self.mission.epoch),
            "equator_longitude": float(equator.lon),
            "first_meas_time": format_time(buffer.first.time0, self.mission.epoch),
            "last_meas_time": format_time(buffer.last.time1, self.mission.epoch),
            "first_meas_lat": buffer.first.lat0,
            "last_meas_lat": buffer.last.lat1,
            "first_meas_lon": buffer.first.lon0,
            "last_meas_lon": buffer.last.lon1,
            "record_count": np.int32(buffer.record_count),
        }

    def build_dataset(self, key: SegmentKey, buffer: SegmentBuffer, product_name: str):
        """Assemble the pass dataset and its netCDF encoding."""
        first = buffer.first.source.handle
        if first is None:
            raise WriteFailure(f"Granule already closed: {buffer.first.source_id}")

        variables = {}
        encoding = {}
        for name in self.select_fields(first):
            template = first.variables[name]
            attrs = dict(template.attrs)
            fill_value = attrs.pop("_FillValue", None)
            data = self._copy_field(name, buffer).astype(template.dtype, copy=False)
            variables[name] = xr.Variable((self.mission.time_dim,), data, attrs=attrs)
            encoding[name] = {"_FillValue": fill_value}

        prov = self.mission.provenance_var
        variables[prov] = self.provenance_field(buffer)
        encoding[prov] = {"_FillValue": np.int8(UNKNOWN_ORBIT_TYPE)}

        attrs = dict(first.attrs)
        attrs.update(self.summary_attributes(key, buffer, product_name))
        return xr.Dataset(variables, attrs=attrs), encoding
