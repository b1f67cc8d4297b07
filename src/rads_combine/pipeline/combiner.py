"""Run driver of the pass combiner.

Feeds an ordered list of granules through reader, segmenter and writer,
recovers from problems with single granules and guarantees that every
granule is closed when the run ends, whether it succeeds or aborts.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional
import time
import logging

from rads_combine.altimetry.buffer import SourceHandlePool
from rads_combine.altimetry.corrections import CycleCorrection, correction_from_config
from rads_combine.altimetry.orbit import EquatorPredictor
from rads_combine.altimetry.reader import SourceReader
from rads_combine.altimetry.segmenter import PassSegmenter
from rads_combine.altimetry.writer import PassWriter
from rads_combine.errors import SourceError
from rads_combine.pipeline.ledger import CombineLedger

__all__ = ['PassCombiner', 'CombineSummary']

logger = logging.getLogger(__name__)


@dataclass
class CombineSummary:
    """Counts of one combiner run."""
    sources_read: int = 0
    sources_skipped: int = 0
    sources_covered: int = 0
    passes_created: int = 0
    passes_kept: int = 0
    records_written: int = 0
    flushes: list = field(default_factory=list, repr=False)

    def add_flush(self, result):
        self.flushes.append(result)
        if result.action == "created":
            self.passes_created += 1
            self.records_written += result.nrec
        else:
            self.passes_kept += 1


class PassCombiner:
    """Combine a stream of granules into one netCDF file per pass.

    This is the main entry point for running ``rads_combine``. One combiner
    serves one run: the mission identity and the time watermark it holds are
    not reset between calls to ``run``.

    **Error Handling:**

    - Granule-scoped problems (unreadable, other mission, too large, no time
      dimension) are logged as warnings; the granule is skipped
    - ``ResourceExhausted``, ``WriteFailure`` and ``ContractViolation``
      abort the run and propagate to the caller
    - All granules still held open are closed in either case

    **Ledger:**

    With ``config.ledger.enabled`` every granule outcome and every flush is
    recorded in ``<dest_dir>/<config.ledger.filename>``.

    Example usage::

        from rads_combine.schemas import resolve_config, ParamConfig
        from rads_combine.pipeline import PassCombiner

        config = resolve_config(ParamConfig(), {"DEST_DIR": "/data/rads/s3a"})
        combiner = PassCombiner(config)
        summary = combiner.start(sorted(Path("/data/s3a/l2").glob("*/standard_measurement.nc")))
    """

    def __init__(self, config, ephemeris: Optional[EquatorPredictor] = None,
                 correction: Optional[CycleCorrection] = None):
        """Build the processing chain.

        Parameters
        ----------
        config : InternalConfig
            Resolved configuration; ``config.combiner.dest_dir`` is required.
        ephemeris : EquatorPredictor, optional
            Equator crossing predictor. Defaults to the nominal repeat orbit.
        correction : callable, optional
            Cycle correction hook. Defaults to the rules in
            ``config.corrections`` (identity when there are none).

        Raises
        ------
        ValueError
            If no destination directory is configured.
        """
        if config.combiner.dest_dir is None:
            raise ValueError("Destination directory (combiner.dest_dir) is required")
        self.config = config
        self.dest_dir = Path(config.combiner.dest_dir)

        # Buffered spans plus the granule being read
        self.pool = SourceHandlePool(config.combiner.max_open_sources + 1)
        self.reader = SourceReader(
            config, self.pool, correction=correction or correction_from_config(config)
        )
        self.writer = PassWriter(config, self.pool, ephemeris=ephemeris)
        self.segmenter = PassSegmenter(config, self.writer, self.pool)

        self.ledger = None
        self._start_time = None

    def _setup_logging(self):
        """Configure root logger with console and optional file handlers."""
        log_level = getattr(logging, self.config.logging.level, logging.INFO)

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Clear existing handlers and add new ones
        root = logging.getLogger()
        root.setLevel(log_level)
        for handler in root.handlers[:]:
            root.removeHandler(handler)

        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        log_path = self.config.logging.log_file
        if log_path:
            log_path = Path(log_path).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(log_path)
            fh.setLevel(log_level)
            fh.setFormatter(formatter)
            root.addHandler(fh)

        logger.info("Logging: level=%s, file=%s", self.config.logging.level, log_path)

    def _open_ledger(self):
        if self.config.ledger.enabled and self.ledger is None:
            self.ledger = CombineLedger(self.dest_dir / self.config.ledger.filename)

    def _record_flushes(self, summary: CombineSummary, first: int):
        for result in self.segmenter.results[first:]:
            summary.add_flush(result)
            if self.ledger:
                self.ledger.record_pass(result)

    def run(self, source_ids: Iterable) -> CombineSummary:
        """Combine ``source_ids`` in the given order.

        Parameters
        ----------
        source_ids : iterable of str or Path
            Granule paths. Order matters: granules are expected roughly in
            time order, overlaps and repeats are allowed.

        Returns
        -------
        CombineSummary

        Raises
        ------
        ResourceExhausted, WriteFailure, ContractViolation
            Run-fatal conditions. Pass files already flushed stay on disk.
        """
        self._open_ledger()
        summary = CombineSummary()
        try:
            for source_id in source_ids:
                source_id = str(source_id).strip()
                if not source_id:
                    continue

                try:
                    record = self.reader.open(source_id)
                except SourceError as e:
                    summary.sources_skipped += 1
                    logger.warning("%s, skipped", e)
                    if self.ledger:
                        self.ledger.record_source(source_id, "skipped", error=e.reason)
                    continue

                summary.sources_read += 1
                first = len(self.segmenter.results)
                try:
                    outcome = self.segmenter.consume(record)
                finally:
                    self._record_flushes(summary, first)

                status = "consumed" if outcome.accepted else "covered"
                if status == "covered":
                    summary.sources_covered += 1
                if self.ledger:
                    self.ledger.record_source(source_id, status, outcome=outcome)

            first = len(self.segmenter.results)
            self.segmenter.finish()
            self._record_flushes(summary, first)
        finally:
            self.pool.close_all()

        return summary

    def start(self, source_ids: Iterable) -> CombineSummary:
        """Configure logging, run the combiner and log a summary.

        Parameters
        ----------
        source_ids : iterable of str or Path
            Granule paths in processing order.

        Returns
        -------
        CombineSummary
        """
        self._setup_logging()

        logger.info("=" * 60)
        logger.info("Starting pass combiner: %s", self.dest_dir)
        logger.info("=" * 60)

        self._start_time = time.time()
        try:
            summary = self.run(source_ids)
        finally:
            self.stop()

        logger.info("=" * 60)
        logger.info("Sources: read=%d, skipped=%d, already covered=%d",
                    summary.sources_read, summary.sources_skipped, summary.sources_covered)
        logger.info("Passes: created=%d, kept=%d, records written=%d",
                    summary.passes_created, summary.passes_kept, summary.records_written)
        logger.info("=" * 60)
        return summary

    def stop(self):
        """Close open granules and the ledger. Safe to call multiple times."""
        self.pool.close_all()

        elapsed = time.time() - self._start_time if self._start_time else 0
        logger.info("Pass combiner stopped. Runtime: %.1f seconds", elapsed)

        if self.ledger:
            stats = self.ledger.get_statistics(run_id=self.ledger.run_id)
            logger.info("Ledger: sources=%d, passes=%d, records=%d",
                        stats['sources'], stats['passes'], stats['records'])
            self.ledger.close()
            self.ledger = None
