from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from recoannie.core.exceptions import InvalidEntry
from recoannie.io.reader import PMTDataEntry

logger = logging.getLogger(__name__)

# PMTData column name -> PMTDataEntry field
COLUMNS: dict[str, str] = {
    "LastSync": "last_sync",
    "SequenceID": "sequence_id",
    "StartTimeSec": "start_time_sec",
    "StartTimeNSec": "start_time_nsec",
    "StartCount": "start_count",
    "TriggerNumber": "trigger_number",
    "CardID": "card_id",
    "Channels": "channels",
    "BufferSize": "buffer_size",
    "FullBufferSize": "full_buffer_size",
    "Eventsize": "event_size",
    "Data": "data",
    "TriggerCounts": "trigger_counts",
    "Rates": "rates",
}

_ARRAY_COLUMNS = ("Data", "TriggerCounts", "Rates")


def _expand(paths: str | Path | Iterable[str | Path]) -> list[str]:
    """Expand file names and wildcard patterns, keeping the given order."""
    if isinstance(paths, (str, Path)):
        paths = [paths]
    files: list[str] = []
    for p in paths:
        matches = sorted(glob.glob(str(p)))
        if not matches:
            raise FileNotFoundError(f"No PMTData file matches '{p}'")
        files.extend(matches)
    return files


class ParquetEntrySource:
    """EntrySource over one or more parquet files of PMTData entries.

    Each row is one card entry; the columns carry the DAQ branch names
    (see COLUMNS). Files are chained in the order given; wildcard
    patterns are expanded in sorted order.
    """

    def __init__(self, paths: str | Path | Iterable[str | Path]):
        self.files = _expand(paths)
        frames = []
        for f in self.files:
            frame = pd.read_parquet(f)
            missing = [c for c in COLUMNS if c not in frame.columns]
            if missing:
                raise InvalidEntry(f"{f}: missing PMTData column(s) {missing}")
            frames.append(frame[list(COLUMNS)])
            logger.info("Opened %s (%d entries)", f, len(frame))
        self._table = (
            pd.concat(frames, ignore_index=True) if frames else pd.DataFrame(columns=list(COLUMNS))
        )

    def __len__(self) -> int:
        return len(self._table)

    def entry(self, index: int) -> PMTDataEntry:
        row = self._table.iloc[index]
        values = {}
        for column, name in COLUMNS.items():
            if column in _ARRAY_COLUMNS:
                values[name] = np.asarray(row[column])
            else:
                values[name] = int(row[column])
        return PMTDataEntry(**values)


def write_parquet(entries: Sequence[PMTDataEntry], path: str | Path) -> None:
    """Write PMTData entries to a parquet file readable by ParquetEntrySource."""
    records = []
    for e in entries:
        record = {}
        for column, name in COLUMNS.items():
            value = getattr(e, name)
            record[column] = np.asarray(value).tolist() if column in _ARRAY_COLUMNS else int(value)
        records.append(record)
    pd.DataFrame.from_records(records, columns=list(COLUMNS)).to_parquet(path, index=False)
    logger.info("Wrote %d entries to %s", len(records), path)
