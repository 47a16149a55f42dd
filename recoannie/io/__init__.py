"""Readout sources: merging PMTData table entries into RawReadout objects."""

from .reader import EntrySource, ListEntrySource, PMTDataEntry, RawReader
from .parquet_source import ParquetEntrySource, write_parquet
from .load import iter_readouts, iter_reco_readouts, open_raw

__all__ = [
    "EntrySource",
    "ListEntrySource",
    "PMTDataEntry",
    "RawReader",
    "ParquetEntrySource",
    "write_parquet",
    "iter_readouts",
    "iter_reco_readouts",
    "open_raw",
]
