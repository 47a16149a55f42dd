# recoannie/io/load.py
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

from recoannie.analysis import reconstruct_run
from recoannie.config import AnalysisConfig
from recoannie.core import RawReadout, RecoReadout
from recoannie.io.parquet_source import ParquetEntrySource
from recoannie.io.reader import RawReader


def open_raw(paths: str | Path | Iterable[str | Path], config: AnalysisConfig | None = None) -> RawReader:
    config = config or AnalysisConfig()
    return RawReader(ParquetEntrySource(paths), config.reader)


def iter_readouts(paths: str | Path | Iterable[str | Path], config: AnalysisConfig | None = None) -> Iterator[RawReadout]:
    yield from open_raw(paths, config)


def iter_reco_readouts(
    paths: str | Path | Iterable[str | Path],
    config: AnalysisConfig | None = None,
    channels: Iterable[tuple[int, int]] | None = None,
) -> Iterator[RecoReadout]:
    config = config or AnalysisConfig()
    yield from reconstruct_run(open_raw(paths, config), config, channels)
