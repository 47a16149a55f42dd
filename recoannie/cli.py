"""Command line entry point: ``reco-annie FILE...``."""
from __future__ import annotations

import argparse
import logging
import sys

from recoannie.analysis import reconstruct_readout
from recoannie.config import load_config
from recoannie.core.exceptions import CoreError
from recoannie.io import open_raw

logger = logging.getLogger("recoannie")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reco-annie",
        description="Decode raw PMTData files and list (or reconstruct) their readouts.",
    )
    parser.add_argument("files", nargs="+", help="PMTData parquet file(s); wildcards allowed")
    parser.add_argument("--config", help="JSON settings file")
    parser.add_argument(
        "--reconstruct",
        action="store_true",
        help="find pulses and print the tank charge of every minibuffer",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        reader = open_raw(args.files, config)
        for raw in reader:
            if not args.reconstruct:
                print(raw.sequence_id)
                continue

            reco = reconstruct_readout(raw, config)
            n_minibuffers = max((card.num_minibuffers for card in raw.values()), default=0)
            for mb in range(n_minibuffers):
                charge, n_pmts = reco.tank_charge(mb, 0, float("inf"))
                print(f"{raw.sequence_id}\t{mb}\t{charge:.6g}\t{n_pmts}")
    except (CoreError, FileNotFoundError) as e:
        logger.error("%s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
