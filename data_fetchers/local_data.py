# data_fetchers/local_data.py
# --------------------------------------------
# Loads the dashboard's local data files:
#  - the lottery table (JSON exported from the Dira site)
#  - the local-housing side table (CSV or JSON), lottery number -> units
#    reserved for local residents.
# --------------------------------------------

from __future__ import annotations

import csv
import json
import logging
import os
from typing import Any, Dict, List

from lottery_logic import ParseError, parse_lottery_number

logger = logging.getLogger(__name__)


class LocalDataError(Exception):
    """Raised when a local data file does not have the expected shape."""


def load_lotteries(path: str) -> List[Dict[str, Any]]:
    """
    Read lottery rows from JSON. Accepts either a bare list of rows or the
    site's export shape {"data": [...]}.
    """
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, dict):
        raw = raw.get("data")
    if not isinstance(raw, list) or not all(isinstance(r, dict) for r in raw):
        raise LocalDataError(f"{path}: expected a list of lottery rows")

    logger.debug("local_data.lotteries path=%s rows=%d", path, len(raw))
    return raw


def _read_housing_pairs(path: str) -> List[tuple]:
    ext = os.path.splitext(path)[1].lower()
    if ext == ".csv":
        with open(path, encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            missing = {"LotteryNumber", "LocalHousing"} - set(reader.fieldnames or [])
            if missing:
                raise LocalDataError(
                    f"{path}: missing column(s) {', '.join(sorted(missing))}")
            return [(row["LotteryNumber"], row["LocalHousing"]) for row in reader]

    if ext == ".json":
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise LocalDataError(f"{path}: expected an object keyed by lottery number")
        return list(raw.items())

    raise LocalDataError(f"{path}: unsupported file type {ext or '(none)'}")


def load_local_housing(path: str) -> Dict[int, int]:
    """Read the local-housing table and key it by integer lottery number."""
    table: Dict[int, int] = {}
    for key, count in _read_housing_pairs(path):
        try:
            table[parse_lottery_number(key)] = int(count)
        except (ParseError, TypeError, ValueError):
            logger.warning("local_data.bad_row path=%s lottery=%r count=%r",
                           path, key, count)
    logger.debug("local_data.local_housing path=%s entries=%d", path, len(table))
    return table
