# lottery_logic.py
# -------------------------------
# Core lottery-table logic for the Dira dashboard.
# This module deliberately contains NO Flask routes and NO network calls.
# It focuses purely on deterministic functions that are easy to unit test.
# -------------------------------

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# Raw lottery row as it comes from the data source, e.g.:
# {
#   "LotteryNumber": "1943", "ProjectNumber": "2275",
#   "CityCode": "8600", "CityDescription": "רמת גן",
#   "ProjectName": "...", "ContractorDescription": "...",
#   "PricePerUnit": 9500, "GrantSize": 40000, "LotteryApparmentsNum": 102
# }
LotteryRecord = Dict[str, Any]

# Leading run of ASCII digits after optional whitespace and sign (parseInt rules).
_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)")


class ParseError(ValueError):
    """Raised when a lottery number has no leading integer to parse."""


def parse_lottery_number(value: Any) -> int:
    """
    Parse a lottery number the way the browser's parseInt(value, 10) does:
    leading whitespace and a sign are allowed, trailing garbage is ignored.
      "1943"    -> 1943
      " 1943ab" -> 1943
      1943.7    -> 1943
    """
    if isinstance(value, bool):
        raise ParseError(f"Not a lottery number: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise ParseError(f"Not a lottery number: {value!r}")
        return int(value)
    if value is None:
        raise ParseError("Lottery number is missing.")

    match = _LEADING_INT.match(str(value))
    if not match:
        raise ParseError(f"Not a lottery number: {value!r}")
    return int(match.group(1))


def enrich_data(raw_data: Sequence[Mapping[str, Any]],
                local_data: Mapping[int, int]) -> List[LotteryRecord]:
    """
    Add the 'LocalHousing' count (units reserved for local residents) to each
    lottery row. Lookup is by the integer lottery number; rows without an
    entry get None, meaning "unknown", never zero.
    Input rows are copied, not mutated.
    """
    enriched: List[LotteryRecord] = []
    for lottery in raw_data:
        local_housing: Optional[int] = None
        try:
            local_housing = local_data.get(
                parse_lottery_number(lottery.get("LotteryNumber")))
        except ParseError as ex:
            logger.debug("enrich.skip_local_housing err=%s", ex)
        enriched.append({**lottery, "LocalHousing": local_housing})
    return enriched


def get_cities(data: Sequence[Mapping[str, Any]]) -> List[Tuple[Any, Any]]:
    """
    Return unique (CityCode, CityDescription) pairs in first-seen order.
    The first description seen for a code wins; later ones are ignored.
    """
    cities: Dict[Any, Any] = {}
    for lottery in data:
        code = lottery.get("CityCode")
        if code not in cities:
            cities[code] = lottery.get("CityDescription")
    return list(cities.items())


# -------------------------------
# Odds example for project #1943.
# A local resident takes part twice: first in the locals-only draw, then in
# the general draw (https://www.gov.il/he/departments/faq/faq_dira).
# All apartments for the disabled are assumed to come out of the general pool.
# -------------------------------
APARTMENTS = 102
LOCAL_APARTMENTS = 51
DISABLED_APARTMENTS = 3
TOTAL_REGISTRANTS = 3526
LOCAL_REGISTRANTS = 438


def calculate_odds_for_local() -> float:
    """Percent chance for a local resident across both draws."""
    local_raffle_odds = LOCAL_APARTMENTS / LOCAL_REGISTRANTS
    general_raffle_odds_for_locals = (
        (APARTMENTS - LOCAL_APARTMENTS - DISABLED_APARTMENTS)
        / (TOTAL_REGISTRANTS - LOCAL_APARTMENTS)
    )
    accumulated_local_odds = (
        local_raffle_odds
        + (1 - local_raffle_odds) * general_raffle_odds_for_locals
    )
    return accumulated_local_odds * 100


def calculate_odds_for_general() -> float:
    """
    Percent chance for the general public. Assumes every local apartment went
    to a local: apartments left over / registrants minus local winners.
    """
    odds_for_general = (
        (APARTMENTS - DISABLED_APARTMENTS - LOCAL_APARTMENTS)
        / (TOTAL_REGISTRANTS - LOCAL_APARTMENTS)
    )
    return odds_for_general * 100
