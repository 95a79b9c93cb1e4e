# config.py
# -------------------------------
# Centralized configuration.
# Values come from the environment (and .env if present) so the dashboard
# can point at a different API or data folder without code changes.
# -------------------------------

import os

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
DATA_DIR = os.path.join(BASE_DIR, "data")


class Config:
    SECRET_KEY = os.environ.get("DIRA_SECRET_KEY", "dev-key-not-for-production")

    # -------------------------------
    # Dira API (subscriber counts)
    # SUBSCRIBERS_ON_ERROR: "raise" fails the whole run on the first bad
    # lottery, "skip" logs it and keeps going.
    # -------------------------------
    DIRA_API_URL = os.environ.get(
        "DIRA_API_URL", "https://www.dira.moch.gov.il/api/Invoker"
    ).strip()
    ENABLE_LIVE_SUBSCRIBERS = os.environ.get(
        "ENABLE_LIVE_SUBSCRIBERS", "true").lower() == "true"
    SUBSCRIBERS_BATCH_SIZE = int(os.environ.get("SUBSCRIBERS_BATCH_SIZE", "10"))
    SUBSCRIBERS_TIMEOUT = float(os.environ.get("SUBSCRIBERS_TIMEOUT", "10"))
    SUBSCRIBERS_ON_ERROR = os.environ.get("SUBSCRIBERS_ON_ERROR", "raise").lower()

    # Local data files
    LOTTERY_DATA_PATH = os.environ.get(
        "LOTTERY_DATA_PATH", os.path.join(DATA_DIR, "lotteries.json"))
    LOCAL_HOUSING_PATH = os.environ.get(
        "LOCAL_HOUSING_PATH", os.path.join(DATA_DIR, "local_housing.csv"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
