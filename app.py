# app.py
# -------------------------------
# Flask application entry point and CLI commands.
# Uses the app-factory pattern.
#
# Why this file exists and what it does:
#   - Creates and configures the Flask app (via create_app).
#   - Serves the lottery table, city list, grid columns, subscriber counts
#     and odds as JSON for the dashboard front end.
#   - Provides `flask` CLI helpers for fetching subscribers offline.
# -------------------------------

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import click
from flask import Flask, jsonify, request

from data_fetchers.local_data import LocalDataError, load_local_housing, load_lotteries
from data_fetchers.subscribers import (
    ON_ERROR_SKIP,
    fetch_all_subscribers,
    merge_subscribers,
)
from grid_columns import get_column_defs
from lottery_logic import (
    calculate_odds_for_general,
    calculate_odds_for_local,
    enrich_data,
    get_cities,
)
from providers.dira_api import RemoteDataError
from util.formatting import format_currency, format_number

logger = logging.getLogger(__name__)


# ---------- App Factory ----------

def create_app() -> Flask:
    """
    Create and configure the Flask app:
      - Loads configuration from config.Config
      - Sets up logging
      - Registers routes, error handlers and CLI commands
    """
    app = Flask(__name__)
    app.config.from_object("config.Config")
    app.json.ensure_ascii = False

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ----- Helpers -----

    def load_raw_rows() -> List[Dict[str, Any]]:
        return load_lotteries(app.config["LOTTERY_DATA_PATH"])

    def load_enriched_rows() -> List[Dict[str, Any]]:
        return enrich_data(load_raw_rows(),
                           load_local_housing(app.config["LOCAL_HOUSING_PATH"]))

    def run_subscribers(rows, on_error: Optional[str] = None) -> Dict[Any, Dict[str, int]]:
        """Run the batched fetch on a fresh event loop using the app's config."""
        cfg = app.config
        return asyncio.run(fetch_all_subscribers(
            rows,
            url=cfg["DIRA_API_URL"],
            batch_size=cfg["SUBSCRIBERS_BATCH_SIZE"],
            on_error=on_error or cfg["SUBSCRIBERS_ON_ERROR"],
            timeout=cfg["SUBSCRIBERS_TIMEOUT"],
        ))

    # ----- Error handlers -----

    @app.errorhandler(RemoteDataError)
    def handle_remote_error(ex: RemoteDataError):
        logger.error("api.subscribers failed project=%s lottery=%s err=%s",
                     ex.project, ex.lottery, ex.reason)
        return jsonify(error=ex.reason, project=ex.project, lottery=ex.lottery), 502

    @app.errorhandler(LocalDataError)
    @app.errorhandler(FileNotFoundError)
    def handle_local_data_error(ex: Exception):
        logger.error("api.local_data err=%s", ex)
        return jsonify(error=str(ex)), 500

    # ----- Routes -----

    @app.route("/api/lotteries")
    def lotteries():
        """
        Enriched lottery rows. Optional query params:
          ?city=<CityCode>    only rows for that city
          ?subscribers=1      also fetch and merge live subscriber counts
        """
        rows = load_enriched_rows()

        city = request.args.get("city")
        if city:
            rows = [r for r in rows if str(r.get("CityCode")) == city]

        if request.args.get("subscribers") == "1" and app.config["ENABLE_LIVE_SUBSCRIBERS"]:
            rows = merge_subscribers(rows, run_subscribers(rows))

        return jsonify(rows)

    @app.route("/api/cities")
    def cities():
        return jsonify([
            {"code": code, "description": description}
            for code, description in get_cities(load_raw_rows())
        ])

    @app.route("/api/columns")
    def columns():
        return jsonify([c.to_dict() for c in get_column_defs()])

    @app.route("/api/subscribers")
    def subscribers():
        """Subscriber counts keyed by lottery number ({} when live fetch is off)."""
        if not app.config["ENABLE_LIVE_SUBSCRIBERS"]:
            return jsonify({})
        return jsonify(run_subscribers(load_raw_rows()))

    @app.route("/api/odds")
    def odds():
        return jsonify(local=calculate_odds_for_local(),
                       general=calculate_odds_for_general())

    @app.route("/api/format")
    def format_preview():
        value = request.args.get("value")
        style = request.args.get("style", "number")
        if style == "currency":
            return jsonify(text=format_currency(value))
        if style == "number":
            return jsonify(text=format_number(value))
        return jsonify(error=f"Unknown style: {style}"), 400

    # ----- CLI Commands -----

    @app.cli.command("fetch-subscribers")
    @click.option("--output", "output_path", required=False,
                  help="Write the subscriber map as JSON to this file")
    @click.option("--skip-errors", is_flag=True,
                  help="Leave out lotteries that fail instead of aborting")
    def fetch_subscribers_cmd(output_path: str | None, skip_errors: bool):
        """
        Fetch subscriber counts for every lottery in the local table.
        Example:
            flask fetch-subscribers --output data/subscribers.json
        """
        rows = load_raw_rows()
        try:
            result = run_subscribers(rows, ON_ERROR_SKIP if skip_errors else None)
        except RemoteDataError as ex:
            click.echo(f"❌ Failed on project {ex.project}, lottery {ex.lottery}: {ex.reason}")
            raise SystemExit(1)

        text = json.dumps(result, ensure_ascii=False, indent=2)
        if output_path:
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(text)
            click.echo(f"✅ Subscribers for {len(result)}/{len(rows)} lotteries written to {output_path}")
        else:
            click.echo(text)

    @app.cli.command("show-odds")
    def show_odds_cmd():
        """Print the example odds for project #1943."""
        click.echo(f"Local resident: {calculate_odds_for_local():.2f}%")
        click.echo(f"General public: {calculate_odds_for_general():.2f}%")

    @app.cli.command("list-cities")
    def list_cities_cmd():
        """List the cities found in the lottery table."""
        for code, description in get_cities(load_raw_rows()):
            click.echo(f"{code}\t{description}")

    return app


# ---------- Dev Server ----------

if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=False)
