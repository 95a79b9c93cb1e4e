# tests/test_smoke.py
# -------------------------------
# Smoke tests for the Flask app: JSON routes and CLI commands, against small
# data files in a temp folder. Live fetching is faked; no internet required.
# Run with: pytest -q
# -------------------------------

import json

import pytest

from app import create_app
from providers.dira_api import RemoteDataError, SubscriberCounts

ROWS = [
    {"LotteryNumber": "1943", "ProjectNumber": "2275", "CityCode": "8600",
     "CityDescription": "רמת גן", "PricePerUnit": 12500, "GrantSize": 0,
     "LotteryApparmentsNum": 102},
    {"LotteryNumber": "1950", "ProjectNumber": "2281", "CityCode": "2640",
     "CityDescription": "ראש העין", "PricePerUnit": 8900, "GrantSize": 40000,
     "LotteryApparmentsNum": 240},
]


@pytest.fixture
def app(tmp_path):
    lotteries = tmp_path / "lotteries.json"
    lotteries.write_text(json.dumps(ROWS, ensure_ascii=False), encoding="utf-8")
    local = tmp_path / "local_housing.csv"
    local.write_text("LotteryNumber,LocalHousing\n1943,51\n", encoding="utf-8")

    app = create_app()
    app.config.update(
        TESTING=True,
        LOTTERY_DATA_PATH=str(lotteries),
        LOCAL_HOUSING_PATH=str(local),
        ENABLE_LIVE_SUBSCRIBERS=True,
        SUBSCRIBERS_ON_ERROR="raise",
    )
    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def fake_dira(monkeypatch):
    """Replace the Dira fetcher; lotteries listed in `failing` raise."""
    failing = set()

    async def fake_fetch(project, lottery, *, client=None, url=None, timeout=None):
        if lottery in failing:
            raise RemoteDataError("No ProjectItems in response",
                                  project=project, lottery=lottery)
        return SubscriberCounts(total_subscribers=1000, total_local_subscribers=100)

    monkeypatch.setattr("data_fetchers.subscribers.fetch_subscribers", fake_fetch)
    return failing


def test_lotteries_route_enriches_rows(client):
    resp = client.get("/api/lotteries")
    assert resp.status_code == 200
    rows = resp.get_json()
    assert [r["LotteryNumber"] for r in rows] == ["1943", "1950"]
    assert rows[0]["LocalHousing"] == 51
    assert rows[1]["LocalHousing"] is None
    assert rows[0]["CityDescription"] == "רמת גן"


def test_lotteries_route_filters_by_city(client):
    rows = client.get("/api/lotteries?city=2640").get_json()
    assert [r["LotteryNumber"] for r in rows] == ["1950"]


def test_lotteries_route_merges_subscribers(client, fake_dira):
    rows = client.get("/api/lotteries?subscribers=1").get_json()
    assert rows[0]["_registrants"] == 1000
    assert rows[0]["_localRegistrants"] == 100


def test_cities_route(client):
    assert client.get("/api/cities").get_json() == [
        {"code": "8600", "description": "רמת גן"},
        {"code": "2640", "description": "ראש העין"},
    ]


def test_columns_route(client):
    columns = client.get("/api/columns").get_json()
    assert len(columns) == 12
    assert columns[0] == {"field": "LotteryNumber", "headerName": "הגרלה",
                          "minWidth": 85, "maxWidth": 85}


def test_subscribers_route(client, fake_dira):
    resp = client.get("/api/subscribers")
    assert resp.status_code == 200
    assert resp.get_json() == {
        "1943": {"_registrants": 1000, "_localRegistrants": 100},
        "1950": {"_registrants": 1000, "_localRegistrants": 100},
    }


def test_subscribers_route_reports_failing_lottery(client, fake_dira):
    fake_dira.add("1950")
    resp = client.get("/api/subscribers")
    assert resp.status_code == 502
    body = resp.get_json()
    assert body["project"] == "2281"
    assert body["lottery"] == "1950"


def test_subscribers_route_skip_policy(app, client, fake_dira):
    fake_dira.add("1950")
    app.config["SUBSCRIBERS_ON_ERROR"] = "skip"
    assert list(client.get("/api/subscribers").get_json()) == ["1943"]


def test_subscribers_route_disabled(app, client):
    app.config["ENABLE_LIVE_SUBSCRIBERS"] = False
    assert client.get("/api/subscribers").get_json() == {}


def test_odds_route(client):
    body = client.get("/api/odds").get_json()
    assert body["local"] > body["general"] > 0


def test_format_route(client):
    assert client.get("/api/format?value=3526").get_json() == {"text": "3,526"}
    text = client.get("/api/format?value=9500&style=currency").get_json()["text"]
    assert "9,500" in text and text.endswith("₪")
    assert client.get("/api/format?value=1&style=roman").status_code == 400


def test_missing_data_file_is_json_error(app, client, tmp_path):
    app.config["LOTTERY_DATA_PATH"] = str(tmp_path / "nope.json")
    resp = client.get("/api/cities")
    assert resp.status_code == 500
    assert "error" in resp.get_json()


# ---------- CLI ----------

def test_cli_show_odds(app):
    result = app.test_cli_runner().invoke(args=["show-odds"])
    assert result.exit_code == 0
    assert "Local resident:" in result.output
    assert "General public:" in result.output


def test_cli_list_cities(app):
    result = app.test_cli_runner().invoke(args=["list-cities"])
    assert result.exit_code == 0
    assert "8600\tרמת גן" in result.output


def test_cli_fetch_subscribers_writes_file(app, fake_dira, tmp_path):
    out = tmp_path / "subscribers.json"
    result = app.test_cli_runner().invoke(args=["fetch-subscribers", "--output", str(out)])
    assert result.exit_code == 0
    assert json.loads(out.read_text(encoding="utf-8"))["1943"]["_registrants"] == 1000


def test_cli_fetch_subscribers_failure_exit_code(app, fake_dira):
    fake_dira.add("1943")
    result = app.test_cli_runner().invoke(args=["fetch-subscribers"])
    assert result.exit_code == 1
    assert "1943" in result.output


def test_cli_fetch_subscribers_skip_errors(app, fake_dira):
    fake_dira.add("1943")
    result = app.test_cli_runner().invoke(args=["fetch-subscribers", "--skip-errors"])
    assert result.exit_code == 0
    assert json.loads(result.output) == {"1950": {"_registrants": 1000, "_localRegistrants": 100}}


def test_subscribers_route_uses_configured_timeout(app, client, monkeypatch):
    import httpx

    created = []
    real_client = httpx.AsyncClient

    def make_client(**kwargs):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={
            "ProjectItems": [{"LotteryStageSummery": {"TotalLocalSubscribers": 4,
                                                      "TotalSubscribers": 40}}]}))
        created.append(kwargs)
        return real_client(transport=transport, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", make_client)
    app.config["SUBSCRIBERS_TIMEOUT"] = 4.0

    resp = client.get("/api/subscribers")

    assert resp.status_code == 200
    assert resp.get_json()["1950"] == {"_registrants": 40, "_localRegistrants": 4}
    assert created == [{"timeout": 4.0}]
