"""Tests for the server-assembled calendar grid."""
from tests.conftest import create_test_company, create_test_event, create_test_user, utc


def _setup(client):
    user = create_test_user(client, name="Analyst", tz="UTC")
    aapl = create_test_company(client, "AAPL", "Apple Inc.")
    msft = create_test_company(client, "MSFT", "Microsoft Corp.")
    for index, company in enumerate((aapl, msft)):
        client.put("/api/companies/order", json={
            "user_id": user["user_id"], "company_id": company["id"], "new_index": index,
        })
    summit = create_test_event(
        client, utc(2024, 3, 4, 9), utc(2024, 3, 6, 17), title="Cloud Summit",
        company_ids=[aapl["id"], msft["id"]],
        hosts=[{"host_type": "multi_corp", "co_hosts": [
            {"company_id": aapl["id"], "ticker": "AAPL", "name": "Apple Inc."},
            {"company_id": msft["id"], "ticker": "MSFT", "name": "Microsoft Corp.", "is_primary": True},
        ]}],
        virtual_details={"platform": "Zoom", "meeting_url": "https://zoom.us/j/1"},
    )
    call = create_test_event(
        client, utc(2024, 3, 5, 21), title="Q1 Earnings Call", company_ids=[msft["id"]],
        event_type="catalyst",
    )
    fomc = create_test_event(
        client, utc(2024, 3, 7, 18), title="FOMC Statement",
        hosts=[{"host_type": "non_company", "organization_name": "Federal Reserve"}],
    )
    client.put("/api/responses/", json={
        "user_id": user["user_id"], "event_id": summit["id"], "status": "accepted",
    })
    return user, {"summit": summit, "call": call, "fomc": fomc}


def _grid(client, user, **params):
    resp = client.get("/api/calendar/grid", params={"user_id": user["user_id"], "anchor": "2024-03-06", **params})
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestCalendarGrid:

    def test_week_layout(self, client):
        user, _ = _setup(client)
        grid = _grid(client, user)
        assert grid["range_start"] == "2024-03-04"
        assert grid["range_end"] == "2024-03-10"
        assert grid["week_number"] == 10
        assert [c["label"] for c in grid["columns"]][:2] == ["MON 4", "TUE 5"]
        assert [r["company"]["ticker_symbol"] for r in grid["rows"]] == ["AAPL", "MSFT"]
        assert all(len(r["cells"]) == 7 for r in grid["rows"])

    def test_cells_and_unplaced(self, client):
        user, events = _setup(client)
        grid = _grid(client, user)
        aapl, msft = grid["rows"]
        assert [len(cell) for cell in aapl["cells"]] == [1, 1, 1, 0, 0, 0, 0]
        assert [len(cell) for cell in msft["cells"]] == [1, 2, 1, 0, 0, 0, 0]
        assert [e["id"] for e in msft["cells"][1]] == [events["summit"]["id"], events["call"]["id"]]
        assert [e["id"] for e in grid["unplaced"]] == [events["fomc"]["id"]]
        assert msft["event_count"] == 2

    def test_event_display_fields(self, client):
        user, _ = _setup(client)
        summit = _grid(client, user)["rows"][0]["cells"][0][0]
        assert summit["host"]["display_name"] == "Microsoft Corp."
        assert summit["host"]["label"] == "Multi-Corporate"
        assert summit["location_text"] == "Zoom - https://zoom.us/j/1"
        assert summit["rsvp_status"] == "accepted"
        assert summit["color_code"] == "green"
        assert summit["company_tickers"] == ["AAPL", "MSFT"]

    def test_filters_and_badges(self, client):
        user, events = _setup(client)
        grid = _grid(client, user, rsvp="pending")
        placed = {e["id"] for row in grid["rows"] for cell in row["cells"] for e in cell}
        assert placed == {events["call"]["id"]}
        assert grid["badges"] == {"all": 3, "pending": 2, "accepted": 1, "declined": 0}

        catalysts = _grid(client, user, event_type="catalyst", search="earnings")
        assert catalysts["rows"][1]["event_count"] == 1
        assert catalysts["unplaced"] == []

    def test_my_events_scope(self, client):
        user, events = _setup(client)
        grid = _grid(client, user, scope="my_events")
        placed = {e["id"] for row in grid["rows"] for cell in row["cells"] for e in cell}
        assert placed == {events["summit"]["id"]}

    def test_month_view_with_day_counts(self, client):
        user, _ = _setup(client)
        grid = _grid(client, user, view_mode="month", include_day_counts=True)
        assert len(grid["columns"]) == 42
        assert grid["range_start"] == "2024-02-26"
        assert grid["day_counts"]["2024-03-05"] == {"pending": 1, "accepted": 1, "declined": 0}

    def test_invalid_filter_rejected(self, client):
        user, _ = _setup(client)
        resp = client.get("/api/calendar/grid", params={"user_id": user["user_id"], "rsvp": "maybe"})
        assert resp.status_code == 422

    def test_unknown_user(self, client):
        resp = client.get("/api/calendar/grid", params={"user_id": "no-such-user", "anchor": "2024-03-06"})
        assert resp.status_code == 404


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}
