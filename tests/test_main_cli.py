import importlib
import json

import pytest

from conftest import (
    DESTINATION,
    ORIGIN,
    WAYPOINT,
    FakeDirections,
    make_route,
    make_two_leg_route,
)

from gremind.errors import DirectionsStatusError

# The package re-exports the ``main`` function under the same name.
cli = importlib.import_module("gremind.main")


@pytest.fixture
def fake_directions(monkeypatch):
    holder = {}

    def _install(*results):
        directions = FakeDirections(*results)
        holder["directions"] = directions
        monkeypatch.setattr(cli, "DirectionsAPI", lambda **kwargs: directions)
        return directions

    monkeypatch.setattr(cli, "PUSH_ENDPOINT_URL", "")
    return _install


def test_reoptimize_prints_optimized_order(fake_directions, capsys):
    fake_directions(make_route([ORIGIN, WAYPOINT, DESTINATION], waypoint_order=(1, 0)))
    rc = cli.main(["reoptimize", "--origin", "37.422,-122.084", "Bank", "Bakery", "Home"])

    assert rc == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines == ["1. Bakery", "2. Bank", "3. Home (destination)"]


def test_reoptimize_keeps_order_when_provider_fails(fake_directions, capsys):
    fake_directions(DirectionsStatusError("OVER_QUERY_LIMIT"))
    rc = cli.main(["reoptimize", "--origin", "Office", "Bank", "Home"])
    assert rc == 0
    assert capsys.readouterr().out.splitlines() == ["1. Bank", "2. Home (destination)"]


def test_replay_walks_trace_and_writes_map(fake_directions, tmp_path, caplog):
    directions = fake_directions(make_two_leg_route())
    trace = tmp_path / "trace.json"
    trace.write_text(
        json.dumps(
            [
                {"lat": WAYPOINT.lat, "lng": WAYPOINT.lng, "timestampMs": 2_000},
                {"lat": DESTINATION.lat, "lng": DESTINATION.lng, "timestampMs": 3_000},
            ]
        ),
        encoding="utf-8",
    )
    output = tmp_path / "route.html"

    with caplog.at_level("INFO"):
        rc = cli.main(
            [
                "replay",
                "--origin",
                str(ORIGIN),
                "--destination",
                str(DESTINATION),
                "--waypoint",
                str(WAYPOINT),
                "--trace",
                str(trace),
                "--task-id",
                "task-1",
                "--map",
                str(output),
            ]
        )

    assert rc == 0
    assert output.exists()
    assert "Turn left onto Charleston Rd" in caplog.text
    assert "Nearby: You're 0m away" in caplog.text
    assert directions.calls[0]["waypoints"] == [WAYPOINT]


def test_replay_missing_trace_fails(fake_directions, tmp_path):
    fake_directions()
    rc = cli.main(
        [
            "replay",
            "--origin",
            "A",
            "--destination",
            "B",
            "--trace",
            str(tmp_path / "missing.json"),
        ]
    )
    assert rc == 1
