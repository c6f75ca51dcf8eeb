import json

import run
from route_discovery.discovery import RouteDiscoveryService
from route_discovery.result_cache import ResultCache


class FakePlacesClient:
    def __init__(self):
        self.route_calls = 0

    def search_along_route(self, encoded_polyline, included_types, min_rating=0.0, field_mask=None):
        self.route_calls += 1
        return {
            "places": [
                {"id": "c1", "displayName": {"text": "Corner Cafe"}, "types": ["cafe"], "rating": 4.4},
                {"id": "c2", "displayName": {"text": "Sad Cafe"}, "types": ["cafe"], "rating": 2.1},
            ]
        }

    def search_nearby(self, center, included_types, radius_m=500, min_rating=0.0, field_mask=None):
        return {"places": []}


def write_route(tmp_path, payload):
    path = tmp_path / "route.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_main_writes_outputs(tmp_path, monkeypatch):
    client = FakePlacesClient()
    service = RouteDiscoveryService(client, cache=ResultCache(clock=lambda: 0.0))
    monkeypatch.setattr(run, "build_service", lambda platform=None: service)
    monkeypatch.setattr(run, "load_env", lambda: None)

    route = write_route(
        tmp_path,
        {
            "coordinates": [
                {"latitude": 52.2297, "longitude": 21.0122},
                {"latitude": 52.2477, "longitude": 21.0122},
            ],
            "preferences": {"placeTypes": {"cafe": True}, "minRating": 4.0},
        },
    )
    out_dir = tmp_path / "out"

    code = run.main(
        [route, "--out", str(out_dir), "--csv", "--category-stats", "--config", str(tmp_path / "none.json")]
    )

    assert code == 0
    assert client.route_calls == 1
    places = json.loads((out_dir / "places.json").read_text(encoding="utf-8"))
    assert [p["id"] for p in places] == ["c1"]
    assert (out_dir / "places.csv").exists()
    stats = json.loads((out_dir / "category_stats.json").read_text(encoding="utf-8"))
    assert stats["counts"]["Food & Dining"] == 1
    summary = (out_dir / "summary.txt").read_text(encoding="utf-8")
    assert "Places discovered: 1" in summary


def test_main_rejects_invalid_route(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(run, "load_env", lambda: None)
    route = write_route(tmp_path, [{"latitude": 123.0, "longitude": 0.0}])
    assert run.main([route, "--config", str(tmp_path / "none.json")]) == 2
    assert "Invalid route" in capsys.readouterr().out


def test_main_validate_preferences(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(run, "load_env", lambda: None)
    route = write_route(tmp_path, [{"latitude": 52.0, "longitude": 21.0}])
    prefs = tmp_path / "prefs.json"
    prefs.write_text(json.dumps({"placeTypes": {"museum": True}, "minRating": 4.8}), encoding="utf-8")

    code = run.main([route, "--preferences", str(prefs), "--validate-preferences", "--config", str(tmp_path / "none.json")])

    assert code == 0
    report = json.loads(capsys.readouterr().out)
    assert "Very high minimum rating may result in few discoveries" in report["warnings"]
