from __future__ import annotations

import pytest

from commute_display.data.cached_responses import CacheMissError, load_cached_response, save_cached_response


def test_saved_response_loads_back(tmp_path) -> None:
    response = {"status": "OK", "routes": [{"legs": [{"duration": {"value": 600}}]}]}

    path = save_cached_response(str(tmp_path / "cache"), "to-heb-walk.json", response)

    assert path.exists()
    assert load_cached_response(str(tmp_path / "cache"), "to-heb-walk.json") == response


def test_missing_cache_file(tmp_path) -> None:
    with pytest.raises(CacheMissError):
        load_cached_response(str(tmp_path), "nope.json")


def test_unreadable_cache_file(tmp_path) -> None:
    (tmp_path / "broken.json").write_text("{not json")
    (tmp_path / "list.json").write_text("[]")

    with pytest.raises(CacheMissError):
        load_cached_response(str(tmp_path), "broken.json")
    with pytest.raises(CacheMissError):
        load_cached_response(str(tmp_path), "list.json")
