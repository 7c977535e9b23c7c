"""
Tests for the player grid map and the admin tree map.
"""

from __future__ import annotations

import pytest

from src.content.demo_adventure import create_demo_adventure
from src.engine.map import NO_LOCATIONS, NO_VISITS, layout_visited, render_admin_map, render_player_map
from src.models import Location


@pytest.fixture
def locations() -> dict[str, Location]:
    return create_demo_adventure().locations


# =============================================================================
# Player Map Tests
# =============================================================================


class TestPlayerMap:
    def test_nothing_visited(self, locations) -> None:
        assert render_player_map(locations, [], None) == [NO_VISITS]

    def test_single_location(self, locations) -> None:
        output = render_player_map(locations, ["village-square"], "village-square")
        assert output[:3] == ["=== Map ===", "", " [@]"]
        assert output[-1] == "Locations visited: 1"
        assert "  [@] - Your location" in output

    def test_east_connection(self, locations) -> None:
        output = render_player_map(locations, ["village-square", "tavern"], "tavern")
        assert " [*] ───[@]" in output
        assert output[-1] == "Locations visited: 2"

    def test_north_south_connection(self, locations) -> None:
        output = render_player_map(locations, ["village-square", "old-library"], "village-square")
        grid = output[2:5]
        assert grid == [" [*]", "  │", " [@]"]

    def test_unvisited_neighbours_stay_off_the_map(self, locations) -> None:
        nodes = layout_visited(locations, ["village-square", "forest-path"], "forest-path")
        square, forest = nodes
        assert (square.x, square.y) == (0, 0)
        assert (forest.x, forest.y) == (0, 1)
        assert square.exits == {"south": "forest-path"}
        assert forest.is_current

    def test_vertical_exits_marked(self, locations) -> None:
        locations["tavern"].exits["down"] = "forest-path"
        output = render_player_map(locations, ["tavern"], "tavern")
        assert " [@]↓" in output


# =============================================================================
# Admin Map Tests
# =============================================================================


class TestAdminMap:
    def test_no_locations(self) -> None:
        assert render_admin_map({}) == [NO_LOCATIONS]

    def test_tree_from_first_location(self, locations) -> None:
        output = render_admin_map(locations, "tavern")
        assert output[:8] == [
            "=== Adventure Map ===",
            "",
            "[ ] Village Square (village-square)",
            "    Exits: north → Old Library, east → The Crooked Lantern, south → Forest Path",
            "  [ ] Old Library (old-library)",
            "      Exits: south → Village Square",
            "  [*] The Crooked Lantern (tavern)",
            "      Exits: west → Village Square",
        ]
        assert "Total locations: 4" in output
        assert "--- Disconnected ---" not in output

    def test_disconnected_locations_listed(self, locations) -> None:
        locations["grotto"] = Location(id="grotto", name="Hidden Grotto")
        output = render_admin_map(locations)
        marker = output.index("--- Disconnected ---")
        assert output[marker + 1] == "[ ] Hidden Grotto (grotto)"
        assert "Total locations: 5" in output

    def test_missing_exit_target_shows_id(self, locations) -> None:
        locations["tavern"].exits["down"] = "cellar"
        output = render_admin_map(locations)
        assert "      Exits: west → Village Square, down → cellar" in output
