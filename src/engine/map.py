"""
Text maps for the `map` command.

Players see an ASCII grid of the locations they have visited, laid out by
compass exits. Admins see every location of the adventure as an indented
tree that follows north/south/east/west exits from the first location.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.models import Location

# Columns per location cell: the marker, one column for an up/down arrow,
# then the east connector.
CELL_WIDTH = 7

OFFSETS = {
    "north": (0, -1),
    "south": (0, 1),
    "east": (1, 0),
    "west": (-1, 0),
}

PRIMARY_DIRECTIONS = tuple(OFFSETS)

NO_VISITS = "No locations visited yet."
NO_LOCATIONS = "No locations in this adventure."


@dataclass
class MapNode:
    location: Location
    x: int
    y: int
    is_current: bool
    # Exits that lead to other visited locations
    exits: dict[str, str]

    @property
    def vertical_marker(self) -> str:
        up = "up" in self.location.exits
        down = "down" in self.location.exits
        if up and down:
            return "↕"
        if up:
            return "↑"
        if down:
            return "↓"
        return ""


# =============================================================================
# Player map
# =============================================================================


def layout_visited(
    locations: dict[str, Location], visited: list[str], current_id: str | None
) -> list[MapNode]:
    """
    Place visited locations on a grid.

    The first visited location sits at the origin. Each location places its
    visited neighbours one step away in the exit's direction; a position is
    never reassigned once set. Up and down exits do not move on the grid.
    """
    if not visited:
        return []

    seen = set(visited)
    positions: dict[str, tuple[int, int]] = {visited[0]: (0, 0)}
    for location_id in visited:
        location = locations.get(location_id)
        if location is None:
            continue
        x, y = positions.setdefault(location_id, (0, 0))
        for direction, target_id in location.exits.items():
            if target_id not in seen:
                continue
            dx, dy = OFFSETS.get(direction.lower(), (0, 0))
            positions.setdefault(target_id, (x + dx, y + dy))

    nodes = []
    for location_id in visited:
        location = locations.get(location_id)
        if location is None:
            continue
        x, y = positions[location_id]
        nodes.append(
            MapNode(
                location=location,
                x=x,
                y=y,
                is_current=location_id == current_id,
                exits={d: t for d, t in location.exits.items() if t in seen},
            )
        )
    return nodes


def render_grid(nodes: list[MapNode]) -> list[str]:
    if not nodes:
        return ["No locations to display."]

    min_x = min(n.x for n in nodes)
    max_x = max(n.x for n in nodes)
    min_y = min(n.y for n in nodes)
    max_y = max(n.y for n in nodes)

    width = (max_x - min_x + 1) * CELL_WIDTH + 1
    height = (max_y - min_y + 1) * 2
    grid = [[" "] * width for _ in range(height)]
    by_id = {n.location.id: n for n in nodes}

    for node in nodes:
        col = (node.x - min_x) * CELL_WIDTH + 1
        row = (node.y - min_y) * 2
        marker = "[@]" if node.is_current else "[*]"
        grid[row][col : col + 3] = list(marker)
        if node.vertical_marker:
            grid[row][col + 3] = node.vertical_marker

        # Only east and south are drawn; the opposite exit draws the same line.
        for direction, target_id in node.exits.items():
            if target_id not in by_id:
                continue
            if direction.lower() == "east":
                grid[row][col + 4 : col + 7] = ["─"] * 3
            elif direction.lower() == "south":
                grid[row + 1][col + 1] = "│"

    lines = ["=== Map ===", ""]
    for cells in grid:
        line = "".join(cells).rstrip()
        if line:
            lines.append(line)
    return lines


def render_player_map(
    locations: dict[str, Location], visited: list[str], current_id: str | None
) -> list[str]:
    """Grid of visited locations followed by a legend."""
    if not visited:
        return [NO_VISITS]

    return [
        *render_grid(layout_visited(locations, visited, current_id)),
        "",
        "Legend:",
        "  [@] - Your location",
        "  [*] - Visited location",
        "  │─  - Connections",
        "  ↑↓  - Up/Down exits",
        "",
        f"Locations visited: {len(visited)}",
    ]


# =============================================================================
# Admin map
# =============================================================================


def _render_tree(
    locations: dict[str, Location],
    location_id: str,
    selected_id: str | None,
    seen: set[str],
    output: list[str],
    depth: int,
) -> None:
    if location_id in seen:
        return
    seen.add(location_id)
    location = locations.get(location_id)
    if location is None:
        return

    indent = "  " * depth
    marker = "[*]" if location_id == selected_id else "[ ]"
    output.append(f"{indent}{marker} {location.name} ({location.id})")
    if location.exits:
        exits = []
        for direction, target_id in location.exits.items():
            target = locations.get(target_id)
            exits.append(f"{direction} → {target.name if target else target_id}")
        output.append(f"{indent}    Exits: {', '.join(exits)}")

    for direction, target_id in location.exits.items():
        if direction.lower() in PRIMARY_DIRECTIONS:
            _render_tree(locations, target_id, selected_id, seen, output, depth + 1)


def render_admin_map(locations: dict[str, Location], selected_id: str | None = None) -> list[str]:
    """Every location as a tree; locations not reached from the first one follow."""
    if not locations:
        return [NO_LOCATIONS]

    output = ["=== Adventure Map ===", ""]
    seen: set[str] = set()
    ordered = list(locations)
    _render_tree(locations, ordered[0], selected_id, seen, output, 0)
    for location_id in ordered[1:]:
        if location_id not in seen:
            output.extend(["", "--- Disconnected ---"])
            _render_tree(locations, location_id, selected_id, seen, output, 0)

    output.extend(
        [
            "",
            f"Total locations: {len(locations)}",
            "",
            "Legend:",
            "  [*] - Selected location",
            "  →   - Connection direction",
        ]
    )
    return output
