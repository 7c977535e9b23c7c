"""
Demo adventure for Terminal Adventure.

A small hand-built adventure that the in-memory backend is seeded with, so
the shell is playable (and editable) without a server.
"""

from __future__ import annotations

from src.models import Adventure, AiCharacterConfig, Character, Item, Location

DEMO_ADVENTURE_ID = "demo-adventure"


def create_demo_adventure() -> Adventure:
    """
    Build the demo adventure.

    Returns an adventure with:
    - A village square as the starting location
    - A tavern, a library and a forest path around it
    - Two scripted characters and one AI-powered librarian
    - A few items to find
    """
    square = Location(
        id="village-square",
        name="Village Square",
        description=(
            "A cobblestone square ringed by timber houses. A dry fountain "
            "stands in the middle, its basin full of autumn leaves."
        ),
        characters=[
            Character(
                id="elder-mira",
                name="Elder Mira",
                dialogue=[
                    "Welcome, traveler. Few find their way to our village these days.",
                    "The library to the north holds more secrets than books.",
                    "Mind the forest path after dark.",
                ],
            )
        ],
        items=[
            Item(
                id="rusty-key",
                name="Rusty Key",
                description="An iron key, orange with rust. The bow is shaped like an owl.",
            )
        ],
    )

    tavern = Location(
        id="tavern",
        name="The Crooked Lantern",
        description=(
            "A low-ceilinged tavern that smells of woodsmoke and spilled ale. "
            "A fire crackles in the hearth."
        ),
        characters=[
            Character(
                id="barkeep-tom",
                name="Barkeep Tom",
                dialogue=[
                    "What'll it be?",
                    "Heard the old librarian talks to anyone who listens. Odd fellow.",
                ],
            )
        ],
        items=[
            Item(
                id="brass-lantern",
                name="Brass Lantern",
                description="A dented lantern with a fresh candle inside.",
            )
        ],
    )

    library = Location(
        id="old-library",
        name="Old Library",
        description=(
            "Shelves climb into darkness. Dust hangs in the light from a single "
            "high window."
        ),
        characters=[
            Character(
                id="librarian-owl",
                name="Archivist Owl",
                is_ai_powered=True,
                personality=(
                    "An ancient, patient archivist who speaks in riddles and loves "
                    "old maps. Knows the history of the village and hints at a "
                    "hidden cellar beneath the library."
                ),
                ai_config=AiCharacterConfig(temperature=0.8, max_tokens=200),
            )
        ],
        items=[
            Item(
                id="faded-map",
                name="Faded Map",
                description="A map of the village with a small X drawn under the library.",
            )
        ],
    )

    forest = Location(
        id="forest-path",
        name="Forest Path",
        description="A narrow path winds between dark pines. Something rustles nearby.",
    )

    square.exits = {"north": library.id, "east": tavern.id, "south": forest.id}
    tavern.exits = {"west": square.id}
    library.exits = {"south": square.id}
    forest.exits = {"north": square.id}

    return Adventure(
        id=DEMO_ADVENTURE_ID,
        name="The Quiet Village",
        description="A sleepy village with a library that keeps its secrets.",
        start_location_id=square.id,
        locations={loc.id: loc for loc in (square, tavern, library, forest)},
    )
