"""Built-in levels used for the first level and whenever generation fails."""

from typing import List

from robologic.schemas import LevelData

GRID_SIZE = 5

FALLBACK_LEVELS: List[LevelData] = [
    LevelData(
        id=1,
        grid_size=GRID_SIZE,
        layout=[
            "S....",
            ".XXX.",
            "....C",
            ".XXX.",
            "....G",
        ],
        story=(
            "Selamat datang, Kadet! Robot kita, Robo, perlu mencapai pangkalan (G) "
            "untuk mengisi daya. Hati-hati dengan batu meteor (X) dan ambil koin (C)!"
        ),
        difficulty="Easy",
        par=8,
    ),
    LevelData(
        id=2,
        grid_size=GRID_SIZE,
        layout=[
            "S.X..",
            "..X.C",
            ".X..X",
            "C...X",
            ".X.G.",
        ],
        story="Misi kedua: Jalur asteroid! Gunakan logikamu untuk menemukan jalan teraman.",
        difficulty="Medium",
        par=10,
    ),
]


def fallback_level(level_number: int) -> LevelData:
    """Cycle through the built-in table, renumbered to ``level_number``."""

    index = (level_number - 1) % len(FALLBACK_LEVELS)
    return FALLBACK_LEVELS[index].model_copy(update={"id": level_number}, deep=True)
