"""
Name banks for palette colors.

Each bank maps a tone bucket (dark / medium / light) to candidate names.
Hue families partition the wheel; ranges are [start, end) and the first
family wraps around 0 degrees.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

ToneNames = Dict[str, List[str]]

TONES = ("dark", "medium", "light")

NEUTRAL_SATURATION = 12
NEUTRAL_EXTREME_SATURATION = 18
EARTH_SATURATION_MIN = 10
EARTH_SATURATION_MAX = 45
EARTH_HUE_RANGE = (20, 70)


@dataclass(frozen=True)
class HuePalette:
    family: str
    hue_range: Tuple[int, int]
    names: ToneNames


NEUTRAL_NAMES: ToneNames = {
    "dark": ["Obsidian Ash", "Charcoal Drift", "Inkstone Gray", "Shadow Slate", "Steel Night"],
    "medium": ["Fogbound Slate", "Dove Feather", "Silver Haze", "Stone Mist", "Ash Cloud"],
    "light": ["Pearl Mist", "Cloud Linen", "Frosted Ivory", "Moonlit Silk", "Vapor White"],
}

EARTH_TONES: ToneNames = {
    "dark": ["Roasted Umber", "Espresso Soil", "Chestnut Bark", "Mahogany Shadow", "Coffee Bean"],
    "medium": ["Copper Canyon", "Amber Clay", "Russet Trail", "Terra Sienna", "Canyon Stone"],
    "light": ["Sandstone Glow", "Golden Wheat", "Honey Dust", "Desert Sand", "Warm Linen"],
}

HUE_PALETTES: List[HuePalette] = [
    HuePalette("Crimson", (345, 20), {
        "dark": ["Garnet", "Merlot", "Burgundy", "Wine Red", "Ruby"],
        "medium": ["Scarlet", "Cherry", "Vermilion", "Cardinal", "Poppy"],
        "light": ["Rose", "Coral", "Blush", "Pink", "Salmon"],
    }),
    HuePalette("Copper", (20, 45), {
        "dark": ["Copper", "Burnt Sienna", "Rust", "Bronze", "Clay"],
        "medium": ["Tangerine", "Persimmon", "Pumpkin", "Terracotta", "Autumn"],
        "light": ["Apricot", "Peach", "Coral", "Melon", "Cantaloupe"],
    }),
    HuePalette("Solar", (45, 75), {
        "dark": ["Amber", "Goldenrod", "Ochre", "Bronze", "Honey"],
        "medium": ["Sunflower", "Citrine", "Marigold", "Saffron", "Gold"],
        "light": ["Lemon", "Butter", "Champagne", "Cream", "Vanilla"],
    }),
    HuePalette("Lime", (75, 110), {
        "dark": ["Olive", "Moss", "Forest", "Jade", "Hunter"],
        "medium": ["Lime", "Chartreuse", "Grass", "Sage", "Kiwi"],
        "light": ["Celery", "Mint", "Pistachio", "Spring", "Tea"],
    }),
    HuePalette("Verdant", (110, 150), {
        "dark": ["Pine", "Spruce", "Evergreen", "Jungle", "Emerald"],
        "medium": ["Meadow", "Fern", "Clover", "Kelly", "Grass"],
        "light": ["Mint", "Seafoam", "Celadon", "Sage", "Laurel"],
    }),
    HuePalette("Emerald", (150, 185), {
        "dark": ["Teal", "Jade", "Viridian", "Malachite", "Cypress"],
        "medium": ["Emerald", "Turquoise", "Caribbean", "Tropical", "Aquamarine"],
        "light": ["Seafoam", "Aqua", "Mint", "Sea Glass", "Foam"],
    }),
    HuePalette("Lagoon", (185, 210), {
        "dark": ["Teal", "Cyan", "Ocean", "Peacock", "Marine"],
        "medium": ["Lagoon", "Aqua", "Turquoise", "Caribbean", "Lapis"],
        "light": ["Sky Blue", "Pool", "Aqua", "Ice", "Mist"],
    }),
    HuePalette("Azure", (210, 240), {
        "dark": ["Navy", "Cobalt", "Sapphire", "Midnight", "Indigo"],
        "medium": ["Azure", "Cerulean", "Sky", "Ocean", "Pacific"],
        "light": ["Powder Blue", "Baby Blue", "Periwinkle", "Alice Blue", "Ice"],
    }),
    HuePalette("Indigo", (240, 275), {
        "dark": ["Indigo", "Sapphire", "Midnight", "Royal", "Navy"],
        "medium": ["Iris", "Periwinkle", "Cornflower", "Blue Violet", "Hyacinth"],
        "light": ["Lavender", "Lilac", "Wisteria", "Mauve", "Thistle"],
    }),
    HuePalette("Violet", (275, 305), {
        "dark": ["Amethyst", "Purple", "Plum", "Eggplant", "Grape"],
        "medium": ["Violet", "Orchid", "Purple", "Iris", "Heather"],
        "light": ["Lilac", "Lavender", "Orchid", "Mauve", "Periwinkle"],
    }),
    HuePalette("Magenta", (305, 330), {
        "dark": ["Plum", "Mulberry", "Wine", "Eggplant", "Maroon"],
        "medium": ["Fuchsia", "Magenta", "Hot Pink", "Cerise", "Orchid"],
        "light": ["Pink", "Peony", "Carnation", "Bubblegum", "Blush"],
    }),
    HuePalette("Rose", (330, 345), {
        "dark": ["Raspberry", "Claret", "Cranberry", "Sangria", "Bordeaux"],
        "medium": ["Camellia", "Azalea", "Hibiscus", "Flamingo", "Watermelon"],
        "light": ["Petal", "Rosewater", "Cotton Candy", "Quartz", "Ballet Slipper"],
    }),
]

PANTONE_COLORS: List[Tuple[str, Tuple[int, int, int]]] = [
    ("PANTONE 18-1664 TCX Flame Scarlet", (205, 33, 42)),
    ("PANTONE 18-1663 TCX Fiery Red", (206, 41, 57)),
    ("PANTONE 19-1664 TCX Racing Red", (193, 35, 48)),
    ("PANTONE 15-1264 TCX Living Coral", (250, 114, 104)),
    ("PANTONE 17-1564 TCX Burnt Sienna", (165, 82, 63)),
    ("PANTONE 18-1438 TCX Autumn Maple", (194, 80, 51)),
    ("PANTONE 16-1449 TCX Tangerine", (250, 106, 56)),
    ("PANTONE 15-1333 TCX Apricot", (236, 145, 92)),
    ("PANTONE 14-1064 TCX Peach", (255, 183, 135)),
    ("PANTONE 13-0942 TCX Lemon", (253, 214, 99)),
    ("PANTONE 14-0756 TCX Mustard", (214, 170, 61)),
    ("PANTONE 15-0751 TCX Golden Glow", (234, 170, 0)),
    ("PANTONE 19-0622 TCX Olive", (86, 86, 57)),
    ("PANTONE 18-0426 TCX Forest", (67, 86, 54)),
    ("PANTONE 15-6442 TCX Mint", (152, 212, 187)),
    ("PANTONE 17-5641 TCX Teal", (0, 128, 128)),
    ("PANTONE 18-5025 TCX Deep Teal", (26, 95, 90)),
    ("PANTONE 19-4056 TCX Blue Depths", (42, 72, 88)),
    ("PANTONE 18-4051 TCX Mosaic Blue", (0, 114, 155)),
    ("PANTONE 17-4041 TCX Aqua", (100, 200, 215)),
    ("PANTONE 19-4052 TCX Classic Blue", (15, 76, 129)),
    ("PANTONE 18-3949 TCX Purple", (104, 69, 114)),
    ("PANTONE 18-3633 TCX Magenta", (208, 65, 126)),
    ("PANTONE 19-2428 TCX Wine", (114, 47, 55)),
    ("PANTONE 19-1420 TCX Chocolate", (92, 58, 38)),
    ("PANTONE 19-1015 TCX Coffee", (78, 59, 47)),
    ("PANTONE 11-0601 TCX White", (244, 244, 242)),
    ("PANTONE 19-0303 TCX Black", (40, 40, 40)),
]


def normalize_hue(h: float) -> float:
    return h % 360


def in_hue_range(h: float, hue_range: Tuple[int, int]) -> bool:
    start, end = hue_range
    if start <= end:
        return start <= h < end
    return h >= start or h < end


def get_hue_palette(h: float) -> HuePalette:
    hue = normalize_hue(h)
    for palette in HUE_PALETTES:
        if in_hue_range(hue, palette.hue_range):
            return palette
    return HUE_PALETTES[0]


def get_tone_bucket(lightness: int, saturation: int) -> str:
    """Vivid colors get a wider medium band."""
    dark_threshold = 40 if saturation > 60 else 35
    light_threshold = 65 if saturation > 60 else 70

    if lightness <= dark_threshold:
        return "dark"
    if lightness >= light_threshold:
        return "light"
    return "medium"
