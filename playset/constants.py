"""Application-wide constants.

Lengths are in feet, weights in kilograms, money in the catalog currency (ZAR).
"""

# Database
DB_FILENAME = "playset.db"

# Design defaults
DEFAULT_DESIGN_NAME = "Untitled Design"
DUPLICATE_NAME_SUFFIX = " (Copy)"
DESIGN_SCHEMA_VERSION = "1.0"
DEFAULT_AGE_RANGE = (3, 12)
DESIGN_UNIT = "ft"
DUPLICATE_OFFSET_FT = 2.0

# Customization overrides accepted on a placed instance
CUSTOMIZATION_KEYS = ("color", "label", "material")

# History
MAX_UNDO_LEVELS = 50

# Geometry tolerances [ft]
CONNECTION_TOLERANCE_FT = 0.25
OVERLAP_TOLERANCE_FT = 0.05
GROUND_TOLERANCE_FT = 0.05

# Structural / safety limits
MAX_HEIGHT_FT = 12.0
MAX_TOTAL_WEIGHT_KG = 2270.0
MIN_ELEVATED_DECK_FT = 2.0
MAX_DISTINCT_COLORS = 4

# Connection kinds each kind may mate with, applied when a catalog record
# does not declare its own mating set.
DEFAULT_MATING: dict[str, tuple[str, ...]] = {
    "deck": ("deck", "structural", "beam", "slide", "accessory", "roof"),
    "slide": ("deck", "structural"),
    "swing": ("beam", "structural", "roof"),
    "beam": ("swing", "structural", "deck", "roof", "beam"),
    "structural": ("deck", "slide", "swing", "beam", "roof", "structural", "accessory"),
    "roof": ("deck", "structural", "beam", "swing"),
    "accessory": ("deck", "structural"),
}

# Shipping
SHIPPING_BASE_RATE = 500.0
SHIPPING_LOW_DISTANCE_RATE = 200.0
SHIPPING_HIGH_DISTANCE_RATE = 800.0
SHIPPING_RATE_PER_KG = 2.0
LOW_COST_LOCALITIES = (
    "johannesburg",
    "pretoria",
    "cape town",
    "durban",
    "port elizabeth",
    "bloemfontein",
)

# Installation
INSTALLATION_BASE_RATE = 2000.0
INSTALLATION_RATE_PER_PART = 300.0
# (lower threshold, upper threshold); exceeding lower adds the small step,
# exceeding upper adds the large step.
COMPLEXITY_HEIGHT_THRESHOLDS_FT = (8.0, 10.0)
COMPLEXITY_FOOTPRINT_THRESHOLDS_SQFT = (150.0, 200.0)
COMPLEXITY_COUNT_THRESHOLDS = (12, 15)
COMPLEXITY_SMALL_STEP = 0.1
COMPLEXITY_LARGE_STEP = 0.2
