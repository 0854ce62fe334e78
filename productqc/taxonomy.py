"""Product category taxonomy.

Categories are declared once as plain data (``CATEGORY_DATA``) and turned
into immutable ``CategoryDefinition`` objects by ``load_taxonomy()``, which
caches the result for the lifetime of the process. Components that need the
taxonomy take it as an argument and fall back to ``load_taxonomy()``.

Declaration order matters: the weighted classifier resolves ties in favour of
the category declared first.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from re import Pattern
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

__all__ = [
    "CATEGORY_DATA",
    "CategoryDefinition",
    "Taxonomy",
    "load_taxonomy",
    "get_category",
    "get_display_name",
]


# =============================================================================
# Category Definitions
# =============================================================================
# Each category defines:
#   - display_name: Human-readable name for reports
#   - keywords: Matched with word boundaries against title/description/raw text
#   - critical: Attributes weighted 70% in the completeness score
#   - recommended: Attributes weighted 30% in the completeness score
#   - extractors: Category-specific regexes; names containing "proof", "safe"
#     or "biodegradable" are flags

CATEGORY_DATA: Dict[str, Dict[str, Any]] = {
    "bags": {
        "display_name": "Bags & Backpacks",
        "keywords": [
            "bag", "backpack", "rucksack", "duffel", "tote", "sling", "messenger",
            "laptop bag", "travel bag", "gym bag", "school bag", "handbag", "purse",
            "satchel", "clutch", "pouch", "travel tote", "shopping bag", "carry bag",
        ],
        "critical": ["capacity", "material", "dimensions", "moq", "price"],
        "recommended": [
            "weight", "compartments", "laptop_size", "water_resistance",
            "branding_area", "color_options", "warranty", "lead_time",
        ],
        "extractors": {
            "capacity": r"(?:capacity|volume)[:|\s]+(\d+)\s*(?:l|liter|litre)\b",
            "laptop_size": r"(?:laptop|notebook)[:|\s]*(\d+(?:\.\d+)?)\s*(?:inch|\")",
            "compartments": r"(\d+)\s*(?:compartment|pocket)",
            "water_resistance": r"water\s*(?:proof|resistant)",
        },
    },
    "home_living": {
        "display_name": "Home & Living",
        "keywords": [
            "bottle", "sipper", "cup", "mug", "tumbler", "flask", "thermos",
            "water bottle", "coffee mug", "tea cup", "drinkware", "home decor",
            "cushion", "pillow", "blanket", "photo frame", "fun game", "board game",
            "peeler", "grater", "slicer", "opener", "bottle opener", "can opener",
            "spatula", "ladle", "whisk", "tongs", "masher", "strainer", "colander",
            "chopper", "cutter", "knife", "kitchen tool", "kitchen utensil",
            "cookware", "bakeware", "cutting board", "rolling pin",
        ],
        "critical": ["capacity", "material", "moq", "price"],
        "recommended": [
            "insulation", "temperature_retention", "leak_proof", "dishwasher_safe",
            "dimensions", "branding_methods", "color_options", "lead_time",
            "blade_material", "handle_material", "features", "warranty",
        ],
        "extractors": {
            "capacity": r"(?:capacity|volume)[:|\s]+(\d+)\s*(?:ml|milliliter|litre|liter|oz)",
            "insulation": r"(?:double|single)\s*wall|insulated|vacuum",
            "temperature_retention": r"(?:keeps\s*(?:hot|cold)|retains\s*temperature).*?(\d+)\s*(?:hour|hr)",
            "leak_proof": r"leak\s*(?:proof|resistant)",
            "dishwasher_safe": r"dishwasher\s*safe",
            "blade_material": r"(?:blade|edge)[:|\s]*(?:stainless\s*steel|ceramic|carbon\s*steel)",
            "handle_material": r"(?:handle|grip)[:|\s]*(?:plastic|rubber|wood|steel|silicone)",
            "features": r"ergonomic|comfortable|non\s*slip|rust\s*proof|durable",
        },
    },
    "office_accessories": {
        "display_name": "Office Accessories",
        "keywords": [
            "notebook", "diary", "journal", "pen", "pencil", "folder", "organizer",
            "desk clock", "calendar", "coaster", "mouse pad", "desk accessory",
            "stationery", "planner", "notepad", "sticky notes",
        ],
        "critical": ["material", "dimensions", "moq", "price"],
        "recommended": [
            "pages", "ruling", "binding", "color_options", "branding_area",
            "packaging", "customization", "lead_time",
        ],
        "extractors": {
            "pages": r"(\d+)\s*(?:page|sheet|leaf)",
            "ruling": r"ruled|plain|dotted|grid|lined",
            "binding": r"spiral|hard\s*bound|wire|stitched|perfect\s*bound",
        },
    },
    "apparel": {
        "display_name": "Apparel",
        "keywords": [
            "tshirt", "t-shirt", "shirt", "jacket", "hoodie", "sweatshirt", "polo",
            "cap", "hat", "apparel", "clothing", "wear", "jersey", "vest",
        ],
        "critical": ["fabric", "material", "gsm", "sizes", "moq", "price"],
        "recommended": [
            "fit", "color_options", "care_instructions", "branding_methods",
            "branding_positions", "gender", "neck_type", "sleeve_length", "lead_time",
        ],
        "extractors": {
            "gsm": r"(\d+)\s*gsm",
            "sizes": r"(?:size|available in)[:|\s]*(?:xs|s|m|l|xl|xxl|xxxl)(?:\s*,\s*(?:xs|s|m|l|xl|xxl|xxxl))*\b",
            "fabric": r"(?:100%|pure)?\s*(?:cotton|polyester|poly\s*cotton|blend|dri\s*fit|jersey)",
            "fit": r"(?:regular|slim|relaxed|oversized|athletic)\s*fit",
            "neck_type": r"(?:round|v|collar|polo|henley)\s*neck",
            "sleeve_length": r"(?:half|full|short|long|three\s*quarter)\s*sleeve",
        },
    },
    "gourmet": {
        "display_name": "Gourmet",
        "keywords": [
            "chocolate", "dry fruit", "nuts", "snack", "cookies", "biscuit",
            "gourmet", "food", "edible", "confectionery", "sweet", "hamper",
        ],
        "critical": ["net_weight", "packaging", "shelf_life", "moq", "price"],
        "recommended": [
            "ingredients", "allergens", "fssai", "storage_conditions",
            "nutritional_info", "custom_packaging", "custom_labels", "lead_time",
        ],
        "extractors": {
            "net_weight": r"(?:net\s*weight|weight)[:|\s]+(\d+)\s*(?:g|gm|gram|kg|kilogram)\b",
            "shelf_life": r"(?:shelf\s*life|best\s*before)[:|\s]+(\d+)\s*(?:day|month|year)",
            "fssai": r"fssai\s*(?:no|number|lic|license)?[:|\s]*(\d+)",
            "allergens": r"(?:contains|allergen)[:|\s]*[^.\n]*",
        },
    },
    "gadgets_tech": {
        "display_name": "Gadgets & Tech",
        "keywords": [
            "earphone", "headphone", "earbuds", "bluetooth", "speaker", "charger",
            "power bank", "usb", "cable", "tech", "gadget", "electronic",
            "keychain", "pen drive", "mouse", "keyboard", "webcam",
        ],
        "critical": ["specifications", "compatibility", "moq", "price"],
        "recommended": [
            "battery", "connectivity", "charging_time", "warranty",
            "certifications", "material", "dimensions", "branding", "lead_time",
        ],
        "extractors": {
            "battery": r"(?:battery|mah)[:|\s]*(\d+)\s*mah",
            "connectivity": r"bluetooth|wireless|wired|usb|type\s*c",
            "charging_time": r"charging\s*time[:|\s]+(\d+)\s*(?:hour|hr|minute|min)",
            "warranty": r"(\d+)\s*(?:year|month|day)s?\s*warranty",
            "bluetooth_version": r"bluetooth\s*(\d+\.\d+)",
        },
    },
    "fitness": {
        "display_name": "Fitness",
        "keywords": [
            "fitness", "gym", "yoga", "exercise", "workout", "sports",
            "dumbbell", "resistance band", "yoga mat", "sipper", "shaker",
        ],
        "critical": ["material", "dimensions", "moq", "price"],
        "recommended": [
            "weight_capacity", "resistance_level", "features", "usage_instructions",
            "branding", "color_options", "warranty", "lead_time",
        ],
        "extractors": {
            "weight_capacity": r"(?:capacity|holds|supports)[:|\s]+(\d+)\s*(?:kg|kilogram)",
            "resistance": r"(?:resistance|level)[:|\s]*(?:light|medium|heavy|strong)",
        },
    },
    "eco_friendly": {
        "display_name": "Eco-Friendly",
        "keywords": [
            "eco", "sustainable", "biodegradable", "organic", "bamboo",
            "jute", "recycled", "green", "environment", "natural",
        ],
        "critical": ["material", "eco_certifications", "moq", "price"],
        "recommended": [
            "biodegradable", "sustainable_sourcing", "recycled_content",
            "carbon_footprint", "packaging", "dimensions", "lead_time",
        ],
        "extractors": {
            "eco_certification": r"eco\s*certified|iso\s*14001|fsc|green\s*certified",
            "biodegradable": r"bio\s*degradable|compost|decompose",
            "recycled": r"(\d+)%?\s*recycled",
        },
    },
}


@dataclass(frozen=True)
class CategoryDefinition:
    key: str
    display_name: str
    keywords: Tuple[str, ...]
    critical_attributes: Tuple[str, ...]
    recommended_attributes: Tuple[str, ...]
    extraction_patterns: Mapping[str, Pattern[str]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "displayName": self.display_name,
            "keywords": list(self.keywords),
            "criticalAttributes": list(self.critical_attributes),
            "recommendedAttributes": list(self.recommended_attributes),
            "extractionPatterns": sorted(self.extraction_patterns),
        }


class Taxonomy:
    """Ordered, read-only collection of category definitions."""

    def __init__(self, categories: Tuple[CategoryDefinition, ...]):
        self._categories = tuple(categories)
        self._by_key = MappingProxyType({c.key: c for c in self._categories})

    def __iter__(self) -> Iterator[CategoryDefinition]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def get(self, key: Optional[str]) -> Optional[CategoryDefinition]:
        if key is None:
            return None
        return self._by_key.get(key)

    def keys(self) -> List[str]:
        return [c.key for c in self._categories]


def _build_definition(key: str, data: Mapping[str, Any]) -> CategoryDefinition:
    patterns = {
        name: re.compile(pattern, re.IGNORECASE)
        for name, pattern in data.get("extractors", {}).items()
    }
    return CategoryDefinition(
        key=key,
        display_name=data["display_name"],
        keywords=tuple(data["keywords"]),
        critical_attributes=tuple(data["critical"]),
        recommended_attributes=tuple(data["recommended"]),
        extraction_patterns=MappingProxyType(patterns),
    )


@lru_cache(maxsize=1)
def load_taxonomy() -> Taxonomy:
    """Build the process-wide taxonomy from ``CATEGORY_DATA``."""
    return Taxonomy(tuple(_build_definition(k, v) for k, v in CATEGORY_DATA.items()))


def get_category(key: Optional[str], taxonomy: Optional[Taxonomy] = None) -> Optional[CategoryDefinition]:
    """Get a category definition by key, or None if unknown."""
    return (taxonomy or load_taxonomy()).get(key)


def get_display_name(key: Optional[str]) -> str:
    category = get_category(key)
    return category.display_name if category else "Unknown"
