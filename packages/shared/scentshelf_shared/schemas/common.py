from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel


class PerfumeCategory(str, Enum):
    FLORAL = "Kwiatowe"
    WOODY = "Drzewne"
    FRESH = "Świeże"
    CITRUS = "Cytrusowe"
    SPICY = "Korzenne"
    SWEET = "Słodkie"
    ORIENTAL = "Orientalne"
    FRUITY = "Owocowe"
    MUSKY = "Piżmowe"
    LEATHER = "Skórzane"
    GREEN = "Zielone"
    AQUATIC = "Wodne"
    POWDERY = "Pudrowe"
    GOURMAND = "Gourmand"


# Filter/count sentinel; never stored on a perfume
ALL_CATEGORIES = "All"

# Display order for sidebars and count mappings
CATEGORY_ORDER: list["PerfumeCategory"] = list(PerfumeCategory)

CategoryFilter = Union[Literal["All"], PerfumeCategory]


class SortOption(str, Enum):
    CREATED_AT = "created_at"
    NAME = "name"
    PRICE = "price"
    RATING = "rating"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class NotificationType(str, Enum):
    FOLLOW = "follow"
    NEW_PERFUME = "new_perfume"
    PERFUME_DELETED = "perfume_deleted"
    NEW_COMMENT = "new_comment"


class FeedScope(str, Enum):
    MY = "my"
    USER = "user"
    FOLLOWING = "following"


class DashboardView(str, Enum):
    MY = "my"
    EXPLORE = "explore"


COMMENT_QUOTA = 5
COMMENT_MAX_LENGTH = 500


class ActionResult(BaseModel):
    """Outcome of a mutating action: a success flag plus an optional message."""
    success: bool = True
    error: Optional[str] = None
