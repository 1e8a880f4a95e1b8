"""
Savor AI Recipe Schemas
Pydantic models for generated recipes, preference profiles and recipe listing
"""

import re
import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StringConstraints,
    field_serializer,
    field_validator,
    model_validator,
)

from utils.cursor import format_timestamp


# Recipe payloads must stay strictly below this many bytes once serialized
MAX_RECIPE_BYTES = 200 * 1024

LanguageCode = Literal["en", "pl"]
SUPPORTED_LANGUAGES = ("en", "pl")

Difficulty = Literal["easy", "medium", "hard"]
SortOrder = Literal["recent", "oldest"]


class DietType(str, Enum):
    VEGAN = "vegan"
    VEGETARIAN = "vegetarian"
    PESCATARIAN = "pescatarian"
    KETO = "keto"
    PALEO = "paleo"
    GLUTEN_FREE = "gluten_free"
    DAIRY_FREE = "dairy_free"
    LOW_CARB = "low_carb"
    MEDITERRANEAN = "mediterranean"
    OMNIVORE = "omnivore"


IngredientLine = Annotated[str, StringConstraints(strict=True, min_length=1, max_length=500)]
InstructionStep = Annotated[str, StringConstraints(strict=True, min_length=1, max_length=2000)]
RecipeTagText = Annotated[str, StringConstraints(strict=True, min_length=1, max_length=50)]
ProfileItem = Annotated[str, StringConstraints(min_length=1, max_length=50)]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _integral(value: Any) -> Any:
    """Accept ints and integral floats (JSON ``4.0``); reject bools and strings"""
    if isinstance(value, bool) or not _is_number(value):
        raise ValueError("must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("must be an integer")
        return int(value)
    return value


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    """Lowercase, trim, drop empties and de-duplicate while preserving order"""
    if not tags:
        return []

    normalized = []
    seen = set()
    for tag in tags:
        item = tag.strip().lower()
        if item and item not in seen:
            seen.add(item)
            normalized.append(item)
    return normalized


class DietaryInfo(BaseModel):
    """Named dietary flags; unknown boolean keys are kept as-is"""

    model_config = ConfigDict(extra="allow")

    vegetarian: Optional[StrictBool] = None
    vegan: Optional[StrictBool] = None
    gluten_free: Optional[StrictBool] = None
    dairy_free: Optional[StrictBool] = None
    nut_free: Optional[StrictBool] = None

    @model_validator(mode="after")
    def check_extra_flags(self):
        for key, value in (self.model_extra or {}).items():
            if not isinstance(value, bool):
                raise ValueError(f"dietary_info.{key} must be a boolean")
        return self


class Nutrition(BaseModel):
    """Named nutrition values; unknown numeric keys are kept as-is"""

    model_config = ConfigDict(extra="allow")

    calories: Optional[int] = Field(None, ge=0)
    protein_g: Optional[float] = Field(None, ge=0)
    carbs_g: Optional[float] = Field(None, ge=0)
    fat_g: Optional[float] = Field(None, ge=0)

    @field_validator("calories", mode="before")
    @classmethod
    def check_calories(cls, v):
        if v is None:
            return v
        return _integral(v)

    @field_validator("protein_g", "carbs_g", "fat_g", mode="before")
    @classmethod
    def check_macros(cls, v):
        if v is not None and not _is_number(v):
            raise ValueError("must be a number")
        return v

    @model_validator(mode="after")
    def check_extra_values(self):
        for key, value in (self.model_extra or {}).items():
            if not _is_number(value):
                raise ValueError(f"nutrition.{key} must be a number")
        return self


class RecipeSchema(BaseModel):
    """Structured recipe produced by the generation pipeline"""

    title: str = Field(..., min_length=1, max_length=200, strict=True)
    summary: Optional[str] = Field(None, max_length=500, strict=True)
    description: Optional[str] = Field(None, max_length=2000, strict=True)
    prep_time_minutes: int = Field(..., ge=0, le=1440)
    cook_time_minutes: int = Field(..., ge=0, le=1440)
    servings: int = Field(..., ge=1, le=100)
    difficulty: Difficulty
    cuisine: Optional[str] = Field(None, max_length=50, strict=True)
    ingredients: List[IngredientLine] = Field(..., min_length=1, max_length=100)
    instructions: List[InstructionStep] = Field(..., min_length=1, max_length=50)
    tags: Optional[List[RecipeTagText]] = Field(None, max_length=20)
    dietary_info: Optional[DietaryInfo] = None
    nutrition: Optional[Nutrition] = None

    @field_validator("prep_time_minutes", "cook_time_minutes", "servings", mode="before")
    @classmethod
    def check_integral(cls, v):
        return _integral(v)

    def to_payload(self) -> Dict[str, Any]:
        """Plain JSON-ready dict; absent optional fields are omitted"""
        return self.model_dump(mode="json", exclude_none=True)

    def serialized_size(self) -> int:
        """UTF-8 size in bytes of the compact JSON form"""
        return len(self.model_dump_json(exclude_none=True).encode("utf-8"))


class PreferenceProfile(BaseModel):
    """Caller-supplied dietary preferences (read-only to the generation pipeline)"""

    diet_type: Optional[DietType] = None
    disliked_ingredients: List[ProfileItem] = Field(default_factory=list, max_length=100)
    preferred_cuisines: List[ProfileItem] = Field(default_factory=list, max_length=100)
    preferred_language: Optional[LanguageCode] = None

    @field_validator("disliked_ingredients", "preferred_cuisines", mode="after")
    @classmethod
    def normalize_items(cls, v):
        return normalize_tags(v)


class RecipeListQuery(BaseModel):
    """Filters, sort and pagination for listing saved recipes"""

    search: Optional[str] = Field(None, max_length=200)
    tags: Optional[List[str]] = None
    lang: Optional[LanguageCode] = None
    sort: SortOrder = "recent"
    limit: int = Field(20, ge=1, le=100)
    cursor: Optional[str] = None
    offset: Optional[int] = Field(None, ge=0)

    @field_validator("search", "cursor", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        if v is None:
            return None
        if isinstance(v, str):
            if len(v) > 200:
                raise ValueError("Tags parameter too long (max 200 characters)")
            v = v.split(",")
        return normalize_tags(list(v)) or None

    @model_validator(mode="after")
    def check_pagination_mode(self):
        if self.cursor is not None and self.offset is not None:
            raise ValueError("Cannot use both 'cursor' and 'offset' parameters")
        return self

    @property
    def has_filters(self) -> bool:
        return bool(self.search or self.tags or self.lang)


class RecipeListItem(BaseModel):
    id: uuid.UUID
    title: str
    summary: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    language: str
    created_at: datetime

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return format_timestamp(value)


class PaginationMeta(BaseModel):
    limit: int
    next_cursor: Optional[str] = None
    has_more: bool
    total_count: int


class RecipeListResponse(BaseModel):
    data: List[RecipeListItem]
    pagination: PaginationMeta
    message: Optional[str] = None


_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]")
_SUSPICIOUS_PATTERNS = [
    re.compile(r"ignore\s+(previous|all)\s+(instructions|prompts)", re.IGNORECASE),
    re.compile(r"system\s*:\s*", re.IGNORECASE),
    re.compile(r"assistant\s*:\s*", re.IGNORECASE),
]


class GenerateRecipeRequest(BaseModel):
    """Request model for recipe generation"""
    prompt: str = Field(..., description="Recipe request description")
    lang: Optional[LanguageCode] = Field(None, description="Language override")
    profile: Optional[PreferenceProfile] = Field(None, description="Dietary preferences of the caller")

    @field_validator("prompt")
    @classmethod
    def check_prompt(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Prompt cannot be empty")
        if len(v) > 2000:
            raise ValueError("Prompt too long (max 2000 characters)")
        if _CONTROL_CHARS.search(v):
            raise ValueError("Prompt contains invalid control characters")
        if any(pattern.search(v) for pattern in _SUSPICIOUS_PATTERNS):
            raise ValueError("Prompt contains suspicious patterns")
        return v


class GenerateRecipeResponse(BaseModel):
    recipe: RecipeSchema
    generation_id: uuid.UUID
    generated_at: datetime

    @field_serializer("generated_at")
    def serialize_generated_at(self, value: datetime) -> str:
        return format_timestamp(value)


class SaveRecipeRequest(BaseModel):
    """Request model for saving a generated recipe"""
    recipe: RecipeSchema
    tags: Optional[List[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]]] = Field(
        None, max_length=20
    )
    language: LanguageCode = "en"


class RecipeSummary(BaseModel):
    id: uuid.UUID
    user_id: str
    title: str
    summary: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    language: str
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def serialize_timestamps(self, value: datetime) -> str:
        return format_timestamp(value)


class RecipeDetails(RecipeSummary):
    recipe: Dict[str, Any]
