import json
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .normalize import MAX_TAG_LENGTH, MAX_TAGS, is_valid_username


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


def _decode_list(value):
    # ORM rows keep lists as JSON text; form decoding already hands us lists
    if value is None:
        return []
    if isinstance(value, str):
        value = json.loads(value or "[]")
    return value


def _clean_lines(value):
    value = _decode_list(value)
    if not isinstance(value, list):
        return value
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def _check_tags(tags):
    if tags is None:
        return tags
    for t in tags:
        if len(t) > MAX_TAG_LENGTH:
            raise ValueError(
                f"Tag must be at most {MAX_TAG_LENGTH} characters"
            )
    if len(set(tags)) != len(tags):
        raise ValueError("Tag already exists")
    return tags


def _check_username(value):
    if value is not None and not is_valid_username(value):
        raise ValueError(
            "Username may only contain letters, digits, '.', '_' and '-'"
        )
    return value


EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RecipeCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(
        ..., min_length=1, max_length=200,
        json_schema_extra={"example": "Chili Verde"},
    )
    description: str = Field(..., min_length=1)
    prep_time: int = Field(..., gt=0, alias="prepTime")
    cook_time: int = Field(0, ge=0, alias="cookTime")
    difficulty: Difficulty
    servings: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None
    ingredients: List[str] = Field(
        ..., min_length=1,
        json_schema_extra={"example": ["2 lb pork shoulder", "1 lb tomatillos"]},
    )
    steps: List[str] = Field(..., min_length=1)
    tags: List[str] = Field(
        ..., min_length=1, max_length=MAX_TAGS,
        json_schema_extra={"example": ["mexican", "spicy"]},
    )

    @field_validator("ingredients", "steps", "tags", mode="before")
    @classmethod
    def clean_lists(cls, value):
        return _clean_lines(value)

    @field_validator("tags")
    @classmethod
    def unique_tags(cls, value):
        return _check_tags(value)


class RecipeUpdate(BaseModel):
    """Partial update: fields left as None are not touched."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    prep_time: Optional[int] = Field(None, ge=0, alias="prepTime")
    cook_time: Optional[int] = Field(None, ge=0, alias="cookTime")
    difficulty: Optional[Difficulty] = None
    servings: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None
    ingredients: Optional[List[str]] = None
    steps: Optional[List[str]] = None
    tags: Optional[List[str]] = Field(None, min_length=1, max_length=MAX_TAGS)

    @field_validator("ingredients", "steps", "tags", mode="before")
    @classmethod
    def clean_lists(cls, value):
        if value is None:
            return None
        return _clean_lines(value)

    @field_validator("tags")
    @classmethod
    def unique_tags(cls, value):
        return _check_tags(value)


class Recipe(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    slug: str
    name: str
    description: str
    prep_time: int = Field(alias="prepTime")
    cook_time: int = Field(alias="cookTime")
    difficulty: Difficulty
    servings: Optional[int] = None
    notes: Optional[str] = None
    ingredients: List[str]
    steps: List[str]
    tags: List[str]
    image: Optional[str] = None
    author: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @field_validator("ingredients", "steps", "tags", mode="before")
    @classmethod
    def decode_lists(cls, value):
        return _decode_list(value)

    @field_validator("author", mode="before")
    @classmethod
    def author_name(cls, value):
        return getattr(value, "username", value)


class UserCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(..., min_length=3, max_length=30)
    email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)

    @field_validator("username")
    @classmethod
    def check_username(cls, value):
        return _check_username(value)


class UserLogin(BaseModel):
    email: str
    password: str


class UserUpdate(BaseModel):
    """Profile patch: only fields present in the request are applied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: Optional[str] = Field(None, min_length=3, max_length=30)
    email: Optional[str] = Field(None, max_length=254, pattern=EMAIL_PATTERN)
    bio: Optional[str] = Field(None, max_length=200)

    @field_validator("username")
    @classmethod
    def check_username(cls, value):
        return _check_username(value)


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    username: str
    email: str
    bio: str = ""
    image: Optional[str] = None


class AuthenticatedUser(User):
    token: str


class UserEnvelope(BaseModel):
    user: AuthenticatedUser


class Profile(User):
    recipes: List[Recipe] = []
