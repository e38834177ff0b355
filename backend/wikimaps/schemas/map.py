"""
WikiMaps Backend: Map and Point Schemas
=======================================

What:  Pydantic models for map and point form input and view/JSON output.
How:   Route handlers pass raw form dicts; services validate them with
       `Model.model_validate(...)` so malformed input becomes a ValidationError
       (maps) or a failed Outcome (points) instead of FastAPI's generic 422.
Who:   MapService, the maps/points routes and the Jinja2 views.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value):
    # Forms post an empty string for an unset image
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ══════════════════════════════════════════════════════════════════════════
# Input Models
# ══════════════════════════════════════════════════════════════════════════


class MapCreate(BaseModel):
    """Fields accepted by create_map. user_id comes from the session, never the form."""

    model_config = ConfigDict(coerce_numbers_to_str=True, str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(default="")
    user_id: str = Field(min_length=1, max_length=255)


class PointCreate(BaseModel):
    """
    Fields accepted by add_point.

    Coordinates accept either the long names or the short form names the map
    widget posts (`lat`, `long`).
    """

    model_config = ConfigDict(coerce_numbers_to_str=True, str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(default="")
    image: Optional[str] = Field(default=None, max_length=2048)
    map_id: int
    latitude: float = Field(
        ge=-90, le=90, validation_alias=AliasChoices("latitude", "lat")
    )
    longitude: float = Field(
        ge=-180, le=180, validation_alias=AliasChoices("longitude", "long")
    )
    user_id: str = Field(min_length=1, max_length=255)

    @field_validator("image", mode="before")
    @classmethod
    def blank_image_is_none(cls, v):
        return _blank_to_none(v)


class PointUpdate(BaseModel):
    """Partial update for an existing point; omitted fields keep their value."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = Field(default=None, max_length=2048)
    latitude: Optional[float] = Field(
        default=None, ge=-90, le=90, validation_alias=AliasChoices("latitude", "lat")
    )
    longitude: Optional[float] = Field(
        default=None, ge=-180, le=180, validation_alias=AliasChoices("longitude", "long")
    )

    @field_validator("image", mode="before")
    @classmethod
    def blank_image_is_none(cls, v):
        return _blank_to_none(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class MapSummary(BaseModel):
    """One row of the map listing (home page, favourites)."""

    id: int
    title: str

    model_config = {"from_attributes": True}


class MapDetail(BaseModel):
    """Full map record for the single-map and edit views."""

    id: int
    title: str
    description: str
    user_id: str

    model_config = {"from_attributes": True}


class PointResponse(BaseModel):
    """Point as returned by /maps/{map_id}/json and the point routes."""

    id: int
    title: str
    description: str
    image: Optional[str] = None
    map_id: int
    latitude: float
    longitude: float
    user_id: str

    model_config = {"from_attributes": True}
