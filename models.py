"""
Scrape request / product record shapes.
ScrapeRequest is validated with pydantic before a browser is launched.
ProductRecord serializes to {title?, productRating, totalRatings}: a missing title
is dropped from the record, missing ratings are kept as null.
"""
from dataclasses import dataclass
from typing import Annotated, Any, Mapping, Optional

from pydantic import (
    AliasChoices,
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    StringConstraints,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from errors import ConfigValidationError

Selector = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ScrapeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    # productPageUrl is what the web form posts
    page_url: AnyHttpUrl = Field(validation_alias=AliasChoices("pageUrl", "productPageUrl", "page_url"))
    product_card_selector: Selector
    product_name_selector: Optional[Selector] = None
    product_rating_selector: Selector
    total_ratings_selector: Selector
    navigation_timeout_ms: Optional[PositiveInt] = None

    @field_validator("product_name_selector", mode="before")
    @classmethod
    def _blank_name_selector_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def url(self) -> str:
        return str(self.page_url)

    @property
    def wants_title(self) -> bool:
        return self.product_name_selector is not None

    @classmethod
    def from_input(cls, data: "ScrapeRequest | Mapping[str, Any]") -> "ScrapeRequest":
        """Accept an already-built request or a raw mapping (JSON body, CSV row)."""
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigValidationError(f"Invalid request data: {exc}") from exc


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    return text or None


@dataclass(frozen=True)
class ProductRecord:
    product_rating: Optional[str]
    total_ratings: Optional[str]
    title: Optional[str] = None

    @classmethod
    def from_card(cls, raw: Mapping[str, Optional[str]], with_title: bool) -> "ProductRecord":
        """Build a record from the plain data returned by the in-page evaluation."""
        return cls(
            product_rating=_clean(raw.get("productRating")),
            total_ratings=_clean(raw.get("totalRatings")),
            title=_clean(raw.get("title")) if with_title else None,
        )

    def as_dict(self) -> dict:
        out = {}
        if self.title is not None:
            out["title"] = self.title
        out["productRating"] = self.product_rating
        out["totalRatings"] = self.total_ratings
        return out
