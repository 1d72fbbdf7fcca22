"""Salon catalog: services, stylists and shop products."""

from datetime import time
from decimal import Decimal

from pydantic import Field, model_validator

from strandly.models.base import CMSDocument, CMSModel, RelationId


class Service(CMSDocument):
    """A bookable salon service (cut, colour, treatment...)."""

    name: str = Field(..., description="Service name")
    slug: str = Field(..., description="URL slug")
    duration_minutes: int = Field(..., gt=0, description="Chair time in minutes")
    price: Decimal = Field(..., ge=0, description="Base price")
    description: str | None = Field(None, description="Service description")
    category: str | None = Field(None, description="Service category")


class WorkingHours(CMSModel):
    """One working interval of a stylist on a given weekday."""

    weekday: int = Field(..., ge=0, le=6, description="0 = Monday ... 6 = Sunday")
    start: time = Field(..., description="Shift start (local time)")
    end: time = Field(..., description="Shift end (local time)")

    @model_validator(mode="after")
    def _check_interval(self) -> "WorkingHours":
        if self.end <= self.start:
            msg = f"Shift end {self.end} must be after start {self.start}"
            raise ValueError(msg)
        return self


class Stylist(CMSDocument):
    """Stylist directory entry."""

    name: str = Field(..., description="Display name")
    slug: str = Field(..., description="URL slug")
    bio: str | None = Field(None, description="Short biography")
    specialties: list[str] = Field(default_factory=list)
    services: list[RelationId] = Field(
        default_factory=list, description="Ids of services offered"
    )
    working_hours: list[WorkingHours] = Field(default_factory=list)
    image_url: str | None = Field(None, description="Portrait URL")
    active: bool = Field(default=True, description="Listed and bookable")

    def offers(self, service_id: str) -> bool:
        """Check whether the stylist performs the given service."""
        return str(service_id) in self.services

    def hours_for(self, weekday: int) -> list[WorkingHours]:
        """Working intervals for a weekday, earliest first."""
        return sorted(
            (h for h in self.working_hours if h.weekday == weekday),
            key=lambda h: h.start,
        )


class Product(CMSDocument):
    """Shop product."""

    name: str = Field(..., description="Product name")
    slug: str = Field(..., description="URL slug")
    price: Decimal = Field(..., ge=0, description="Unit price")
    currency: str = Field(default="USD", description="ISO currency code")
    stock: int = Field(default=0, ge=0, description="Units in stock")
    category: str | None = Field(None, description="Product category")
    description: str | None = Field(None, description="Product description")
    image_url: str | None = Field(None, description="Primary image URL")
    active: bool = Field(default=True, description="Visible in the shop")

    def in_stock(self, quantity: int = 1) -> bool:
        return self.active and self.stock >= quantity
