"""Response models for the price controllers."""

from pydantic import BaseModel, ConfigDict, Field

from nutrient_navigator.services.price_search.models import PriceListing


class PriceListingModel(BaseModel):
    """One offer as returned to the frontend."""

    model_config = ConfigDict(populate_by_name=True)

    store: str = Field(..., description="Store that sells the product.")
    price: float = Field(..., ge=0, description="Price in dollars.")
    unit: str = Field(..., description="Unit or package size, e.g. 'each' or '4L'.")
    distance: str = Field(..., description="Proximity label for the store.")
    icon: str = Field(..., description="Glyph identifying the store.")
    product_url: str = Field(
        ...,
        alias="productUrl",
        description="Link to the offer, or '#' when unavailable.",
    )

    @classmethod
    def from_listing(cls, listing: PriceListing) -> "PriceListingModel":
        """Build the response model from a domain listing."""
        return cls.model_validate(listing.as_dict())
