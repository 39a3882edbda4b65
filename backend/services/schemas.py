"""
Listing attributes in, prediction out.
"""
from pydantic import BaseModel
from typing import Optional, List


class PropertyAttributes(BaseModel):
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    size_sqft: Optional[float] = None
    postcode: Optional[str] = None  # Full postcode or just the district
    property_type: Optional[str] = None  # Free text, e.g. "End of Terrace House"
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: str = ""
    description: str = ""
    ocr_text: str = ""  # Floor-plan OCR transcript, may be empty
    agent_name: str = ""
    page_url: str = ""
    # Only feeds the low £/sqft social-housing check; never filled from the asking price
    price_pcm: Optional[float] = None


class PredictionResult(BaseModel):
    asking_price: float
    fair_value: int
    range_low: int
    range_high: int
    premium_pct: float
    assessment: str  # "overpriced" | "fair" | "good_deal"
    size_sqft: float
    size_source: str  # "page" | "ocr" | "estimated"
    amenities_detected: List[str] = []
    postcode_district: str
    beds: int
    baths: int
    well_covered: bool  # District has enough training listings
    let_type: str = "long"
