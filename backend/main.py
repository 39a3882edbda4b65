from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from dotenv import load_dotenv
import os
from typing import Optional, List, Dict, Any

from services.features import build_features, feature_names
from services.listing_inputs import detect_let_type, parse_price
from services.prediction import InvalidPredictionResult, PredictionService
from services.schemas import PredictionResult, PropertyAttributes
from services.similar import find_similar
from storage.listings_db import DB_PATH, count_listings, ensure_db, query_candidates
from storage.model_repository import ModelLoadFailure, ModelRepository, NotLoadedError

# Load environment variables from backend/.env
load_dotenv(os.path.join(os.path.dirname(os.path.abspath(__file__)), ".env"))

app = FastAPI()

# Feature flags and configuration
DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")
MODEL_PATH = os.getenv("MODEL_PATH", os.path.join(DATA_DIR, "model.json"))
FEATURES_PATH = os.getenv("FEATURES_PATH", os.path.join(DATA_DIR, "features.json"))
LISTINGS_DB_PATH = os.getenv("LISTINGS_DB_PATH", DB_PATH)
ENABLE_SIMILAR_LISTINGS = os.getenv("ENABLE_SIMILAR_LISTINGS", "true").lower() == "true"
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Process-wide model; read-only once loaded
model_repository = ModelRepository()
prediction_service = PredictionService(model_repository)


@app.on_event("startup")
async def load_model():
    """Load the model artifact and prepare the similar-listings DB"""
    try:
        await model_repository.load_files(MODEL_PATH, FEATURES_PATH)
        info = model_repository.describe()
        print(f"Model ready: {info['trees']} trees, {info['features']} features, base_score={info['base_score']}")
    except ModelLoadFailure as e:
        # Keep serving /health and /features; /predict answers 503 until a model is present
        print(f"Warning: model not loaded: {e}")

    if ENABLE_SIMILAR_LISTINGS:
        db_recreated = ensure_db(LISTINGS_DB_PATH)
        if db_recreated:
            print("Listings DB recreated (fresh and empty) - import listings to enable similar properties")
        else:
            print(f"Listings DB ready: path={LISTINGS_DB_PATH}, listings={count_listings(LISTINGS_DB_PATH)}")


# Request/Response models
class PredictRequest(PropertyAttributes):
    asking_price: Optional[float] = None  # Monthly; takes precedence over price_text
    price_text: Optional[str] = None  # Raw portal text, e.g. "£650 pw"


class FeaturesResponse(BaseModel):
    features: Dict[str, float]
    # Names the loaded model expects but the pipeline doesn't emit (read as 0)
    implicit_zero: List[str] = []


class SimilarRequest(BaseModel):
    fair_value: float
    postcode_district: str
    beds: int
    baths: int = 1
    amenities: List[str] = []
    exclude_url: Optional[str] = None
    limit: int = 3


class SimilarResponse(BaseModel):
    similar: List[Dict[str, Any]]


def to_attributes(request: PropertyAttributes) -> PropertyAttributes:
    return PropertyAttributes(**request.model_dump(include=set(PropertyAttributes.model_fields)))


@app.post("/predict", response_model=PredictionResult)
async def predict(request: PredictRequest):
    """Predict fair monthly rent for a listing"""
    asking_price = request.asking_price if request.asking_price else parse_price(request.price_text)
    if not asking_price or asking_price <= 0:
        raise HTTPException(status_code=422, detail="Could not parse price")

    if detect_let_type(request.description, request.page_url) == "short":
        raise HTTPException(status_code=422, detail="Short let listings are not supported: the model is trained on long lets")

    try:
        return prediction_service.predict(to_attributes(request), asking_price)
    except NotLoadedError:
        raise HTTPException(status_code=503, detail="Model not loaded")
    except InvalidPredictionResult as e:
        raise HTTPException(status_code=500, detail=f"Invalid prediction: {e}")


@app.post("/features", response_model=FeaturesResponse)
async def features(request: PropertyAttributes):
    """Feature vector for a listing, as the model would see it"""
    vector = build_features(request)
    implicit_zero = []
    if model_repository.is_loaded:
        implicit_zero = [name for name in model_repository.feature_order() if name not in vector]
    return FeaturesResponse(features=vector, implicit_zero=implicit_zero)


@app.post("/similar", response_model=SimilarResponse)
async def similar(request: SimilarRequest):
    """Similar listings around a predicted fair value"""
    if not ENABLE_SIMILAR_LISTINGS:
        return SimilarResponse(similar=[])

    candidates = query_candidates(LISTINGS_DB_PATH, exclude_url=request.exclude_url)
    return SimilarResponse(similar=find_similar(
        fair_value=request.fair_value,
        postcode_district=request.postcode_district.upper().strip(),
        beds=request.beds,
        baths=request.baths,
        amenities=request.amenities,
        candidates=candidates,
        limit=request.limit,
    ))


@app.get("/model-info")
async def model_info():
    """Loaded model summary"""
    info = model_repository.describe()
    info["implicit_zero"] = []
    if model_repository.is_loaded:
        emitted = set(feature_names())
        info["implicit_zero"] = [name for name in model_repository.feature_order() if name not in emitted]
    info["listings"] = count_listings(LISTINGS_DB_PATH) if ENABLE_SIMILAR_LISTINGS else 0
    return info


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"ok": True}
