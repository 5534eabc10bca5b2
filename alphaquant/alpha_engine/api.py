"""
Alpha Engine REST API

HTTP endpoints for factor computation, factor schemas and monitoring.
"""

from fastapi import FastAPI, HTTPException, Path as PathParam
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Dict
import math
import logging

from alphaquant.alpha_engine.config import AlphaEngineConfig
from alphaquant.alpha_engine.exceptions import AlphaEngineError
from alphaquant.alpha_engine.nan_handling import NaNHandlingStrategy
from alphaquant.alpha_engine.pipeline import AlphaPipeline
from alphaquant.alpha_engine.schemas import AlphaType, Bar

LOG = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"

# Initialize FastAPI app
app = FastAPI(
    title="AlphaQuant Alpha Engine API",
    description="REST API for Alpha101 / Alpha158 / Alpha360 factor computation",
    version=SERVICE_VERSION
)

# Global instances
config = AlphaEngineConfig()
pipeline = AlphaPipeline(config)

SUPPORTED_FAMILIES = [AlphaType.ALPHA101.value, AlphaType.ALPHA158.value, AlphaType.ALPHA360.value]


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class BarModel(BaseModel):
    """One OHLCV bar, timestamp in Unix seconds"""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    amount: float = 0.0
    turnover: float = 0.0


class ComputeAlphaRequest(BaseModel):
    """Request to compute the latest factor vector"""
    symbol: str = Field(..., description="Trading symbol (e.g., AAPL)")
    bars: List[BarModel] = Field(..., description="Chronological bars, oldest first")
    nan_strategy: Optional[str] = Field(None, description="NaN handling strategy name (e.g., FILL_ZERO)")

    class Config:
        json_schema_extra = {
            "example": {
                "symbol": "AAPL",
                "nan_strategy": "FILL_ZERO",
                "bars": [
                    {
                        "timestamp": 1735689600,
                        "open": 185.2,
                        "high": 187.0,
                        "low": 184.9,
                        "close": 186.4,
                        "volume": 51230000
                    }
                ]
            }
        }

    @field_validator('nan_strategy')
    @classmethod
    def _known_strategy(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            NaNHandlingStrategy.parse(value)
        return value

    def to_bars(self) -> List[Bar]:
        return [
            Bar(
                symbol=self.symbol,
                timestamp=b.timestamp,
                open=b.open,
                high=b.high,
                low=b.low,
                close=b.close,
                volume=b.volume,
                amount=b.amount,
                turnover=b.turnover,
            )
            for b in self.bars
        ]


class ComputeAlphaResponse(BaseModel):
    """Latest feature vector; NaN values are returned as null"""
    success: bool
    symbol: str
    family: str
    timestamp: int
    dimension: int
    factor_names: List[str]
    values: List[Optional[float]]
    invalid_values: int
    bars_processed: int
    config_hash: str


class SchemaResponse(BaseModel):
    family: str
    factor_count: int
    factor_names: List[str]
    config_hash: str


class HealthResponse(BaseModel):
    """Health status response"""
    status: str
    success_rate_pct: float
    total_computations: int
    uptime_seconds: float
    metrics: Dict


def _parse_family(family: str) -> AlphaType:
    if family.lower() not in SUPPORTED_FAMILIES:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown alpha family '{family}', expected one of {SUPPORTED_FAMILIES}"
        )
    return AlphaType.parse(family)


def _json_value(value: float) -> Optional[float]:
    return float(value) if math.isfinite(value) else None


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "AlphaQuant Alpha Engine API",
        "version": SERVICE_VERSION,
        "status": "online",
        "families": SUPPORTED_FAMILIES,
        "endpoints": {
            "compute": "/compute/{family}",
            "schema": "/schema/{family}",
            "health": "/health",
            "config": "/config"
        }
    }


@app.get("/config")
async def get_config():
    """Current engine configuration with its hash"""
    return config.to_dict()


@app.get("/schema/{family}", response_model=SchemaResponse)
async def get_schema(family: str = PathParam(..., description="alpha101, alpha158 or alpha360")):
    """Ordered factor names for a family"""
    alpha_type = _parse_family(family)
    names = pipeline.factor_order(alpha_type)
    return SchemaResponse(
        family=alpha_type.value,
        factor_count=len(names),
        factor_names=names,
        config_hash=config.get_config_hash()
    )


@app.post("/compute/{family}", response_model=ComputeAlphaResponse)
async def compute_alpha(
    request: ComputeAlphaRequest,
    family: str = PathParam(..., description="alpha101, alpha158 or alpha360")
):
    """
    Compute the factor vector for the latest bar.

    Returns:
        Feature vector in registry order

    Raises:
        HTTPException 400: unknown family or invalid bars
    """
    alpha_type = _parse_family(family)
    strategy = NaNHandlingStrategy.parse(request.nan_strategy) if request.nan_strategy else None

    try:
        vector = pipeline.compute_vector(request.to_bars(), alpha_type, nan_strategy=strategy)
    except (AlphaEngineError, ValueError) as e:
        LOG.warning(f"Alpha computation rejected for {request.symbol}: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    if vector is None:
        raise HTTPException(
            status_code=400,
            detail=f"No result for {request.symbol}: insufficient bars for {alpha_type.value}"
        )

    return ComputeAlphaResponse(
        success=True,
        symbol=request.symbol,
        family=alpha_type.value,
        timestamp=vector.timestamp,
        dimension=vector.dimension,
        factor_names=vector.factor_names,
        values=[_json_value(v) for v in vector.to_list()],
        invalid_values=len(vector.invalid_value_indices()),
        bars_processed=len(request.bars),
        config_hash=config.get_config_hash()
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health status of the Alpha Engine"""
    status = pipeline.health_monitor.get_health_status()

    return HealthResponse(
        status=status['status'],
        success_rate_pct=status['success_rate_pct'],
        total_computations=status['total_computations'],
        uptime_seconds=status['metrics']['timestamps']['uptime_seconds'],
        metrics=status['metrics']
    )
