from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LunarCrushCoin(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    symbol: Optional[str] = None
    name: Optional[str] = None
    price: Optional[float] = None
    market_cap: Optional[float] = None
    volume_24h: Optional[float] = None
    percent_change_1h: Optional[float] = None
    percent_change_24h: Optional[float] = None
    percent_change_7d: Optional[float] = None
    alt_rank: Optional[float] = None

    # Not every coin carries social or supply figures.
    interactions_24h: Optional[float] = None
    social_dominance: Optional[float] = None
    circulating_supply: Optional[float] = None
    market_dominance: Optional[float] = None


class LunarCrushResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: list[LunarCrushCoin] = Field(default_factory=list)
