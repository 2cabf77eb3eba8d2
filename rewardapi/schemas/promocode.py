from pydantic import BaseModel, Field


class PromocodeRedeemRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=64, description="프로모코드")


class PromocodeRedeemResult(BaseModel):
    success: bool = True
    code: str
    points_earned: int
    new_balance: int
    usage_id: int
    message: str
