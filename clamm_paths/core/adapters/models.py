from decimal import Decimal
from enum import StrEnum
from typing import Annotated, Literal

from eth_utils import to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from clamm_paths.core.utils.tick_math import tick_spacing_for_fee_tier


class QuoteKind(StrEnum):
    EXACT_INPUT = "ExactInput"
    EXACT_OUTPUT = "ExactOutput"


def _checksum(value: str) -> str:
    return to_checksum_address(str(value))


class Token(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    decimals: int = Field(ge=0)
    symbol: str = ""
    name: str = ""

    @field_validator("address")
    @classmethod
    def normalize_address(cls, value: str) -> str:
        return _checksum(value)


class Pool(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    token0: Token
    token1: Token
    fee_tier: int
    sqrt_price_x96: int = Field(ge=0)
    tick: int

    @field_validator("address")
    @classmethod
    def normalize_address(cls, value: str) -> str:
        return _checksum(value)

    @model_validator(mode="after")
    def check_token_order(self) -> "Pool":
        if int(self.token0.address, 16) >= int(self.token1.address, 16):
            raise ValueError(
                f"token0 must sort below token1: {self.token0.address} >= {self.token1.address}"
            )
        return self

    @property
    def tick_spacing(self) -> int:
        return tick_spacing_for_fee_tier(self.fee_tier)

    def other(self, token_address: str) -> Token:
        addr = _checksum(token_address)
        if addr == self.token0.address:
            return self.token1
        if addr == self.token1.address:
            return self.token0
        raise ValueError(f"{addr} is not a token of pool {self.address}")

    def has_token(self, token_address: str) -> bool:
        addr = _checksum(token_address)
        return addr in (self.token0.address, self.token1.address)


class Hop(BaseModel):
    token_in: str
    token_out: str
    # None only on the synthetic native/wrapped hop
    fee_tier: int | None
    pool_address: str
    sqrt_price_before: int = Field(ge=0)
    sqrt_price_after: int | None = None

    @field_validator("token_in", "token_out", "pool_address")
    @classmethod
    def normalize_addresses(cls, value: str) -> str:
        return _checksum(value)


QuotePath = list[Hop]


class _QuotationBase(BaseModel):
    token_in: Token
    token_out: Token
    amount_in: int = Field(ge=0)
    amount_out: int = Field(ge=0)
    price_per_token: Decimal | None = None
    price_impact_percent: float = 0.0
    path: QuotePath
    gas_estimate: int = 0


class ExactInputQuotation(_QuotationBase):
    kind: Literal["ExactInput"] = "ExactInput"


class ExactOutputQuotation(_QuotationBase):
    kind: Literal["ExactOutput"] = "ExactOutput"


Quotation = Annotated[
    ExactInputQuotation | ExactOutputQuotation, Field(discriminator="kind")
]


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    liquidity: int = Field(ge=0)
    tick_lower: int
    tick_upper: int
    fee_growth_inside0_last_x128: int = 0
    fee_growth_inside1_last_x128: int = 0
    tokens_owed0: int = 0
    tokens_owed1: int = 0

    @model_validator(mode="after")
    def check_range(self) -> "Position":
        if self.tick_lower >= self.tick_upper:
            raise ValueError(
                f"tick_lower must be below tick_upper: {self.tick_lower} >= {self.tick_upper}"
            )
        return self


class TickFeeGrowth(BaseModel):
    fee_growth_outside0_x128: int = 0
    fee_growth_outside1_x128: int = 0


class PoolFeeGrowth(BaseModel):
    fee_growth_global0_x128: int
    fee_growth_global1_x128: int


class PositionValuation(BaseModel):
    amount0: int
    amount1: int
    fees0: int
    fees1: int
    in_range: bool


class MinimumReceived(BaseModel):
    kind: Literal["MinimumReceived"] = "MinimumReceived"
    slippage_percent: float
    minimum_received: int


class MaximumSent(BaseModel):
    kind: Literal["MaximumSent"] = "MaximumSent"
    slippage_percent: float
    maximum_sent: int


SlippageBounds = Annotated[MinimumReceived | MaximumSent, Field(discriminator="kind")]
