from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class TransactionStatus(str, Enum):
    pending = "pending"
    passed = "passed"
    failed = "failed"


class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: TransactionStatus
    tx_hash: Optional[str] = None


class MintCodeResult(BaseModel):
    token: int


class MintCodeResponse(BaseModel):
    claimed: bool
    is_active: bool
    result: Optional[MintCodeResult] = None


class MintStatus(BaseModel):
    minted: bool
    is_active: bool
    poap_id: Optional[int] = None

    @classmethod
    def from_response(cls, response: MintCodeResponse) -> "MintStatus":
        return cls(
            minted=response.claimed,
            is_active=response.is_active,
            poap_id=response.result.token if response.result else None,
        )


class MintTransactionResult(BaseModel):
    tx_hash: Optional[str] = None


class Poap(BaseModel):
    id: int
    drop_id: int
    collector_address: str
    minted_on: Optional[datetime] = None


class PoapReservation(BaseModel):
    email: str
    drop_id: int
    image_url: str
    city: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = None
    start_date: date
    end_date: date
    name: str

    @classmethod
    def from_event(cls, email: str, event: dict) -> "PoapReservation":
        return cls(
            email=email,
            drop_id=event["id"],
            image_url=event["image_url"],
            city=event.get("city"),
            country=event.get("country"),
            description=event.get("description"),
            start_date=event["start_date"],
            end_date=event["end_date"],
            name=event["name"],
        )


class PollingConfig(BaseModel):
    max_retries: int = Field(default=20, ge=0)
    initial_delay: float = Field(default=1000.0, gt=0)  # milliseconds
    backoff_factor: float = Field(default=1.2, gt=1)


@dataclass(frozen=True)
class Retry:
    reason: str = ""


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class TerminalFailure:
    reason: str


PollOutcome = Union[Retry, Success[T], TerminalFailure]
