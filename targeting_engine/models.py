"""Domain objects for campaigns, targeting rules and delivery requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


class Status(str, Enum):
    """Lifecycle state of a campaign."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class RuleType(str, Enum):
    """Whether a targeting rule admits or rejects the listed values."""

    INCLUDE = "INCLUDE"
    EXCLUDE = "EXCLUDE"


class DimensionType(str, Enum):
    """Request attribute that a targeting rule applies to."""

    APP = "APP"
    COUNTRY = "COUNTRY"
    OS = "OS"


@dataclass(frozen=True)
class CampaignResponse:
    """The public view of a campaign returned to clients."""

    cid: str
    img: str
    cta: str

    def to_dict(self) -> dict[str, str]:
        """Return the JSON-ready mapping of this response."""
        return {"cid": self.cid, "img": self.img, "cta": self.cta}


@dataclass(frozen=True)
class Campaign:
    """An advertising campaign."""

    id: str
    name: str
    image_url: str
    cta: str
    status: Status | str = Status.ACTIVE

    def to_response(self) -> CampaignResponse:
        """Return the client-facing view of this campaign."""
        return CampaignResponse(cid=self.id, img=self.image_url, cta=self.cta)


@dataclass(frozen=True)
class TargetingRule:
    """A rule restricting one dimension of the requests a campaign serves."""

    campaign_id: str
    dimension_type: DimensionType | str
    rule_type: RuleType | str
    values: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        values: Iterable[str] = self.values
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class DeliveryRequest:
    """The attributes of a request for campaigns."""

    app: str
    os: str
    country: str


@dataclass(frozen=True)
class ErrorResponse:
    """An error message returned to clients."""

    error: str

    def to_dict(self) -> dict[str, str]:
        """Return the JSON-ready mapping of this error."""
        return {"error": self.error}