"""Selection of the campaigns that match a delivery request."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import (
    Campaign,
    CampaignResponse,
    DeliveryRequest,
    DimensionType,
    RuleType,
    Status,
    TargetingRule,
)


class InvalidRequestError(ValueError):
    """Raised when a delivery request lacks a required parameter."""

    def __init__(self, message: str = "invalid request: missing required parameters") -> None:
        super().__init__(message)


class CampaignRepository(Protocol):
    """Source of campaigns and their targeting rules."""

    def get_campaigns(self) -> Sequence[Campaign]:
        """Return all stored campaigns."""
        ...

    def get_targeting_rules(self) -> Sequence[TargetingRule]:
        """Return all stored targeting rules."""
        ...


def _dimension(value: DimensionType | str) -> DimensionType | None:
    try:
        return DimensionType(value)
    except ValueError:
        return None


def _matches(value: str, rule: TargetingRule) -> bool:
    normalized = value.lower()
    listed = any(candidate.lower() == normalized for candidate in rule.values)
    if rule.rule_type == RuleType.INCLUDE:
        return listed
    return not listed


class TargetingService:
    """Matches delivery requests against campaigns and their rules."""

    def __init__(self, repository: CampaignRepository) -> None:
        self.repository = repository

    def get_matching_campaigns(self, request: DeliveryRequest) -> list[CampaignResponse]:
        """Return the active campaigns whose rules admit the request.

        Raises InvalidRequestError if app, os or country is empty.
        """
        if not (request.app and request.os and request.country):
            raise InvalidRequestError()

        campaigns = self.repository.get_campaigns()
        rules = self.repository.get_targeting_rules()

        rules_by_campaign: dict[str, dict[DimensionType, TargetingRule]] = {}
        for rule in rules:
            dimension = _dimension(rule.dimension_type)
            per_campaign = rules_by_campaign.setdefault(rule.campaign_id, {})
            if dimension is not None:
                per_campaign[dimension] = rule

        return [
            campaign.to_response()
            for campaign in campaigns
            if campaign.status == Status.ACTIVE
            and self._campaign_matches(campaign.id, request, rules_by_campaign)
        ]

    @staticmethod
    def _campaign_matches(
        campaign_id: str,
        request: DeliveryRequest,
        rules_by_campaign: dict[str, dict[DimensionType, TargetingRule]],
    ) -> bool:
        rules = rules_by_campaign.get(campaign_id)
        if rules is None:
            return True
        checks = (
            (DimensionType.APP, request.app),
            (DimensionType.COUNTRY, request.country),
            (DimensionType.OS, request.os),
        )
        return all(
            _matches(value, rules[dimension])
            for dimension, value in checks
            if dimension in rules
        )