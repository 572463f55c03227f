"""SQL storage for campaigns and their targeting rules."""

from __future__ import annotations

import json
import os
import sqlite3
import threading
from typing import Any

from .models import Campaign, DimensionType, RuleType, Status, TargetingRule


class CampaignNotFoundError(LookupError):
    """Raised when a requested campaign does not exist."""

    def __init__(self, message: str = "campaign not found") -> None:
        super().__init__(message)


_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS campaigns (
        id VARCHAR(255) PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        image_url VARCHAR(255) NOT NULL,
        cta VARCHAR(255) NOT NULL,
        status VARCHAR(255) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS targeting_rules (
        campaign_id VARCHAR(255) NOT NULL,
        dimension_type VARCHAR(255) NOT NULL,
        rule_type VARCHAR(255) NOT NULL,
        "values" TEXT NOT NULL,
        PRIMARY KEY (campaign_id, dimension_type),
        FOREIGN KEY (campaign_id) REFERENCES campaigns(id) ON DELETE CASCADE
    )
    """,
)

_TEST_CAMPAIGNS = (
    Campaign(
        id="spotify",
        name="Spotify - Music for everyone",
        image_url="https://somelink",
        cta="Download",
        status=Status.ACTIVE,
    ),
    Campaign(
        id="duolingo",
        name="Duolingo: Best way to learn",
        image_url="https://somelink2",
        cta="Install",
        status=Status.ACTIVE,
    ),
    Campaign(
        id="subwaysurfer",
        name="Subway Surfer",
        image_url="https://somelink3",
        cta="Play",
        status=Status.ACTIVE,
    ),
)

_TEST_RULES = (
    TargetingRule("spotify", DimensionType.COUNTRY, RuleType.INCLUDE, ("US", "Canada")),
    TargetingRule("duolingo", DimensionType.OS, RuleType.INCLUDE, ("Android", "iOS")),
    TargetingRule("duolingo", DimensionType.COUNTRY, RuleType.EXCLUDE, ("US",)),
    TargetingRule("subwaysurfer", DimensionType.OS, RuleType.INCLUDE, ("Android",)),
    TargetingRule(
        "subwaysurfer", DimensionType.APP, RuleType.INCLUDE, ("com.gametion.ludokinggame",)
    ),
)


def _enum_or_raw(enum_type: Any, value: str) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        return value


def _text(value: Any) -> str:
    return value.value if hasattr(value, "value") else str(value)


class SqlRepository:
    """Campaign store backed by an SQL database.

    With ``active_only`` set, only campaigns whose status is ACTIVE are
    returned by :meth:`get_campaigns`.
    """

    def __init__(
        self,
        database: str | os.PathLike[str] = ":memory:",
        *,
        active_only: bool = False,
    ) -> None:
        self.active_only = active_only
        self._lock = threading.RLock()
        self._connection = sqlite3.connect(database, check_same_thread=False)
        try:
            self._connection.execute("PRAGMA foreign_keys = ON")
            with self._connection:
                for statement in _SCHEMA:
                    self._connection.execute(statement)
        except sqlite3.Error:
            self._connection.close()
            raise

    def get_campaigns(self) -> list[Campaign]:
        """Return the stored campaigns."""
        query = "SELECT id, name, image_url, cta, status FROM campaigns"
        if self.active_only:
            query += " WHERE status = 'ACTIVE'"
        with self._lock:
            rows = self._connection.execute(query).fetchall()
        return [
            Campaign(
                id=row[0],
                name=row[1],
                image_url=row[2],
                cta=row[3],
                status=_enum_or_raw(Status, row[4]),
            )
            for row in rows
        ]

    def save_campaign(self, campaign: Campaign) -> None:
        """Insert a campaign, or update the one with the same id."""
        with self._lock, self._connection:
            self._connection.execute(
                """
                INSERT INTO campaigns (id, name, image_url, cta, status)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (id) DO UPDATE
                SET name = excluded.name, image_url = excluded.image_url,
                    cta = excluded.cta, status = excluded.status
                """,
                (
                    campaign.id,
                    campaign.name,
                    campaign.image_url,
                    campaign.cta,
                    _text(campaign.status),
                ),
            )

    def get_targeting_rules(self) -> list[TargetingRule]:
        """Return all stored targeting rules."""
        with self._lock:
            rows = self._connection.execute(
                'SELECT campaign_id, dimension_type, rule_type, "values" FROM targeting_rules'
            ).fetchall()
        return [
            TargetingRule(
                campaign_id=row[0],
                dimension_type=_enum_or_raw(DimensionType, row[1]),
                rule_type=_enum_or_raw(RuleType, row[2]),
                values=tuple(json.loads(row[3])),
            )
            for row in rows
        ]

    def save_targeting_rule(self, rule: TargetingRule) -> None:
        """Insert a targeting rule.

        Raises sqlite3.IntegrityError if the campaign already has a rule for
        the dimension or the campaign does not exist.
        """
        with self._lock, self._connection:
            self._connection.execute(
                """
                INSERT INTO targeting_rules (campaign_id, dimension_type, rule_type, "values")
                VALUES (?, ?, ?, ?)
                """,
                (
                    rule.campaign_id,
                    _text(rule.dimension_type),
                    _text(rule.rule_type),
                    json.dumps(list(rule.values)),
                ),
            )

    def init_test_data(self) -> None:
        """Store a small fixed set of sample campaigns and rules."""
        for campaign in _TEST_CAMPAIGNS:
            self.save_campaign(campaign)
        for rule in _TEST_RULES:
            self.save_targeting_rule(rule)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._connection.close()

    def __enter__(self) -> SqlRepository:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()