import sqlite3

import pytest

from targeting_engine.models import (
    Campaign,
    DeliveryRequest,
    DimensionType,
    RuleType,
    Status,
    TargetingRule,
)
from targeting_engine.repository import CampaignNotFoundError, SqlRepository
from targeting_engine.service import TargetingService


@pytest.fixture
def repo():
    with SqlRepository() as repository:
        yield repository


def _campaign(cid, status=Status.ACTIVE, name="Name"):
    return Campaign(id=cid, name=name, image_url="img-" + cid, cta="Go", status=status)


def test_empty_repository_has_nothing(repo):
    assert repo.get_campaigns() == []
    assert repo.get_targeting_rules() == []


def test_campaign_round_trip(repo):
    campaign = _campaign("a")
    repo.save_campaign(campaign)
    assert repo.get_campaigns() == [campaign]


def test_save_campaign_updates_existing(repo):
    repo.save_campaign(_campaign("a", name="First"))
    repo.save_campaign(_campaign("a", status=Status.INACTIVE, name="Second"))
    campaigns = repo.get_campaigns()
    assert len(campaigns) == 1
    assert campaigns[0].name == "Second"
    assert campaigns[0].status == Status.INACTIVE


def test_active_only_filters_inactive():
    with SqlRepository(active_only=True) as repository:
        repository.save_campaign(_campaign("on"))
        repository.save_campaign(_campaign("off", status=Status.INACTIVE))
        assert [c.id for c in repository.get_campaigns()] == ["on"]


def test_default_returns_inactive_too(repo):
    repo.save_campaign(_campaign("on"))
    repo.save_campaign(_campaign("off", status=Status.INACTIVE))
    assert {c.id for c in repo.get_campaigns()} == {"on", "off"}


def test_rule_round_trip(repo):
    repo.save_campaign(_campaign("a"))
    rule = TargetingRule("a", DimensionType.OS, RuleType.EXCLUDE, ["Android", "iOS"])
    repo.save_targeting_rule(rule)
    assert repo.get_targeting_rules() == [rule]
    assert repo.get_targeting_rules()[0].values == ("Android", "iOS")


def test_duplicate_rule_dimension_rejected(repo):
    repo.save_campaign(_campaign("a"))
    repo.save_targeting_rule(TargetingRule("a", DimensionType.OS, RuleType.INCLUDE, ["x"]))
    with pytest.raises(sqlite3.IntegrityError):
        repo.save_targeting_rule(
            TargetingRule("a", DimensionType.OS, RuleType.EXCLUDE, ["y"])
        )


def test_rule_for_unknown_campaign_rejected(repo):
    with pytest.raises(sqlite3.IntegrityError):
        repo.save_targeting_rule(
            TargetingRule("missing", DimensionType.APP, RuleType.INCLUDE, ["x"])
        )


def test_init_test_data_contents(repo):
    repo.init_test_data()
    assert {c.id for c in repo.get_campaigns()} == {"spotify", "duolingo", "subwaysurfer"}
    rules = repo.get_targeting_rules()
    assert len(rules) == 5
    spotify = [r for r in rules if r.campaign_id == "spotify"]
    assert spotify == [
        TargetingRule("spotify", DimensionType.COUNTRY, RuleType.INCLUDE, ("US", "Canada"))
    ]


def test_init_test_data_twice_fails_on_rules(repo):
    repo.init_test_data()
    with pytest.raises(sqlite3.IntegrityError):
        repo.init_test_data()
    assert len(repo.get_campaigns()) == 3


def test_service_over_sample_data(repo):
    repo.init_test_data()
    service = TargetingService(repo)
    result = service.get_matching_campaigns(
        DeliveryRequest(app="com.gametion.ludokinggame", os="android", country="us")
    )
    assert {r.cid for r in result} == {"spotify", "subwaysurfer"}


def test_persistence_across_connections(tmp_path):
    path = tmp_path / "store.db"
    with SqlRepository(path) as first:
        first.save_campaign(_campaign("kept"))
    with SqlRepository(path) as second:
        assert [c.id for c in second.get_campaigns()] == ["kept"]


def test_closed_repository_raises():
    repository = SqlRepository()
    with repository:
        repository.save_campaign(_campaign("a"))
    with pytest.raises(sqlite3.ProgrammingError):
        repository.get_campaigns()


def test_campaign_not_found_message():
    error = CampaignNotFoundError()
    assert str(error) == "campaign not found"
    assert issubclass(CampaignNotFoundError, LookupError)