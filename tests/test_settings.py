import pytest
from pydantic import ValidationError

from auction_draft.schemas.settings import DraftSettingsUpdate
from auction_draft.services.settings_service import SettingsService


async def test_defaults_before_save(session):
    service = SettingsService(session)
    described = await service.describe("fresh-draft")
    assert described.is_default
    assert described.nomination_seconds == 12 * 3600
    assert not described.in_quiet_window


async def test_save_and_reload_policy(session):
    service = SettingsService(session)
    await service.save(
        "draft-1",
        DraftSettingsUpdate(
            nomination_seconds=300,
            bid_seconds=60,
            quiet_hours_enabled=True,
            quiet_start_minute=60,
            quiet_end_minute=120,
            quiet_timezone="Europe/London",
        ),
    )
    # Leaving the window out keeps the stored one.
    policy = await service.save("draft-1", DraftSettingsUpdate(nomination_seconds=900, bid_seconds=30))

    assert policy.nomination_seconds == 900
    assert policy.bid_seconds == 30
    assert policy.quiet_timezone == "Europe/London"
    assert policy.quiet_start_minute == 60
    assert policy.quiet_end_minute == 120
    assert not policy.quiet_hours_enabled
    assert (await service.get_policy("draft-1")) == policy


def test_rejects_unknown_timezone():
    with pytest.raises(ValidationError):
        DraftSettingsUpdate(nomination_seconds=60, bid_seconds=60, quiet_timezone="Nowhere/Special")


def test_rejects_out_of_range_minutes():
    with pytest.raises(ValidationError):
        DraftSettingsUpdate(nomination_seconds=60, bid_seconds=60, quiet_start_minute=1440)


async def test_first_save_fills_window_defaults(session):
    policy = await SettingsService(session).save(
        "draft-1", DraftSettingsUpdate(nomination_seconds=300, bid_seconds=60, quiet_hours_enabled=True)
    )
    assert policy.quiet_start_minute == 23 * 60
    assert policy.quiet_end_minute == 8 * 60
    assert policy.quiet_timezone == "America/New_York"
