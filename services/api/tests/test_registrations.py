import pytest

from livingword.services.catalog import Language
from livingword.services.registrations import register_device


@pytest.mark.asyncio
async def test_register_device_defaults_timezone(registrations):
    await register_device("T1", language=Language.PT, frequency=3, timezone=None, repository=registrations)

    reg = registrations.rows["T1"]
    assert reg.language == "pt"
    assert reg.frequency == 3
    assert reg.timezone == "America/Santiago"


@pytest.mark.asyncio
async def test_register_device_overwrites_existing(registrations):
    await register_device("T1", language=Language.ES, frequency=1, timezone="Europe/Madrid", repository=registrations)
    await register_device("T1", language=Language.EN, frequency=3, timezone="Asia/Tokyo", repository=registrations)

    assert len(registrations.rows) == 1
    assert registrations.rows["T1"].timezone == "Asia/Tokyo"


@pytest.mark.asyncio
async def test_register_device_keeps_unknown_timezone(registrations):
    # Stored as sent; the hourly pass skips it.
    await register_device("T1", language=Language.ES, frequency=1, timezone="Nowhere/City", repository=registrations)

    assert registrations.rows["T1"].timezone == "Nowhere/City"


@pytest.mark.asyncio
async def test_register_device_keeps_region_name_as_timezone(registrations):
    # "America" is a tzdata directory, not a zone.
    await register_device("T1", language=Language.ES, frequency=3, timezone="America", repository=registrations)

    assert registrations.rows["T1"].timezone == "America"
