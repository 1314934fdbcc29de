"""
Tests for MetadataService record building.
"""
import pytest
from unittest.mock import AsyncMock, Mock

from vnshelf.exceptions import NoRandomEntryFoundError
from vnshelf.models.metadata import Character, DevStatus, ImageBlob
from vnshelf.services.metadata_service import MetadataService

RAW_VN = {
    "id": "v17",
    "title": "Ever17",
    "devstatus": 0,
    "image": {"url": "https://t.vndb.org/cv/main.jpg"},
    "description": "[b]Trapped[/b] under the sea.",
    "tags": [
        {"id": "g1", "name": "Mystery", "rating": 2.9, "spoiler": 0},
        {"id": "g2", "name": "Twist", "rating": 1.2, "spoiler": 2},
        {"id": "g3", "name": "", "rating": 2.0, "spoiler": 0},
    ],
    "developers": [{"id": "p1", "name": "KID"}],
    "rating": 86,
}


@pytest.fixture
def mock_client():
    return Mock(
        fetch_by_title=AsyncMock(return_value=RAW_VN),
        fetch_by_id=AsyncMock(return_value=RAW_VN),
        fetch_tag_name=AsyncMock(return_value="Submarine"),
        fetch_characters=AsyncMock(return_value=[Character("c1", "Tsugumi", "Komachi")]),
        fetch_random_entry=AsyncMock(return_value=RAW_VN),
    )


@pytest.fixture
def mock_artwork():
    cover = ImageBlob(data="Y292ZXI=", url="https://t.vndb.org/cv/portrait.jpg")
    return Mock(resolve_images=AsyncMock(return_value=(cover, None)))


@pytest.fixture
def metadata_service(mock_client, mock_artwork):
    return MetadataService(mock_client, mock_artwork)


@pytest.mark.asyncio
async def test_fetch_for_title_builds_record(metadata_service, mock_artwork, mock_client):
    metadata = await metadata_service.fetch_for_title("Ever17")

    assert metadata.vndb_id == "v17"
    assert metadata.title == "Ever17"
    assert metadata.dev_status == DevStatus.FINISHED
    assert metadata.rating == pytest.approx(4.3)
    assert [t.name for t in metadata.tags] == ["Mystery", "Submarine"]
    assert [d.name for d in metadata.developers] == ["KID"]
    assert metadata.description == "[b]Trapped[/b] under the sea."
    assert metadata.cover.url == "https://t.vndb.org/cv/portrait.jpg"
    assert metadata.banner is None
    mock_artwork.resolve_images.assert_awaited_once_with("v17", "https://t.vndb.org/cv/main.jpg")
    mock_client.fetch_tag_name.assert_awaited_once_with("g3")


@pytest.mark.asyncio
async def test_fetch_for_title_not_found(metadata_service, mock_client, mock_artwork):
    mock_client.fetch_by_title.return_value = None

    assert await metadata_service.fetch_for_title("Unknown") is None
    mock_artwork.resolve_images.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_for_title_swallows_network_errors(metadata_service, mock_client):
    mock_client.fetch_by_title.side_effect = OSError("network down")
    assert await metadata_service.fetch_for_title("Ever17") is None


@pytest.mark.asyncio
async def test_fetch_for_title_malformed_result_gives_none(metadata_service, mock_client):
    mock_client.fetch_by_title.return_value = {"title": "No id"}
    assert await metadata_service.fetch_for_title("No id") is None

    mock_client.fetch_by_title.return_value = dict(RAW_VN, rating="abc")
    assert await metadata_service.fetch_for_title("Ever17") is None


@pytest.mark.asyncio
async def test_fetch_for_id_malformed_result_gives_none(metadata_service, mock_client):
    mock_client.fetch_by_id.return_value = dict(RAW_VN, developers=["KID"])
    assert await metadata_service.fetch_for_id("v17") is None


@pytest.mark.asyncio
async def test_artwork_failure_keeps_metadata(metadata_service, mock_artwork):
    mock_artwork.resolve_images.side_effect = RuntimeError("boom")

    metadata = await metadata_service.fetch_for_id("v17")

    assert metadata.title == "Ever17"
    assert metadata.cover is None
    assert metadata.banner is None


@pytest.mark.asyncio
async def test_missing_rating_and_status(metadata_service, mock_client):
    mock_client.fetch_by_id.return_value = {"id": "v2", "title": "Bare"}

    metadata = await metadata_service.fetch_for_id("v2")

    assert metadata.rating is None
    assert metadata.dev_status == DevStatus.UNKNOWN
    assert metadata.tags == []


@pytest.mark.asyncio
async def test_fetch_characters_error_gives_empty_list(metadata_service, mock_client):
    mock_client.fetch_characters.side_effect = OSError("timeout")
    assert await metadata_service.fetch_characters("v17") == []


@pytest.mark.asyncio
async def test_fetch_random_propagates_not_found(metadata_service, mock_client):
    mock_client.fetch_random_entry.side_effect = NoRandomEntryFoundError("none")
    with pytest.raises(NoRandomEntryFoundError):
        await metadata_service.fetch_random()
