from unittest.mock import MagicMock

import pytest

from mangaverse.mangaverse.id_normalizer import normalize_id
from mangaverse.mangaverse.logging import APIError, IdNotFoundError


def test_maps_mal_id_to_anilist():
    anilist = MagicMock()
    anilist.get_media_by_mal_id.return_value = {
        "id": 20,
        "idMal": 20,
        "title": {"english": "Naruto", "romaji": "NARUTO", "native": "ナルト"},
    }

    mapping = normalize_id(anilist, "20")

    assert mapping.anilist_id == "20"
    assert mapping.mal_id == "20"
    assert mapping.best_title == "Naruto"
    anilist.get_media_by_mal_id.assert_called_once_with(20, "ANIME")


def test_best_title_falls_back_to_romaji_then_native():
    anilist = MagicMock()
    anilist.get_media_by_mal_id.return_value = {"id": 1, "title": {"native": "ナルト"}}
    assert normalize_id(anilist, "1").best_title == "ナルト"

    anilist.get_media_by_mal_id.return_value = {"id": 1, "title": {"romaji": "Naruto", "native": "ナルト"}}
    assert normalize_id(anilist, "1").best_title == "Naruto"


def test_manga_lookup():
    anilist = MagicMock()
    anilist.get_media_by_mal_id.return_value = {"id": 30013}
    mapping = normalize_id(anilist, 13, media_type="MANGA")

    assert mapping.anilist_id == "30013"
    assert mapping.best_title is None
    anilist.get_media_by_mal_id.assert_called_once_with(13, "MANGA")


@pytest.mark.parametrize("bad_id", ["abc", "", "12a", "-5"])
def test_non_numeric_ids_are_not_found(bad_id):
    anilist = MagicMock()
    with pytest.raises(IdNotFoundError):
        normalize_id(anilist, bad_id)
    anilist.get_media_by_mal_id.assert_not_called()


def test_missing_media_is_not_found():
    anilist = MagicMock()
    anilist.get_media_by_mal_id.return_value = None
    with pytest.raises(IdNotFoundError):
        normalize_id(anilist, "99999999")


def test_provider_errors_propagate():
    anilist = MagicMock()
    anilist.get_media_by_mal_id.side_effect = APIError("AniList down", status_code=503)
    with pytest.raises(APIError):
        normalize_id(anilist, "21")
