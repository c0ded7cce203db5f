from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from zonedebrid.search import detail
from zonedebrid.search.types import FilmLinks, RawListingEntry, SeriesLinks

BASE_URL = "https://zt.example/"
FILM_URL = "https://zt.example/?p=film&id=101-inception"
SEASON_1_URL = "https://zt.example/?p=serie&id=7-show-saison1"

FILM_PAGE = """
<div style="color:red; font-weight:bold">Blu-Ray 1080p | MULTI</div>
<div><img src="/templates/synopsis.png"><em>Dom Cobb est un voleur.</em></div>
<div><strong>Année de production :</strong> 2010</div>
<div class="otherversions">
  <a href="?p=film&id=201-inception">
    <span class="otherquality">
      <span style="color:#FE8903"><b>DVDRIP</b></span>
      <span style="color:#03AAFE"><b>(TRUEFRENCH)</b></span>
    </span>
  </a>
  <a href="?p=film&id=202-inception">
    <span class="otherquality">
      <span style="color:#FE8903"><b>HDLIGHT 720p</b></span>
      <span style="color:#03AAFE"><b>(VFF)</b></span>
    </span>
  </a>
  <a href="?p=film&id=203-inception">
    <span class="otherquality">
      <span style="color:#FE8903"><b>DVDRIP</b></span>
      <span style="color:#03AAFE"><b>(TRUEFRENCH)</b></span>
    </span>
  </a>
</div>
"""

SEASON_1_PAGE = """
<div style="color:red;font-weight:bold">VOSTFR HD</div>
<div><img src="/templates/synopsis.png"><em>Une petite ville.</em></div>
<div><strong>Année de production :</strong> 2019</div>
<div>10 Episodes | Saison 1</div>
<div><strong>Taille d'un épisode</strong> : ~350 Mo</div>
<div class="otherversions">
  <a href="?p=serie&id=17-show-saison1"><span class="otherquality">(VF HD)</span></a>
  <a href="?p=serie&id=8-show-saison2"><span class="otherquality">Saison 2 (VOSTFR HD)</span></a>
  <a href="?p=serie&id=9-show-saison3"><span class="otherquality">Saison 3 (VF)</span></a>
</div>
"""

SEASON_1_VF_PAGE = """
<div>12 Episodes | Saison 1</div>
<div><strong>Taille d'un episode</strong> : ~500 Mo</div>
"""

SEASON_2_PAGE = """
<a href="https://dl-protect.example/a?fn=Episode-1">Episode 1</a>
<a href="https://dl-protect.example/b?fn=Episode-2">Episode 2</a>
<a href="https://dl-protect.example/c?fn=Episode-3">Episode 3</a>
"""


class _FakeLog:
    def __init__(self) -> None:
        self.lines: list[str] = []

    def _record(self, *args, **_kwargs) -> None:
        self.lines.append(" ".join(str(arg) for arg in args))

    info = warning = error = debug = status = api_request = api_response = _record


class _PageFetcher:
    def __init__(self, pages: dict[str, str]) -> None:
        self.pages = pages
        self.calls: list[str] = []

    async def fetch_html(self, url: str) -> BeautifulSoup:
        self.calls.append(url)
        if url not in self.pages:
            raise RuntimeError(f"unexpected url {url}")
        return BeautifulSoup(self.pages[url], "html.parser")


@pytest.fixture(autouse=True)
def _quiet_logger(monkeypatch: pytest.MonkeyPatch) -> _FakeLog:
    log = _FakeLog()
    monkeypatch.setattr(detail.logger, "get_logger", lambda: log)
    return log


def test_parse_film_versions_reads_banner_and_other_versions() -> None:
    links = detail.parse_film_versions(BeautifulSoup(FILM_PAGE, "html.parser"), FILM_URL, BASE_URL)

    assert links.to_dict() == {
        "MULTI": {"BLU-RAY_1080P": {"link": FILM_URL}},
        "TRUEFRENCH": {"DVDRIP": {"link": "https://zt.example/?p=film&id=201-inception"}},
        "VFF": {"HDLIGHT_720P": {"link": "https://zt.example/?p=film&id=202-inception"}},
    }


def test_extract_synopsis_and_release_year() -> None:
    soup = BeautifulSoup(FILM_PAGE, "html.parser")

    assert detail.extract_synopsis(soup) == "Dom Cobb est un voleur."
    assert detail.extract_release_year(soup) == "2010"
    assert detail.extract_synopsis(BeautifulSoup("<p>rien</p>", "html.parser")) is None
    assert detail.extract_release_year(BeautifulSoup("<p>rien</p>", "html.parser")) is None


def test_multi_language_badge_keeps_the_named_language() -> None:
    html = """
    <div class="otherversions">
      <a href="?p=film&id=301-x">
        <span class="otherquality">
          <span style="color:#FE8903"><b>WEB-DL 1080p</b></span>
          <span style="color:#03AAFE"><b>(MULTI (TRUEFRENCH))</b></span>
        </span>
      </a>
    </div>
    """
    links = detail.parse_film_versions(BeautifulSoup(html, "html.parser"), FILM_URL, BASE_URL)

    assert list(links.languages) == ["TRUEFRENCH"]
    assert list(links.languages["TRUEFRENCH"]) == ["WEB-DL_1080P"]


@pytest.mark.asyncio
async def test_scrape_film_detail_builds_entry() -> None:
    fetcher = _PageFetcher({FILM_URL: FILM_PAGE})
    item = RawListingEntry(title="Inception", link=FILM_URL, image="https://zt.example/img/i.jpg")

    entry = await detail.scrape_film_detail(fetcher, item, "inception", BASE_URL)

    assert entry.title == "Inception"
    assert entry.relevance_score == 1.0
    assert entry.description == "Dom Cobb est un voleur."
    assert entry.release_year == "2010"
    assert entry.image == "https://zt.example/img/i.jpg"
    assert isinstance(entry.links, FilmLinks)
    assert set(entry.links.languages) == {"MULTI", "TRUEFRENCH", "VFF"}


@pytest.mark.asyncio
async def test_scrape_film_detail_failure_keeps_entry_without_links(_quiet_logger: _FakeLog) -> None:
    item = RawListingEntry(title="Inception", link=FILM_URL)

    entry = await detail.scrape_film_detail(_PageFetcher({}), item, "inception", BASE_URL)

    assert entry.relevance_score == 1.0
    assert entry.links.is_empty()
    assert entry.description is None
    assert any("Film details unavailable" in line for line in _quiet_logger.lines)


def test_parse_season_page_counts_and_sizes() -> None:
    first = detail.parse_season_page(BeautifulSoup(SEASON_1_PAGE, "html.parser"))
    second = detail.parse_season_page(BeautifulSoup(SEASON_2_PAGE, "html.parser"))

    assert first.episodes == 10
    assert first.file_size == "~350 Mo"
    assert second.episodes == 3
    assert second.file_size is None


def test_parse_series_versions_groups_by_season() -> None:
    links = detail.parse_series_versions(BeautifulSoup(SEASON_1_PAGE, "html.parser"), SEASON_1_URL, BASE_URL)

    assert list(links.seasons) == ["SAISON_1", "SAISON_2", "SAISON_3"]
    assert links.seasons["SAISON_1"].versions["VOSTFR"]["HD"].link == SEASON_1_URL
    assert links.seasons["SAISON_1"].versions["VF"]["HD"].link == "https://zt.example/?p=serie&id=17-show-saison1"
    assert links.seasons["SAISON_2"].versions["VOSTFR"]["HD"].link == "https://zt.example/?p=serie&id=8-show-saison2"
    assert links.seasons["SAISON_3"].versions["VF"]["NORMAL"].link == "https://zt.example/?p=serie&id=9-show-saison3"


@pytest.mark.asyncio
async def test_scrape_series_detail_enriches_every_variant(_quiet_logger: _FakeLog) -> None:
    fetcher = _PageFetcher(
        {
            SEASON_1_URL: SEASON_1_PAGE,
            "https://zt.example/?p=serie&id=17-show-saison1": SEASON_1_VF_PAGE,
            "https://zt.example/?p=serie&id=8-show-saison2": SEASON_2_PAGE,
        }
    )
    item = RawListingEntry(title="Show - Saison 1", link=SEASON_1_URL)

    entry = await detail.scrape_series_detail(fetcher, item, "show", BASE_URL)

    assert entry.title == "Show"
    assert entry.relevance_score == 1.0
    assert entry.release_year == "2019"
    assert entry.description == "Une petite ville."
    assert isinstance(entry.links, SeriesLinks)
    seasons = entry.links.seasons
    assert list(seasons) == ["SAISON_1", "SAISON_2", "SAISON_3"]
    assert seasons["SAISON_1"].episodes == 12
    assert seasons["SAISON_1"].versions["VOSTFR"]["HD"].file_size == "~350 Mo"
    assert seasons["SAISON_1"].versions["VF"]["HD"].file_size == "~500 Mo"
    assert seasons["SAISON_2"].episodes == 3
    assert seasons["SAISON_3"].episodes is None
    assert any("Season details skipped for SAISON_3" in line for line in _quiet_logger.lines)


@pytest.mark.asyncio
async def test_scrape_series_detail_failure_strips_title() -> None:
    item = RawListingEntry(title="Show - Saison 1", link=SEASON_1_URL)

    entry = await detail.scrape_series_detail(_PageFetcher({}), item, "show", BASE_URL)

    assert entry.title == "Show"
    assert isinstance(entry.links, SeriesLinks)
    assert entry.links.is_empty()
