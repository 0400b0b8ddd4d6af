"""HTML-scraping engines and the data table of generic sites."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional
from urllib.parse import quote_plus

import httpx
from bs4.element import Tag

from aggregator.adapters.base import SearchEngine
from aggregator.extraction import extract_items, parse_generic_item
from aggregator.models import EngineCapabilities, VideoResult


def dashed(query: str) -> str:
    return quote_plus("-".join(query.split()), safe="-")


class HtmlEngine(SearchEngine):
    """Engine whose results are scraped from an HTML search page.

    ``selector`` is a CSS selector list matching one node per result.
    Bespoke sites override :meth:`parse_item`; everyone else gets the
    generic extraction chain.
    """

    method = "html"

    def __init__(
        self,
        name: str,
        display_name: str,
        base_url: str,
        tier: int,
        *,
        path: str,
        selector: str,
        encode: Callable[[str], str] = quote_plus,
        first_page: int = 1,
        **kwargs,
    ):
        # Generic scraping declares no capabilities: heuristics may fill a field
        # but cannot promise it.
        kwargs.setdefault("capabilities", EngineCapabilities())
        super().__init__(name, display_name, base_url, tier, **kwargs)
        self.path = path
        self.selector = selector
        self.encode = encode
        self.first_page = first_page

    def search_url(self, query: str, page: int) -> str:
        upstream_page = page - 1 + self.first_page
        return self.build_search_url(self.path, query, upstream_page, encode=self.encode)

    def parse_item(self, node: Tag, base_url: str, source: str, source_display: str) -> VideoResult:
        return parse_generic_item(node, base_url, source, source_display)

    async def search(self, query: str, page: int, client: httpx.AsyncClient) -> List[VideoResult]:
        response = await self.fetch(client, self.search_url(query, page))
        return extract_items(
            response.text,
            self.selector,
            self.base_url,
            self.name,
            self.display_name,
            parse_item=self.parse_item,
        )


@dataclass(frozen=True)
class GenericSite:
    name: str
    display_name: str
    base_url: str
    tier: int
    path: str
    selector: str
    encode: Optional[Callable[[str], str]] = None

    def build(self, max_retries: int = 2) -> HtmlEngine:
        return HtmlEngine(
            self.name,
            self.display_name,
            self.base_url,
            self.tier,
            path=self.path,
            selector=self.selector,
            encode=self.encode or quote_plus,
            max_retries=max_retries,
        )


GENERIC_SITES: List[GenericSite] = [
    # tier 3
    GenericSite("4tube", "4Tube", "https://www.4tube.com", 3, "/search?q={query}&p={page}", "div.card"),
    GenericSite("fux", "Fux", "https://www.fux.com", 3, "/search?q={query}&p={page}", "div.card"),
    GenericSite("porntube", "PornTube", "https://www.porntube.com", 3, "/search?q={query}&p={page}", "div.video_container"),
    GenericSite("youjizz", "YouJizz", "https://www.youjizz.com", 3, "/search/{query}-{page}.html",
                "div.video-item, li.video-item", encode=dashed),
    GenericSite("sunporno", "SunPorno", "https://www.sunporno.com", 3, "/search/videos?q={query}&page={page}", "a.item.drclass"),
    GenericSite("txxx", "Txxx", "https://www.txxx.com", 3, "/search/{query}/?page={page}", "div.thumb-item, div.video-item"),
    GenericSite("nuvid", "Nuvid", "https://www.nuvid.com", 3, "/search/{query}/{page}", "a.th.video-thumb"),
    GenericSite("tnaflix", "TNAFlix", "https://www.tnaflix.com", 3, "/search.php?what={query}&page={page}",
                "div.col-xs-6.col-md-4, div.video-item"),
    GenericSite("drtuber", "DrTuber", "https://www.drtuber.com", 3,
                "/search/videos?search_type=videos&search_id={query}&p={page}", "a.th.ch-video"),
    GenericSite("empflix", "EMPFlix", "https://www.empflix.com", 3, "/search.php?what={query}&page={page}",
                "div.item-video, div.video-item"),
    GenericSite("hellporno", "HellPorno", "https://hellporno.com", 3, "/search/?q={query}&page={page}", "div.video-thumb"),
    GenericSite("alphaporno", "AlphaPorno", "https://www.alphaporno.com", 3, "/search/{query}/?page={page}", "li.thumb"),
    GenericSite("pornflip", "PornFlip", "https://www.pornflip.com", 3, "/search?search={query}&page={page}",
                "div.video-item, div.thumb-item"),
    GenericSite("zenporn", "ZenPorn", "https://zenporn.com", 3, "/search/{query}/?page={page}", "article.thumb"),
    GenericSite("gotporn", "GotPorn", "https://www.gotporn.com", 3, "/search?q={query}&page={page}", "div.card.sub"),
    GenericSite("hdzog", "HDZog", "https://www.hdzog.com", 3, "/search/{query}/?page={page}", "div.video, div.video-item"),
    GenericSite("xxxymovies", "XXXYMovies", "https://www.xxxymovies.com", 3, "/search/{query}/?page={page}",
                "div.video-item, div.item"),
    GenericSite("lovehomeporn", "LoveHomePorn", "https://lovehomeporn.com", 3, "/search/{query}/?page={page}",
                "div.video-item, div.item"),
    GenericSite("anyporn", "AnyPorn", "https://www.anyporn.com", 3, "/search/?q={query}&p={page}", "div.item"),
    GenericSite("superporn", "SuperPorn", "https://www.superporn.com", 3, "/search/{query}?p={page}", "div.thumb-video"),
    GenericSite("tubegalore", "TubeGalore", "https://www.tubegalore.com", 3, "/search/?q={query}&p={page}", "div.card"),
    GenericSite("motherless", "Motherless", "https://motherless.com", 3, "/term/videos/{query}?page={page}",
                "div.thumb-container, div.thumb"),
    GenericSite("keezmovies", "KeezMovies", "https://www.keezmovies.com", 3, "/search/{query}?page={page}",
                "li.video-item, div.video-item, div.videoblock"),
    GenericSite("spankwire", "SpankWire", "https://www.spankwire.com", 3, "/search/videos/{query}?page={page}",
                "li.video-item, div.video-item, div.videoblock"),
    GenericSite("extremetube", "ExtremeTube", "https://www.extremetube.com", 3, "/search/{query}/?page={page}",
                "li.video-item, div.video-item, div.thumb-item"),
    GenericSite("3movs", "3Movs", "https://www.3movs.com", 3, "/search/{query}/?p={page}",
                "div.video-item, div.thumb-item, li.thumb-item"),
    GenericSite("sleazyneasy", "SleazyNeasy", "https://www.sleazyneasy.com", 3, "/search/{query}/?page={page}",
                "div.video-item, div.thumb-item, article.video"),
    # tier 4
    GenericSite("pornerbros", "PornerBros", "https://www.pornerbros.com", 4, "/search?q={query}&page={page}", "div.card.sub"),
    GenericSite("nonktube", "NonkTube", "https://www.nonktube.com", 4, "/search/{query}/?p={page}", "div.video-item, div.thumb"),
    GenericSite("nubilesporn", "NubilesPorn", "https://nubiles-porn.com", 4, "/search/{query}/?page={page}",
                "div.scene, article.video, div.video-item"),
    GenericSite("pornbox", "Pornbox", "https://pornbox.com", 4, "/search?q={query}&page={page}",
                "div.video-item, div.item, article.video"),
    GenericSite("porntop", "PornTop", "https://porntop.com", 4, "/?s={query}&page={page}", "div.item"),
    GenericSite("pornotube", "Pornotube", "https://pornotube.com", 4, "/search?q={query}&page={page}",
                "div.video-item, div.thumb, article.video"),
    GenericSite("vporn", "VPorn", "https://www.vporn.com", 4, "/search?q={query}&page={page}", "div.video-item, div.thumb-item"),
    GenericSite("pornhd", "PornHD", "https://www.pornhd.com", 4, "/search?search={query}&page={page}", "div.card.sub"),
    GenericSite("xbabe", "XBabe", "https://xbabe.com", 4, "/?s={query}&page={page}", "div.thumb"),
    GenericSite("pornone", "PornOne", "https://pornone.com", 4, "/search/?q={query}&page={page}",
                "div.video-item, div.thumb, article.video"),
    GenericSite("pornhat", "PornHat", "https://www.pornhat.com", 4, "/search/{query}/?page={page}", "div.video-item, div.item"),
    GenericSite("porntrex", "PornTrex", "https://www.porntrex.com", 4, "/search/{query}/?page={page}", "div.video-item, div.thumb"),
    GenericSite("hqporner", "Hqporner", "https://hqporner.com", 4, "/?q={query}&p={page}", "div.box, div.video-item"),
    GenericSite("vjav", "VJAV", "https://vjav.com", 4, "/search/{query}/?page={page}", "div.video-item, article.video, div.item"),
    GenericSite("flyflv", "Flyflv", "https://www.flyflv.com", 4, "/search/{query}/?page={page}", "div.video-item, div.item"),
    GenericSite("tube8", "Tube8", "https://www.tube8.com", 4, "/searches?q={query}&page={page}",
                "div.video-box, div.thumbnail-card"),
    GenericSite("xtube", "Xtube", "https://www.xtube.com", 4, "/search/?q={query}&page={page}", "div.video-item, div.thumb"),
]
