"""Tests for generic HTML extraction and value parsers."""

import pytest
from bs4 import BeautifulSoup

from exceptions import ExtractionSkip
from aggregator.extraction import (
    extract_items,
    extract_json_object,
    format_duration,
    format_view_count,
    parse_duration,
    parse_generic_item,
    parse_quality,
    parse_rating,
    parse_views,
)

BASE = "https://site.test"


def _node(html: str):
    return BeautifulSoup(html, "html.parser").find("div")


class TestParsers:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("12:34", ("12:34", 754)),
            ("1:02:03", ("1:02:03", 3723)),
            ("754", ("12:34", 754)),
            ("12 min", ("12:00", 720)),
            ("1h 5m", ("1:05:00", 3900)),
            ("", ("", 0)),
            ("soon", ("", 0)),
        ],
    )
    def test_parse_duration(self, text, expected):
        assert parse_duration(text) == expected

    def test_format_duration(self):
        assert format_duration(3600) == "1:00:00"
        assert format_duration(59) == "0:59"
        assert format_duration(0) == ""
        assert format_duration(None) == ""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1.2M views", ("1.2M", 1_200_000)),
            ("500K", ("500K", 500_000)),
            ("12,345", ("12.3K", 12_345)),
            ("", ("", 0)),
        ],
    )
    def test_parse_views(self, text, expected):
        assert parse_views(text) == expected

    def test_format_view_count(self):
        assert format_view_count(999) == "999"
        assert format_view_count(2_500_000_000) == "2.5B"

    def test_parse_rating(self):
        assert parse_rating("93%") == 93.0
        assert parse_rating("4.5/5") == 90.0
        assert parse_rating("4 stars") == 80.0
        assert parse_rating("") is None

    def test_parse_quality(self):
        assert parse_quality("1080p") == "1080p"
        assert parse_quality("2160P") == "4K"
        assert parse_quality("HD") == "HD"
        assert parse_quality("none here") == ""


class TestExtractJsonObject:
    def test_stops_at_matching_brace(self):
        text = 'var x = 1; window.initials={"a": {"b": "}"}, "c": [1, 2]};more();'
        assert extract_json_object(text, "window.initials=") == {"a": {"b": "}"}, "c": [1, 2]}

    def test_escaped_quotes_inside_strings(self):
        text = 'window.initials = {"title": "say \\"hi\\" {"}'
        assert extract_json_object(text, "window.initials =") == {"title": 'say "hi" {'}

    def test_missing_or_broken(self):
        assert extract_json_object("nothing here", "window.initials=") is None
        assert extract_json_object('window.initials={"a": 1', "window.initials=") is None
        assert extract_json_object("window.initials=[1, 2]", "window.initials=") is None


class TestGenericItem:
    def test_title_from_img_alt(self):
        node = _node('<div class="item"><a href="/v/1"><img alt="X" src="/t.jpg"></a></div>')
        result = parse_generic_item(node, BASE, "site", "Site")
        assert result.title == "X"
        assert result.url == "https://site.test/v/1"
        assert result.thumbnail == "https://site.test/t.jpg"

    def test_link_title_beats_alt(self):
        node = _node('<div><a href="/v/1" title="Link Title"><img alt="Alt"></a></div>')
        assert parse_generic_item(node, BASE, "site", "Site").title == "Link Title"

    def test_fields(self):
        node = _node(
            '<div data-tags="Amateur, POV,x">'
            '<a href="//cdn.site.test/v/2" title="Clip">'
            '<img data-src="data:image/gif;base64,AAAA" src="/real.jpg" data-preview="/p.mp4"></a>'
            '<span class="duration">10:05</span>'
            '<span class="views">1.5K views</span>'
            '<span class="rating">87%</span>'
            '<span class="hd-badge">1080p</span>'
            '<a class="model">Jane Doe</a>'
            "</div>"
        )
        result = parse_generic_item(node, BASE, "site", "Site")
        assert result.url == "https://cdn.site.test/v/2"
        assert result.thumbnail == "https://site.test/real.jpg"
        assert result.preview_url == "https://site.test/p.mp4"
        assert result.duration == "10:05"
        assert result.duration_seconds == 605
        assert result.views_count == 1500
        assert result.rating == 87.0
        assert result.quality == "1080p"
        assert result.performer == "Jane Doe"
        assert result.tags == ["amateur", "pov"]
        assert result.is_premium is False
        assert result.source_display == "Site"
        assert len(result.id) == 16

    def test_preview_lookup_order(self):
        container = _node(
            '<div data-preview="/p/node.mp4"><a href="/v/1" title="T" data-preview="/p/link.mp4">'
            '<img data-mediabook="/p/img.webm"></a></div>'
        )
        image = _node('<div><a href="/v/1" title="T" data-preview="/p/link.mp4"><img data-mediabook="/p/img.webm"></a></div>')
        link = _node('<div><a href="/v/1" title="T" data-preview="/p/link.mp4"><img src="/t.jpg"></a></div>')

        assert parse_generic_item(container, BASE, "site", "Site").preview_url == "https://site.test/p/node.mp4"
        assert parse_generic_item(image, BASE, "site", "Site").preview_url == "https://site.test/p/img.webm"
        assert parse_generic_item(link, BASE, "site", "Site").preview_url == "https://site.test/p/link.mp4"

    def test_keyword_slug_is_not_premium(self):
        node = _node('<div><a href="/video-abc/golden-hour/" title="Golden hour"></a></div>')
        assert parse_generic_item(node, BASE, "site", "Site").is_premium is False

    def test_premium_marker(self):
        node = _node('<div><a href="/v/3" title="T"></a><span class="premium-badge"></span></div>')
        assert parse_generic_item(node, BASE, "site", "Site").is_premium is True

    def test_overrides_win(self):
        node = _node('<div><a href="/v/4" title="Generic"><span class="duration">1:00</span></a></div>')
        result = parse_generic_item(
            node, BASE, "site", "Site", {"title": "Bespoke", "duration_seconds": 120}
        )
        assert result.title == "Bespoke"
        assert result.duration == "2:00"

    def test_no_link_is_skipped(self):
        with pytest.raises(ExtractionSkip):
            parse_generic_item(_node("<div><img alt='X'></div>"), BASE, "site", "Site")

    def test_no_title_is_skipped(self):
        with pytest.raises(ExtractionSkip):
            parse_generic_item(_node('<div><a href="/v/5"></a></div>'), BASE, "site", "Site")


def test_extract_items_drops_malformed_items_in_order():
    html = """
    <ul>
      <li class="v"><a href="/v/1" title="First"></a></li>
      <li class="v"><span>no link</span></li>
      <li class="v"><a href="/v/3" title="Third"></a></li>
    </ul>
    """
    results = extract_items(html, "li.v", BASE, "site", "Site")
    assert [r.title for r in results] == ["First", "Third"]
    assert results[0].source == "site"
