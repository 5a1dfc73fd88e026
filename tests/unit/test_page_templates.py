"""Tests for the public site page rendering."""

from cleanstay.services.page_templates import (
    LEGACY_REDIRECTS,
    get_page,
    list_pages,
    render_block_html,
    render_not_found,
    render_page,
)


class TestPages:
    def test_routed_pages(self):
        assert set(list_pages()) == {
            "/", "/airbnb", "/cenik", "/uklid-domacnosti", "/uklid-firem", "/gdpr",
        }

    def test_trailing_slash_tolerated(self):
        assert get_page("/cenik/") is get_page("/cenik")
        assert get_page("/neexistuje") is None

    def test_legacy_redirects_point_to_pages(self):
        assert all(target in list_pages() for target in LEGACY_REDIRECTS.values())

    def test_render_home(self):
        page = render_page("/")

        assert page.startswith("<!DOCTYPE html>")
        assert "<title>Úklid domácností, kanceláří a Airbnb | CleanStay Praha</title>" in page
        assert 'id="kalkulacka"' in page
        assert 'action="/public/contact"' in page
        assert 'id="cleanstay-chat"' in page

    def test_price_list_uses_estimator_brackets(self):
        page = render_page("/cenik")

        assert "od 890 Kč" in page
        assert "od 1 390 Kč" in page

    def test_unknown_page(self):
        assert render_page("/neexistuje") is None
        assert "Stránka nenalezena" in render_not_found()


class TestBlocks:
    def test_escapes_content(self):
        html = render_block_html({
            "type": "text",
            "config": {"title": "<script>alert(1)</script>", "paragraphs": ["a & b"]},
        })

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "a &amp; b" in html

    def test_unsafe_links_neutralized(self):
        html = render_block_html({
            "type": "hero",
            "config": {"headline": "Ahoj", "buttonText": "Klik", "buttonLink": "javascript:alert(1)"},
        })

        assert 'href="#"' in html
        assert "javascript" not in html

    def test_unknown_block_type(self):
        assert render_block_html({"type": "carousel", "config": {}}) == ""
