"""Tests for loading a story directory."""

from PIL import Image

from scrollgate.config import StoryConfig
from scrollgate.loader import discover_page_numbers, load_pages
from scrollgate.models import ElementKind


def write_page(story_dir, n: int, text: str) -> None:
    story_dir.mkdir(parents=True, exist_ok=True)
    (story_dir / f"p{n}.txt").write_text(text, encoding="utf-8")


class TestLoadPages:
    def test_discovers_pages_in_numeric_order(self, tmp_path):
        for n in (10, 2, 1):
            write_page(tmp_path, n, f"<txt>{{t}}</txt>\n{{\nt = \"page {n}\"\n}}\n")
        (tmp_path / "notes.txt").write_text("not a page")

        result = load_pages(tmp_path)

        assert [p.index for p in result.pages] == [0, 1, 9]
        assert [p.elements[0].resolved for p in result.pages] == ["page 1", "page 2", "page 10"]
        assert result.failures == {}
        assert result.is_partial is False

    def test_missing_page_is_skipped(self, tmp_path):
        write_page(tmp_path, 1, "<txt>{a}</txt>\n")
        write_page(tmp_path, 3, "<txt>{a}</txt>\n")

        result = load_pages(tmp_path, StoryConfig(page_count=3))

        assert [p.index for p in result.pages] == [0, 2]
        assert list(result.failures) == [1]
        assert result.is_partial is True
        assert result.is_empty is False

    def test_no_pages_is_empty(self, tmp_path):
        result = load_pages(tmp_path / "nowhere", StoryConfig(page_count=2))
        assert result.is_empty is True
        assert result.is_partial is False
        assert set(result.failures) == {0, 1}

    def test_discovery_on_missing_dir(self, tmp_path):
        assert discover_page_numbers(tmp_path / "nowhere", "p{n}.txt") == []


class TestAssets:
    def test_text_file_loaded(self, tmp_path):
        (tmp_path / "text").mkdir()
        (tmp_path / "text" / "intro.txt").write_text("It was a dark night.", encoding="utf-8")
        write_page(tmp_path, 1, "<txt>{intro}</txt>\n{\nintro = \"text/intro.txt\"\n}\n")

        element = load_pages(tmp_path).pages[0].elements[0]

        assert element.content == "text/intro.txt"
        assert element.resolved == "It was a dark night."

    def test_missing_text_file_gets_placeholder(self, tmp_path):
        write_page(tmp_path, 1, "<txt>{intro}</txt>\n{\nintro = \"text/gone.txt\"\n}\n")
        config = StoryConfig(text_load_failure="(missing)")
        element = load_pages(tmp_path, config).pages[0].elements[0]
        assert element.resolved == "(missing)"

    def test_unbound_text_stays_empty(self, tmp_path):
        write_page(tmp_path, 1, "<txt>{intro}</txt>\n")
        element = load_pages(tmp_path).pages[0].elements[0]
        assert element.content is None
        assert element.resolved is None

    def test_image_size_read(self, tmp_path):
        (tmp_path / "img").mkdir()
        Image.new("RGB", (40, 30)).save(tmp_path / "img" / "door.png")
        write_page(tmp_path, 1, "<pic>{door}</pic>\n{\ndoor = \"img/door.png\"\n}\n")

        element = load_pages(tmp_path).pages[0].elements[0]

        assert element.kind == ElementKind.IMAGE
        assert element.image_size == (40, 30)
        assert element.resolved == str(tmp_path / "img" / "door.png")

    def test_unreadable_image_has_no_size(self, tmp_path):
        write_page(tmp_path, 1, "<pic>{door}</pic>\n{\ndoor = \"img/none.png\"\n}\n")
        element = load_pages(tmp_path).pages[0].elements[0]
        assert element.image_size is None
        assert element.resolved is not None

    def test_image_url_kept(self, tmp_path):
        write_page(tmp_path, 1, "<pic>{door}</pic>\n{\ndoor = https://example.com/door.png\n}\n")
        element = load_pages(tmp_path).pages[0].elements[0]
        assert element.resolved == "https://example.com/door.png"
