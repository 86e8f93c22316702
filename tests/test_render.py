import asyncio
from pathlib import Path

import pytest

from microssg.errors import DuplicatePageError, PostBuildError, RenderError
from microssg.paths import resolve_paths
from microssg.render import (
    Page,
    apply_post_build,
    discover_pages,
    merge_context,
    render_page,
)
from microssg.templates import TemplateEngine


def make_page(tmp_path: Path, name: str, text: str, ext: str = ".hbs") -> Page:
    pages = tmp_path / "pages"
    pages.mkdir(parents=True, exist_ok=True)
    path = pages / f"{name}{ext}"
    path.write_text(text, encoding="utf-8")
    return Page(name=name, path=path)


def render(tmp_path, page, engine=None, **kwargs):
    return asyncio.run(
        render_page(
            page,
            paths=resolve_paths(tmp_path),
            engine=engine or TemplateEngine(),
            **kwargs,
        )
    )


def test_merge_context_namespaces_shared_data():
    context = merge_context({"key": "value"}, {"yeet": "yolo"})
    assert context == {"key": "value", "_shared": {"yeet": "yolo"}}


def test_merge_context_absent_data():
    assert merge_context(None, None) == {"_shared": {}}
    assert merge_context(None, {"a": 1}) == {"_shared": {"a": 1}}
    assert merge_context({"a": 1}, None) == {"a": 1, "_shared": {}}


def test_merge_context_page_shared_field_wins():
    context = merge_context({"_shared": "mine"}, {"yeet": "yolo"})
    assert context["_shared"] == "mine"


def test_merge_context_copies_shared_data():
    shared = {"a": 1}
    context = merge_context(None, shared)
    context["_shared"]["a"] = 2
    assert shared == {"a": 1}


def test_discover_pages(tmp_path):
    make_page(tmp_path, "index", "")
    make_page(tmp_path, "about", "", ext=".handlebars")
    (tmp_path / "pages" / "notes.txt").write_text("", encoding="utf-8")
    pages = discover_pages(tmp_path / "pages")
    assert [(p.name, p.path.name) for p in pages] == [
        ("about", "about.handlebars"),
        ("index", "index.hbs"),
    ]
    assert pages[0].output_name == "about.html"


def test_discover_pages_missing_directory(tmp_path):
    assert discover_pages(tmp_path / "pages") == []


def test_discover_pages_duplicate_names(tmp_path):
    make_page(tmp_path, "index", "a")
    make_page(tmp_path, "index", "b", ext=".handlebars")
    with pytest.raises(DuplicatePageError) as info:
        discover_pages(tmp_path / "pages")
    assert info.value.name == "index"


def test_discover_pages_excluded_file_does_not_clash(tmp_path):
    make_page(tmp_path, "index", "a")
    make_page(tmp_path, "index", "b", ext=".handlebars")
    pages = discover_pages(tmp_path / "pages", lambda path: path.name == "index.handlebars")
    assert [p.path.name for p in pages] == ["index.handlebars", "index.hbs"]


def test_render_page_with_page_and_shared_data(tmp_path):
    page = make_page(tmp_path, "index", "{{key}} / {{_shared.yeet}}")
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "index.yaml").write_text("key: value\n", encoding="utf-8")
    rendered = render(tmp_path, page, shared_data={"yeet": "yolo"})
    assert rendered.output == "value / yolo"
    assert rendered.data == {"key": "value"}
    assert rendered.text == "{{key}} / {{_shared.yeet}}"


def test_render_page_without_any_data(tmp_path):
    page = make_page(tmp_path, "plain", "Hello{{missing}}!")
    assert render(tmp_path, page).output == "Hello!"


def test_render_page_resolves_partials(tmp_path):
    page = make_page(tmp_path, "index", "<body>{{> header}}</body>")
    (tmp_path / "partials").mkdir()
    (tmp_path / "partials" / "header.hbs").write_text("<h1>{{_shared.title}}</h1>", encoding="utf-8")
    engine = TemplateEngine()
    rendered = render(tmp_path, page, engine=engine, shared_data={"title": "Hi"})
    assert rendered.output == "<body><h1>Hi</h1></body>"
    assert "header" in engine.partials


def test_render_page_markdown_data(tmp_path):
    page = make_page(tmp_path, "post", "<article>{{{_md}}}</article>")
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "post.md").write_text("Some **bold** text", encoding="utf-8")
    rendered = render(tmp_path, page)
    assert rendered.output == "<article><p>Some <strong>bold</strong> text</p></article>"


def test_render_error_wraps_helper_failure(tmp_path):
    page = make_page(tmp_path, "index", "{{shout title}}")
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "index.json").write_text('{"title": 3}', encoding="utf-8")
    engine = TemplateEngine()
    engine.register_helper("shout", lambda this, value: value.upper())
    with pytest.raises(RenderError) as info:
        render(tmp_path, page, engine=engine)
    assert info.value.page_name == "index"
    assert "index" in info.value.message
    assert "missing data" not in info.value.message
    assert isinstance(info.value.original_error, AttributeError)


def test_render_error_hints_at_missing_data(tmp_path):
    page = make_page(tmp_path, "index", "{{shout title}}")
    engine = TemplateEngine()
    engine.register_helper("shout", lambda this, value: value.upper())
    with pytest.raises(RenderError, match="missing data"):
        render(tmp_path, page, engine=engine)


def test_render_page_applies_post_build(tmp_path):
    page = make_page(tmp_path, "index", "body")
    rendered = render(tmp_path, page, post_build=lambda name, html: f"{name}:{html}")
    assert rendered.output == "index:body"


def test_apply_post_build_accepts_coroutines():
    async def transform(name, html):
        return html.upper()

    assert asyncio.run(apply_post_build(transform, "index", "abc")) == "ABC"


def test_apply_post_build_wraps_errors():
    def transform(name, html):
        raise ValueError("nope")

    with pytest.raises(PostBuildError) as info:
        asyncio.run(apply_post_build(transform, "index", "abc"))
    assert info.value.page_name == "index"
    assert "nope" in info.value.message


def test_apply_post_build_requires_string():
    with pytest.raises(PostBuildError, match="expected a string"):
        asyncio.run(apply_post_build(lambda name, html: None, "index", "abc"))


def test_render_error_wraps_undecodable_page(tmp_path):
    page = make_page(tmp_path, "index", "")
    page.path.write_bytes(b"caf\xe9 {{x}}")
    with pytest.raises(RenderError) as info:
        render(tmp_path, page)
    assert info.value.page_name == "index"
    assert isinstance(info.value.original_error, UnicodeDecodeError)
