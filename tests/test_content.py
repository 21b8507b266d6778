from pathlib import Path

from syllabus.collections import PageCollection
from syllabus.content import (
    ContentProcessor,
    DefaultPageBuilder,
    FileContentLoader,
    LayoutResolver,
    Page,
    UrlDeriver,
)
from syllabus.extractors import (
    CompositeMetadataExtractor,
    DescriptionExtractor,
    FrontmatterExtractor,
    TitleExtractor,
    extract_frontmatter,
)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _page(**overrides) -> Page:
    values = dict(
        title="T",
        body="",
        content="",
        description="",
        url="/t/",
        slug="t",
        draft=False,
        layout="default",
        group="",
        path=Path("t.md"),
        folder="",
        filename="t.md",
        source_type="markdown",
    )
    values.update(overrides)
    return Page(**values)


def test_extract_frontmatter():
    meta, body = extract_frontmatter("---\norder: 2\ntitle: Git\n---\n# Body\n")
    assert meta == {"order": 2, "title": "Git"}
    assert body == "# Body\n"


def test_extract_frontmatter_invalid_is_left_in_body():
    text = "---\n: [bad\n---\nBody\n"
    assert extract_frontmatter(text) == ({}, text)
    listed = "---\n- a\n- b\n---\nBody\n"
    assert extract_frontmatter(listed) == ({}, listed)


def test_title_extractor_order():
    path = Path("02-css-part-1.md")
    assert TitleExtractor().extract("---\ntitle: Styled\n---\n# Heading\n", path) == {"title": "Styled"}
    assert TitleExtractor().extract("Intro\n\n# Heading\n", path) == {"title": "Heading"}
    assert TitleExtractor().extract("No heading here\n", path) == {"title": "Css Part 1"}


def test_description_extractor_skips_headings_and_code():
    content = "# Git\n\n```bash\ngit init\n```\n\nGit records <b>snapshots</b> of a project.\n"
    assert DescriptionExtractor().extract(content, Path("git.md")) == {
        "description": "Git records snapshots of a project."
    }
    assert DescriptionExtractor().extract("---\ndescription: Short\n---\nLong text\n", Path("a.md")) == {
        "description": "Short"
    }
    assert DescriptionExtractor().extract("# Only a heading\n", Path("a.md")) == {"description": ""}


def test_composite_extractor_merges_in_order():
    class Override:
        def extract(self, content, path):
            return {"title": "Overridden"}

    composite = CompositeMetadataExtractor([FrontmatterExtractor(), TitleExtractor()])
    composite.add_extractor(Override())
    result = composite.extract("---\nx: 1\n---\n# Git\n", Path("git.md"))
    assert result["frontmatter"] == {"x": 1}
    assert result["body"] == "# Git\n"
    assert result["title"] == "Overridden"


def test_file_content_loader_skips_internal_dirs_and_drafts(tmp_path):
    site = tmp_path / "site"
    _write(site / "block-one" / "git.md", "# Git\n")
    _write(site / "block-one" / "_wip.md", "# WIP\n")
    _write(site / "_layouts" / "default.html.jinja", "{{ page_content }}")
    _write(site / "_partials" / "nav.html", "<nav></nav>")
    _write(site / "block-one" / "notes.txt", "not a page")
    _write(site / "about.html", "<p>About</p>")

    loader = FileContentLoader(site)
    assert [p.relative_to(site).as_posix() for p in loader.iter_files()] == [
        "about.html",
        "block-one/git.md",
    ]
    with_drafts = [p.name for p in loader.iter_files(include_drafts=True)]
    assert "_wip.md" in with_drafts


def test_file_content_loader_respects_extensions(tmp_path):
    site = tmp_path / "site"
    _write(site / "a.md", "# A\n")
    _write(site / "b.html", "<p>B</p>")
    loader = FileContentLoader(site, extensions=["md"])
    assert [p.name for p in loader.iter_files()] == ["a.md"]


def test_url_deriver():
    deriver = UrlDeriver()
    assert deriver.derive(Path("block-one/git.md"), "git") == "/block-one/git/"
    assert deriver.derive(Path("block-one/index.md"), "index") == "/block-one/"
    assert deriver.derive(Path("index.md"), "index") == "/"
    assert deriver.derive(Path("about.md"), "about") == "/about/"


def test_layout_resolver(tmp_path):
    site = tmp_path / "site"
    _write(site / "_layouts" / "default.html.jinja", "")
    resolver = LayoutResolver(site)
    assert resolver.resolve(site / "block-one" / "git.md", "block-one") == "default"

    _write(site / "_layouts" / "block-one.html.jinja", "")
    assert resolver.resolve(site / "block-one" / "git.md", "block-one") == "block-one"

    _write(site / "_layouts" / "block-one" / "git.html.jinja", "")
    assert resolver.resolve(site / "block-one" / "git.md", "block-one") == "block-one/git"
    assert LayoutResolver.group_from_folder("block-one/extra") == "block-one"
    assert LayoutResolver.group_from_folder("") == ""


def test_page_builder_markdown_page(tmp_path):
    site = tmp_path / "site"
    path = _write(
        site / "block-one" / "01-git.md",
        "---\norder: 2\n---\n# Git\n\nGit is a version control system.\n\n![Branches](branches.png)\n",
    )
    page = DefaultPageBuilder(site).build(path)
    assert page.title == "Git"
    assert page.slug == "git"
    assert page.url == "/block-one/git/"
    assert page.group == "block-one"
    assert page.folder == "block-one"
    assert page.layout == "default"
    assert page.source_type == "markdown"
    assert page.description == "Git is a version control system."
    assert page.frontmatter == {"order": 2}
    assert [h.id for h in page.toc] == ["git"]
    assert 'src="/assets/images/block-one/branches.png"' in page.content
    assert 'class="text-2xl font-bold' in page.content


def test_page_builder_frontmatter_layout_and_draft_slug(tmp_path):
    site = tmp_path / "site"
    path = _write(site / "block-one" / "_draft-lesson.md", "---\nlayout: wide\n---\nText\n")
    page = DefaultPageBuilder(site).build(path, draft=True)
    assert page.layout == "wide"
    assert page.slug == "draft-lesson"
    assert page.draft is True
    assert page.title == "Draft Lesson"


def test_page_builder_rewrites_raw_html_images(tmp_path):
    site = tmp_path / "site"
    path = _write(site / "block-one" / "page.html", '<img src="diagram.png" alt="x">')
    page = DefaultPageBuilder(site).build(path)
    assert page.source_type == "html"
    assert '<img src="/assets/images/block-one/diagram.png"' in page.content


def test_content_processor_marks_drafts(tmp_path):
    site = tmp_path / "site"
    _write(site / "block-one" / "git.md", "# Git\n")
    _write(site / "block-one" / "_next.md", "# Next\n")
    processor = ContentProcessor(site)
    assert [p.slug for p in processor.load()] == ["git"]
    pages = processor.load(include_drafts=True)
    assert {p.slug: p.draft for p in pages} == {"next": True, "git": False}


def test_page_collection_helpers():
    pages = PageCollection(
        [
            _page(filename="css.md", url="/block-one/css/", group="block-one", frontmatter={"order": 4}),
            _page(filename="git.md", url="/block-one/git/", group="block-one", frontmatter={"order": 2}),
            _page(filename="dom.md", url="/block-two/dom/", group="block-two", draft=True),
            _page(filename="about.md", url="/about/"),
        ]
    )
    assert [p.filename for p in pages.group("block-one")] == ["css.md", "git.md"]
    assert [p.filename for p in pages.drafts()] == ["dom.md"]
    assert len(pages.published()) == 3
    assert pages.by_url("/block-one/git/").filename == "git.md"
    assert pages.by_url("/missing/") is None
    assert [p.filename for p in pages.ordered()] == ["git.md", "css.md", "about.md", "dom.md"]
    assert pages[0].filename == "css.md"
