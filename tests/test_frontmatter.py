from mdsite.frontmatter import FrontMatter, split_frontmatter


def test_no_frontmatter_returns_full_text():
    text = "# Hello\n\nBody text\n"
    meta, body = split_frontmatter(text)
    assert meta == FrontMatter()
    assert body == text


def test_known_and_custom_keys():
    text = (
        "---\n"
        "title: Hi\n"
        "template: post.html\n"
        "description: A page\n"
        "date: 2024-03-01\n"
        "tags: [intro, news]\n"
        "author: Sam\n"
        "draft: true\n"
        "---\n"
        "# Hello\n"
    )
    meta, body = split_frontmatter(text)
    assert meta.title == "Hi"
    assert meta.template == "post.html"
    assert meta.description == "A page"
    assert meta.date == "2024-03-01"
    assert meta.tags == ["intro", "news"]
    assert meta.custom == {"author": "Sam", "draft": True}
    assert body == "# Hello\n"


def test_block_is_removed_from_body():
    meta, body = split_frontmatter("---\ntitle: x\n---\n---\nrest\n")
    assert meta.title == "x"
    assert body == "---\nrest\n"


def test_unterminated_block_is_treated_as_body():
    text = "---\ntitle: Hi\n# no closing delimiter\n"
    meta, body = split_frontmatter(text)
    assert meta == FrontMatter()
    assert body == text


def test_must_start_at_first_line():
    text = "\n---\ntitle: Hi\n---\nbody"
    meta, body = split_frontmatter(text)
    assert meta.title == ""
    assert body == text


def test_empty_block():
    meta, body = split_frontmatter("---\n---\nbody")
    assert meta == FrontMatter()
    assert body == "body"


def test_closing_delimiter_needs_newline():
    text = "---\ntitle: End\n---"
    meta, body = split_frontmatter(text)
    assert meta == FrontMatter()
    assert body == text

    text = "---\ntitle: Spaced\n--- \nbody\n"
    meta, body = split_frontmatter(text)
    assert meta.title == ""
    assert body == text


def test_crlf_delimiters():
    meta, body = split_frontmatter("---\r\ntitle: Win\r\n---\r\nbody\r\n")
    assert meta.title == "Win"
    assert body == "body\r\n"


def test_invalid_yaml_logs_and_strips_block(capsys):
    meta, body = split_frontmatter("---\ntitle: [unclosed\n---\nbody\n", source="bad.md")
    assert meta == FrontMatter()
    assert body == "body\n"
    assert "Error parsing front matter in bad.md" in capsys.readouterr().err


def test_non_mapping_block_is_a_decode_error(capsys):
    meta, body = split_frontmatter("---\n- a\n- b\n---\nbody")
    assert meta == FrontMatter()
    assert body == "body"
    assert "expected a mapping" in capsys.readouterr().err


def test_scalar_tags_and_non_string_values():
    meta, _ = split_frontmatter("---\ntitle: 42\ntags: solo\n---\n")
    assert meta.title == "42"
    assert meta.tags == ["solo"]


def test_null_values_become_empty():
    meta, _ = split_frontmatter("---\ntitle:\ntags:\n---\n")
    assert meta.title == ""
    assert meta.tags == []
