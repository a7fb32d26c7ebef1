from __future__ import annotations

import markdown as _markdown
import pystache

from pipefn.pipefn_datatypes import Pipeable, read_text

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
{{#title}}<title>{{title}}</title>
{{/title}}</head>
<body>
{{{content}}}
</body>
</html>
"""

MARKDOWN_EXTENSIONS = ["fenced_code", "tables"]


def markdown_to_html(text: str) -> str:
    # A fresh Markdown instance per call; instances keep per-document state.
    return _markdown.Markdown(extensions=MARKDOWN_EXTENSIONS).convert(text)


def wrap_in_page(html: str, title: str | None = None) -> str:
    # Content is already HTML; only the title is escaped.
    renderer = pystache.Renderer()
    return renderer.render(PAGE_TEMPLATE, {"content": html, "title": title})


async def to_html(value: Pipeable) -> str:
    return markdown_to_html(await read_text(value))


async def wrap_html_in_page(value: Pipeable) -> str:
    return wrap_in_page(await read_text(value))
