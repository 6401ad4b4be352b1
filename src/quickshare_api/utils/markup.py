"""Rich-text markup to plain text."""
import re

from bs4 import BeautifulSoup

BLOCK_TAGS = (
    "address", "article", "blockquote", "br", "dd", "div", "dl", "dt", "figcaption",
    "footer", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "li", "ol",
    "p", "pre", "section", "table", "tr", "ul",
)

_SPACES = re.compile(r"[ \t\r\f\v]+")


def html_to_text(markup: str) -> str:
    """
    Plain-text rendering of editor markup.

    Parsed rather than pattern-stripped, so nested and unclosed tags and
    entities come out right: ``"<p>Hello <b>World</b></p>"`` gives
    ``"Hello World"`` and ``"<p>a</p><p>b</p>"`` gives ``"a\\nb"``.
    """
    if not markup:
        return ""
    soup = BeautifulSoup(markup, "html.parser")
    for element in soup(["script", "style"]):
        element.decompose()
    for element in soup.find_all(list(BLOCK_TAGS)):
        element.insert_before("\n")
        element.insert_after("\n")

    lines = (_SPACES.sub(" ", line).strip() for line in soup.get_text().splitlines())
    return "\n".join(line for line in lines if line)


def word_count(markup: str) -> int:
    return len(html_to_text(markup).split())
