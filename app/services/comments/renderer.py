from markdown_it import MarkdownIt

from app.services.comments.mentions import MENTION_PATTERN

USER_LINK_TEMPLATE = r"[@\1](#user/\1)"


def _strip_raw_html(self, tokens, idx, options, env):
    return ""


def _build_converter() -> MarkdownIt:
    # html=True so raw HTML is parsed into its own tokens, which render as nothing
    md = MarkdownIt("commonmark", {"html": True, "breaks": True})
    md.enable(["table", "strikethrough"])
    md.add_render_rule("html_block", _strip_raw_html)
    md.add_render_rule("html_inline", _strip_raw_html)
    return md


_converter = _build_converter()


def link_mentions(content: str) -> str:
    """Rewrite every @token as a markdown link to the user route fragment."""
    return MENTION_PATTERN.sub(USER_LINK_TEMPLATE, content)


def render_content(content: str) -> str:
    """Convert raw comment text to sanitized HTML.

    Mentions become links whether or not the user exists. Embedded HTML is
    dropped and unsafe link targets (``javascript:`` and friends) are left as
    plain text by the converter's link validation.
    """
    return _converter.render(link_mentions(content or ""))
