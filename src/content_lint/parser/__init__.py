"""
Post parsing: front matter, Markdown body scanning and post loading.
"""

from content_lint.parser.front_matter import FrontMatter, FrontMatterParser
from content_lint.parser.markdown_scanner import FencedBlock, Link, MarkdownScanner, Shortcode
from content_lint.parser.post_loader import Post, PostLoader

__all__ = [
    "FrontMatter",
    "FrontMatterParser",
    "FencedBlock",
    "Link",
    "MarkdownScanner",
    "Shortcode",
    "Post",
    "PostLoader",
]
