"""Compact string form of Atom links.

A link is written as its href followed by optional bracketed instructions::

    https://example.com/feed.xml[rel=self][type=application/atom+xml][lang=en-us][title=Example]

Values are not escaped, so the format does not round-trip every possible
link. Decoding never fails: anything that cannot be read as an instruction
stays part of the href.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .models import Link

logger = logging.getLogger(__name__)

# Links without a rel in the wild mostly point back at the site the feed
# describes, which is "related" rather than Atom's implicit "alternate".
DEFAULT_DECODED_REL = "related"


def encode_link(link: Link) -> str:
    """Render *link* in its bracket-annotated string form."""
    parts = [link.href]
    if link.rel:
        parts.append(f"[rel={link.rel}]")
    if link.mime_type is not None:
        parts.append(f"[type={link.mime_type}]")
    if link.hreflang is not None:
        parts.append(f"[lang={link.hreflang}]")
    if link.title is not None:
        parts.append(f"[title={link.title}]")
    return "".join(parts)


def decode_link(text: str) -> Link:
    """Parse a bracket-annotated string into a Link."""
    link = Link(href="", rel=DEFAULT_DECODED_REL)
    remaining = text

    while True:
        if not remaining.endswith("]"):
            logger.debug("no closing bracket, treating as href: %s", remaining)
            break

        lidx = remaining.rfind("[")
        if lidx == -1:
            logger.debug("closing bracket was never opened: %s", remaining)
            break

        eidx = remaining.rfind("=")
        if eidx < lidx:
            logger.debug("no '=' inside last bracket pair: %s", remaining)
            break

        key = remaining[lidx + 1 : eidx]
        value = remaining[eidx + 1 : -1]
        if key == "rel":
            link.rel = value
        elif key == "type":
            link.mime_type = value
        elif key == "title":
            link.title = value
        elif key == "lang":
            link.hreflang = value
        else:
            logger.debug("unparseable instruction: key=%s val=%s", key, value)
            break

        remaining = remaining[:lidx]

    link.href = remaining
    return link


@dataclass
class StringableLink:
    """A Link paired with the string it was read from or encodes to."""

    link: Link
    text: str

    @classmethod
    def from_string(cls, text: str) -> "StringableLink":
        return cls(link=decode_link(text), text=text)

    @classmethod
    def from_link(cls, link: Link) -> "StringableLink":
        return cls(link=link, text=encode_link(link))

    def __str__(self) -> str:
        return self.text
