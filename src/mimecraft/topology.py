"""Multipart topology selection and body rendering.

The shape of a message body depends only on which kinds of parts are
present:

=================  ======================================  =================================
Topology           Condition                               Structure
=================  ======================================  =================================
MIXED_RELATED      inline and regular attachments          mixed[related[text, inline...], attachment...]
MIXED              regular attachments only                mixed[text, attachment...]
RELATED            inline attachments only                 related[text, inline...]
ALTERNATIVE        no attachments, plain and HTML bodies   alternative[plain, html]
SINGLE             anything else                           the body part itself
=================  ======================================  =================================

Inside a container, ``text`` is the single body, or a nested
``multipart/alternative`` block (plain then HTML) when both exist.

Renderers return lists of lines; the composer joins them once with the
environment line terminator.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mimecraft.environment import RandomSource
    from mimecraft.part import MimePart


class Topology(str, Enum):
    """Overall body structure of a message."""

    MIXED_RELATED = "mixed+related"
    MIXED = "mixed"
    RELATED = "related"
    ALTERNATIVE = "alternative"
    SINGLE = "single"


@dataclass(frozen=True, slots=True)
class Boundaries:
    """Boundary tokens for the three container kinds."""

    mixed: str
    alternative: str
    related: str

    @classmethod
    def generate(cls, random_source: RandomSource) -> Boundaries:
        """Draw three tokens from ``random_source``."""
        return cls(
            mixed=random_source.token(),
            alternative=random_source.token(),
            related=random_source.token(),
        )


@dataclass(frozen=True, slots=True)
class BodyLayout:
    """Classified parts of a message, ready for rendering.

    Attributes:
        plain: First non-attachment ``text/plain`` part.
        html: First non-attachment ``text/html`` part.
        attachments: Regular attachments in insertion order.
        inline: Inline attachments in insertion order.
    """

    plain: MimePart | None
    html: MimePart | None
    attachments: Sequence[MimePart] = ()
    inline: Sequence[MimePart] = ()

    @property
    def body(self) -> MimePart | None:
        """The preferred body: HTML when present, else plain text."""
        return self.html if self.html is not None else self.plain

    @property
    def topology(self) -> Topology:
        return select_topology(
            has_plain=self.plain is not None,
            has_html=self.html is not None,
            has_attachments=bool(self.attachments),
            has_inline=bool(self.inline),
        )


def select_topology(*, has_plain: bool, has_html: bool, has_attachments: bool, has_inline: bool) -> Topology:
    """Choose the body topology for the given combination of parts.

    Examples:
        >>> select_topology(has_plain=True, has_html=True, has_attachments=False, has_inline=False)
        <Topology.ALTERNATIVE: 'alternative'>
        >>> select_topology(has_plain=True, has_html=False, has_attachments=True, has_inline=True)
        <Topology.MIXED_RELATED: 'mixed+related'>
    """
    if has_inline and has_attachments:
        return Topology.MIXED_RELATED
    if has_attachments:
        return Topology.MIXED
    if has_inline:
        return Topology.RELATED
    if has_plain and has_html:
        return Topology.ALTERNATIVE
    return Topology.SINGLE


def multipart_lines(subtype: str, boundary: str, sections: Iterable[str]) -> list[str]:
    """Lines of a ``multipart/<subtype>`` block, starting with its Content-Type.

    Each section is preceded by ``--boundary`` and followed by a blank line;
    the block ends with ``--boundary--``.
    """
    lines = [f"Content-Type: multipart/{subtype}; boundary={boundary}", ""]
    for section in sections:
        lines.extend((f"--{boundary}", section, ""))
    lines.append(f"--{boundary}--")
    return lines


def _text_sections(layout: BodyLayout, boundaries: Boundaries, eol: str) -> list[str]:
    if layout.plain is not None and layout.html is not None:
        return [eol.join(_alternative_lines(layout, boundaries))]
    body = layout.body
    return [body.dump()] if body is not None else []


def _alternative_lines(layout: BodyLayout, boundaries: Boundaries) -> list[str]:
    parts = [p.dump() for p in (layout.plain, layout.html) if p is not None]
    return multipart_lines("alternative", boundaries.alternative, parts)


def render_single(layout: BodyLayout, boundaries: Boundaries, eol: str) -> list[str]:
    body = layout.body
    return [body.dump()] if body is not None else []


def render_alternative(layout: BodyLayout, boundaries: Boundaries, eol: str) -> list[str]:
    return _alternative_lines(layout, boundaries)


def render_mixed(layout: BodyLayout, boundaries: Boundaries, eol: str) -> list[str]:
    sections = _text_sections(layout, boundaries, eol)
    sections.extend(part.dump() for part in layout.attachments)
    return multipart_lines("mixed", boundaries.mixed, sections)


def render_related(layout: BodyLayout, boundaries: Boundaries, eol: str) -> list[str]:
    sections = _text_sections(layout, boundaries, eol)
    sections.extend(part.dump() for part in layout.inline)
    return multipart_lines("related", boundaries.related, sections)


def render_mixed_related(layout: BodyLayout, boundaries: Boundaries, eol: str) -> list[str]:
    related = eol.join(render_related(layout, boundaries, eol))
    sections = [related]
    sections.extend(part.dump() for part in layout.attachments)
    return multipart_lines("mixed", boundaries.mixed, sections)


Renderer = Callable[[BodyLayout, Boundaries, str], list[str]]

RENDERERS: dict[Topology, Renderer] = {
    Topology.MIXED_RELATED: render_mixed_related,
    Topology.MIXED: render_mixed,
    Topology.RELATED: render_related,
    Topology.ALTERNATIVE: render_alternative,
    Topology.SINGLE: render_single,
}


def render_body(layout: BodyLayout, boundaries: Boundaries, eol: str) -> list[str]:
    """Render the body lines for the topology of ``layout``."""
    return RENDERERS[layout.topology](layout, boundaries, eol)


__all__ = [
    "RENDERERS",
    "BodyLayout",
    "Boundaries",
    "Topology",
    "multipart_lines",
    "render_alternative",
    "render_body",
    "render_mixed",
    "render_mixed_related",
    "render_related",
    "render_single",
    "select_topology",
]
