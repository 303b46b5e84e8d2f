"""
Declarative building blocks of a printed document.

Layout modules describe a document as an ordered list of Sections, each made
of blocks. The paginator turns blocks into rows and pages; the renderer draws
them. Layouts never compute positions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True, slots=True)
class Heading:
    text: str
    level: int = 1  # 1 = document title, 2 = section title


@dataclass(frozen=True, slots=True)
class TextLine:
    """A short line of text, aligned as given. Text wider than the page wraps onto further lines."""
    text: str
    bold: bool = False
    align: str = "left"


@dataclass(frozen=True, slots=True)
class KeyValue:
    key: str
    value: str


@dataclass(frozen=True, slots=True)
class Paragraph:
    """Free text wrapped to the page width. Blank lines in `text` are kept."""
    text: str


@dataclass(frozen=True, slots=True)
class AmountRow:
    label: str
    amount: str
    emphasis: bool = False


@dataclass(frozen=True, slots=True)
class Rule:
    pass


@dataclass(frozen=True, slots=True)
class Spacer:
    height: float = 6.0


@dataclass(frozen=True, slots=True)
class SignaturePair:
    """Two signature boxes side by side. Always kept on one page."""
    left_label: str
    right_label: str
    left_name: str = ""
    right_name: str = ""


Block = Union[Heading, TextLine, KeyValue, Paragraph, AmountRow, Rule, Spacer, SignaturePair]


@dataclass(frozen=True, slots=True)
class Section:
    key: str
    blocks: Tuple[Block, ...]


def section(key: str, *blocks: Block) -> Section:
    return Section(key=key, blocks=tuple(blocks))


__all__ = [
    "Heading",
    "TextLine",
    "KeyValue",
    "Paragraph",
    "AmountRow",
    "Rule",
    "Spacer",
    "SignaturePair",
    "Block",
    "Section",
    "section",
]
