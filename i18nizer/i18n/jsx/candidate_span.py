from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class SpanKind(Enum):
    PLAIN = "plain"
    PLURAL = "plural"
    RICH_TEXT = "rich_text"


class SpanContext(Enum):
    MARKUP_TEXT = "markup_text"
    MARKUP_ATTRIBUTE = "markup_attribute"
    CALL_ARGUMENT = "call_argument"


@dataclass
class PluralForms:
    variable: str
    one: str
    other: str


@dataclass
class RichTextElement:
    """An inline element inside a rich text span, rendered back through a chunks callback."""
    tag: str
    placeholder_name: str
    opening_tag: str


@dataclass
class CandidateSpan:
    """A classified piece of translatable text and where it lives in the tree."""
    source_text: str
    node: int
    kind: SpanKind = SpanKind.PLAIN
    context: SpanContext = SpanContext.MARKUP_TEXT
    interpolations: List[str] = field(default_factory=list)
    arguments: Dict[str, str] = field(default_factory=dict)
    plural: Optional[PluralForms] = None
    elements: List[RichTextElement] = field(default_factory=list)
    temp_id: str = ""

    def to_dict(self) -> dict:
        _dict = {
            "tempId": self.temp_id,
            "text": self.source_text,
            "kind": self.kind.value,
            "context": self.context.value,
        }
        if self.interpolations:
            _dict["placeholders"] = list(self.interpolations)
        if self.plural:
            _dict["plural"] = {
                "variable": self.plural.variable,
                "one": self.plural.one,
                "other": self.plural.other,
            }
        if self.elements:
            _dict["elements"] = [element.tag for element in self.elements]
        return _dict
