"""Translation result dataclasses consumed by the enrichment step.

WHY: The translator (an external generative model) returns a French
sentence, a gloss sentence, and one record per gloss. The lookup facade
fills in the video_url of each record. These dataclasses are the shape
that travels between the translator, the facade, and the front-end.

HOW: Plain dataclasses with from_dict()/to_dict() converting to and
from the camelCase JSON the front-end uses.

RULES:
- video_url is None until enrichment, and stays None when no video exists
- to_dict() omits optional fields that are None, except videoUrl
- Enrichment returns new objects; inputs are not mutated
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

GLOSS_TYPES = ("noun", "verb", "adjective", "syntax", "other")


@dataclass
class Gloss:
    """One sign in a gloss transcription.

    RULES:
    - gloss: the LSF gloss, e.g. "APPELER"
    - original_word: the French word(s) it translates
    - type: one of GLOSS_TYPES; unknown values are coerced to "other"
    """

    id: str
    original_word: str
    gloss: str
    type: str = "other"
    description: str | None = None
    facial_expression: str | None = None
    duration: float | None = None
    video_url: str | None = None

    def __post_init__(self) -> None:
        if self.type not in GLOSS_TYPES:
            self.type = "other"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Gloss:
        duration = data.get("duration")
        return cls(
            id=str(data.get("id", "")),
            original_word=data.get("originalWord", ""),
            gloss=data.get("gloss", ""),
            type=data.get("type", "other"),
            description=data.get("description"),
            facial_expression=data.get("facialExpression"),
            duration=float(duration) if duration is not None else None,
            video_url=data.get("videoUrl"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "originalWord": self.original_word,
            "gloss": self.gloss,
            "type": self.type,
        }
        if self.description is not None:
            out["description"] = self.description
        if self.facial_expression is not None:
            out["facialExpression"] = self.facial_expression
        if self.duration is not None:
            out["duration"] = self.duration
        out["videoUrl"] = self.video_url
        return out


@dataclass
class TranslationResult:
    """A French sentence translated into an ordered gloss sequence."""

    original_text: str
    translated_glosses: str
    glosses: list[Gloss] = field(default_factory=list)
    grammar_notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TranslationResult:
        return cls(
            original_text=data.get("originalText", ""),
            translated_glosses=data.get("translatedGlosses", ""),
            glosses=[Gloss.from_dict(item) for item in data.get("glosses", [])],
            grammar_notes=data.get("grammarNotes"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "originalText": self.original_text,
            "translatedGlosses": self.translated_glosses,
            "glosses": [g.to_dict() for g in self.glosses],
        }
        if self.grammar_notes is not None:
            out["grammarNotes"] = self.grammar_notes
        return out
