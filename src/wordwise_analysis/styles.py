from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(slots=True, frozen=True)
class WritingStyle:
    """Analysis priorities for one kind of writing."""

    style_id: str
    name: str
    focus: str
    passive_voice_ok: bool = False
    flag_wordiness: bool = True
    contractions_ok: bool = False
    prompt_notes: Tuple[str, ...] = ()

    @property
    def disabled_rules(self) -> Tuple[str, ...]:
        """Rule-engine rules this style does not want surfaced."""
        disabled = []
        if self.passive_voice_ok:
            disabled.append("passive_voice")
        if not self.flag_wordiness:
            disabled.append("wordy_phrases")
        return tuple(disabled)

    def prompt_modifications(self) -> str:
        """Extra system-prompt guidance for the remote analyzer."""
        lines = [f"## WRITING STYLE: {self.name.upper()}", f"Context: {self.focus}"]
        allowances = []
        if self.passive_voice_ok:
            allowances.append("- Passive voice is acceptable and often preferred")
        if self.contractions_ok:
            allowances.append('- Contractions ("don\'t", "can\'t") are encouraged')
        if not self.flag_wordiness:
            allowances.append("- Longer, descriptive phrasing is acceptable")
        if allowances:
            lines.append("Style allowances (do NOT flag these as errors):")
            lines.extend(allowances)
        if self.prompt_notes:
            lines.append("Enhanced suggestions (actively promote these):")
            lines.extend(f"- {note}" for note in self.prompt_notes)
        return "\n".join(lines)


WRITING_STYLES: Dict[str, WritingStyle] = {
    style.style_id: style
    for style in (
        WritingStyle(
            style_id="academic",
            name="Academic",
            focus="Precision, formality, evidence-based language",
            passive_voice_ok=True,
            flag_wordiness=False,
            prompt_notes=("Flag every grammar and spelling error",),
        ),
        WritingStyle(
            style_id="business",
            name="Business",
            focus="Clarity, conciseness, action-oriented language",
            prompt_notes=(
                "Suggest active voice for more dynamic communication",
                "Suggest breaking up long sentences for clarity",
                "Suggest stronger, more specific action verbs",
            ),
        ),
        WritingStyle(
            style_id="creative",
            name="Creative",
            focus="Voice, imagery, emotional resonance",
            passive_voice_ok=True,
            flag_wordiness=False,
            contractions_ok=True,
            prompt_notes=(
                "Suggest adding sensory details and emotional elements",
                "Encourage personal voice and authentic expression",
            ),
        ),
        WritingStyle(
            style_id="casual",
            name="Casual",
            focus="Friendly, conversational, natural tone",
            passive_voice_ok=True,
            contractions_ok=True,
            prompt_notes=("Encourage personal voice and authentic expression",),
        ),
    )
}

DEFAULT_STYLE_ID = "business"


def get_style(style_id: str | None) -> WritingStyle:
    """Look up a built-in writing style; None selects the default."""
    key = (style_id or DEFAULT_STYLE_ID).lower().strip()
    try:
        return WRITING_STYLES[key]
    except KeyError:
        raise ValueError(f"Unknown writing style '{style_id}'.") from None
