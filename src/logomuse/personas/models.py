"""Persona identifiers and the remote persona configuration snapshot."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Persona(str, Enum):
    """Named instruction profiles for the brainstorming assistant."""

    CREATIVE = "creative"
    CRITICAL = "critical"
    MARKETING = "marketing"
    COMPETITOR = "competitor"


DEFAULT_DESCRIPTIONS: dict[Persona, str] = {
    Persona.CREATIVE: "Brainstorms novel ideas, names, and concepts to spark your imagination.",
    Persona.CRITICAL: "Provides constructive criticism to refine your ideas and point out potential flaws.",
    Persona.MARKETING: "Analyzes ideas for market appeal, brand potential, and audience resonance.",
    Persona.COMPETITOR: "Offers strategic advice on how to differentiate your brand from the competition.",
}

WELCOME_MESSAGES: dict[Persona, str] = {
    Persona.CREATIVE: "Hello! What kind of business are you starting? Let's brainstorm some logo ideas.",
    Persona.CRITICAL: "Share a name or logo concept and I'll tell you honestly what works and what doesn't.",
    Persona.MARKETING: "Tell me about your brand and audience, and we'll see how your ideas will land in the market.",
    Persona.COMPETITOR: "Who are your main competitors? Let's find ways to make your brand stand out.",
}


class PersonaConfig(BaseModel):
    """Immutable snapshot of remotely configured persona settings.

    Fetched once at startup and injected into ``PersonaCatalog``.
    Missing descriptions fall back to the compiled-in defaults.
    """

    model_config = ConfigDict(frozen=True)

    descriptions: dict[Persona, str] = Field(default_factory=dict)
    enable_competitor: bool = Field(
        default=False,
        description="Capability flag gating the competitor persona"
    )

    @classmethod
    def from_mapping(cls, data: dict[str, str], enable_competitor: bool = False) -> "PersonaConfig":
        """Build a snapshot from a raw key/value mapping.

        Accepts both bare persona names (``"creative"``) and the remote
        config key form (``"creative_persona_description"``). Unknown
        keys and empty values are ignored.
        """
        descriptions: dict[Persona, str] = {}
        for persona in Persona:
            for key in (persona.value, f"{persona.value}_persona_description"):
                value = data.get(key)
                if isinstance(value, str) and value.strip():
                    descriptions[persona] = value.strip()
        return cls(descriptions=descriptions, enable_competitor=enable_competitor)
