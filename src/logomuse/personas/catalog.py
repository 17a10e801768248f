"""Persona lookup: instructions, descriptions and welcome texts."""

from .models import DEFAULT_DESCRIPTIONS, WELCOME_MESSAGES, Persona, PersonaConfig
from .prompts import load_prompt


class PersonaCatalog:
    """Pure lookup over the fixed persona set.

    Instructions are static. Descriptions default to compiled-in values
    and may be overridden by a ``PersonaConfig`` snapshot.
    """

    def __init__(self, config: PersonaConfig | None = None):
        self._config = config or PersonaConfig()

    @property
    def config(self) -> PersonaConfig:
        return self._config

    def instruction_for(self, persona: Persona) -> str:
        return load_prompt(Persona(persona).value)

    def description_for(self, persona: Persona) -> str:
        persona = Persona(persona)
        return self._config.descriptions.get(persona, DEFAULT_DESCRIPTIONS[persona])

    def welcome_for(self, persona: Persona) -> str:
        return WELCOME_MESSAGES[Persona(persona)]

    def is_available(self, persona: Persona) -> bool:
        """Whether a persona may be selected under the current capability flags."""
        if Persona(persona) is Persona.COMPETITOR:
            return self._config.enable_competitor
        return True

    def available(self) -> list[Persona]:
        """Selectable personas, in declaration order."""
        return [p for p in Persona if self.is_available(p)]

    def apply(self, config: PersonaConfig) -> None:
        """Replace the configuration snapshot, e.g. once overrides arrive."""
        self._config = config
