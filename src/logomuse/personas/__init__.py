"""Persona module for logomuse.

Provides the fixed set of assistant personas and their configuration.
"""

from .catalog import PersonaCatalog
from .models import DEFAULT_DESCRIPTIONS, WELCOME_MESSAGES, Persona, PersonaConfig
from .remote_config import (
    HttpConfigSource,
    JsonFileConfigSource,
    PersonaConfigSource,
    config_source_from_location,
    fetch_persona_config,
)

__all__ = [
    "DEFAULT_DESCRIPTIONS",
    "HttpConfigSource",
    "JsonFileConfigSource",
    "Persona",
    "PersonaCatalog",
    "PersonaConfig",
    "PersonaConfigSource",
    "WELCOME_MESSAGES",
    "config_source_from_location",
    "fetch_persona_config",
]
