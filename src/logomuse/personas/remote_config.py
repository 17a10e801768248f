"""One-shot fetch of persona configuration overrides.

The fetch runs once at startup. It never raises: on any failure or
timeout the compiled-in defaults are used.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import httpx

from .models import PersonaConfig

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 5.0


class PersonaConfigSource(ABC):
    """Source of raw persona configuration key/value pairs."""

    @abstractmethod
    async def fetch(self) -> dict[str, Any]:
        """Return the raw configuration mapping."""


class JsonFileConfigSource(PersonaConfigSource):
    """Reads overrides from a local JSON object file."""

    def __init__(self, path: str | Path):
        self._path = Path(path)

    async def fetch(self) -> dict[str, Any]:
        text = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"Persona config in {self._path} must be a JSON object")
        return data


class HttpConfigSource(PersonaConfigSource):
    """Fetches overrides from an HTTP endpoint returning a JSON object."""

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def fetch(self) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.get(self._url)
            response.raise_for_status()
            data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Persona config at {self._url} must be a JSON object")
        return data


def config_source_from_location(location: str | None) -> PersonaConfigSource | None:
    """Pick a source for a path or http(s) URL; None when unset."""
    if not location:
        return None
    if location.startswith(("http://", "https://")):
        return HttpConfigSource(location)
    return JsonFileConfigSource(location)


async def fetch_persona_config(
    source: PersonaConfigSource | None,
    enable_competitor: bool = False,
    timeout: float = DEFAULT_FETCH_TIMEOUT
) -> PersonaConfig:
    """Fetch a persona configuration snapshot, falling back to defaults.

    Args:
        source: Where to read overrides from (None means defaults only)
        enable_competitor: Capability flag for the competitor persona
        timeout: Upper bound in seconds on the fetch

    Returns:
        PersonaConfig snapshot
    """
    if source is None:
        return PersonaConfig(enable_competitor=enable_competitor)

    try:
        data = await asyncio.wait_for(source.fetch(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Persona config fetch timed out after %.1fs; using defaults", timeout)
        return PersonaConfig(enable_competitor=enable_competitor)
    except (OSError, ValueError, httpx.HTTPError) as e:
        logger.warning("Persona config fetch failed (%s); using defaults", e)
        return PersonaConfig(enable_competitor=enable_competitor)

    config = PersonaConfig.from_mapping(data, enable_competitor=enable_competitor)
    logger.debug("Loaded %d persona description overrides", len(config.descriptions))
    return config
