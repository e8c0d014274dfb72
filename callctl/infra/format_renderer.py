import json
from typing import Any

import yaml

from callctl.core.ports.render import Renderer


def load_structured(text: str) -> Any | None:
    """Return the decoded JSON object or array in `text`, None otherwise."""
    if not text.startswith(("{", "[")):
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


class YamlRenderer(Renderer):
    """
    Renders structured results as YAML and leaves primitive results as-is.
    """
    def render(self, text: str) -> str:
        data = load_structured(text)
        if data is None:
            return text
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True).rstrip("\n")
