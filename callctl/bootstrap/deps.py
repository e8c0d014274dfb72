from functools import lru_cache

from callctl.core.cmd import CallCmd
from callctl.infra.format_renderer import YamlRenderer


@lru_cache
def get_cli() -> CallCmd:
    return CallCmd(YamlRenderer())
