from typing import Protocol


class Renderer(Protocol):
    def render(self, text: str) -> str:
        ...
