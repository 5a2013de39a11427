from __future__ import annotations

from enum import Enum


class PillarKind(Enum):
    """The four pillars of Object-Oriented design, one per pillar room."""

    ABSTRACTION = ("A", "Pillar of Abstraction")
    ENCAPSULATION = ("E", "Pillar of Encapsulation")
    INHERITANCE = ("I", "Pillar of Inheritance")
    POLYMORPHISM = ("P", "Pillar of Polymorphism")

    @property
    def display_char(self) -> str:
        return self.value[0]

    @property
    def title(self) -> str:
        return self.value[1]

    @classmethod
    def from_char(cls, char: str) -> "PillarKind":
        for kind in cls:
            if kind.display_char == char:
                return kind
        raise ValueError(f"No pillar is displayed as {char!r}")
