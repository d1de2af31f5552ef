"""Service entity — a catalog item; vendors price agreements by its title."""

from dataclasses import dataclass


@dataclass
class Service:
    id: str
    title: str
