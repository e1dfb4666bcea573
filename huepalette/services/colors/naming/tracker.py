"""
Run-scoped naming state.

A tracker belongs to exactly one extraction run. The orchestrator creates a
fresh instance per run and passes it through the naming stage; instances are
never shared between concurrent runs.
"""

from typing import Dict, Optional, Set

from .palettes import ToneNames

FALLBACK_PREFIXES = ("Dark", "Light", "Deep", "Soft", "Muted", "Bright", "Rich")


class PaletteNameTracker:
    """Tracks used base names, full names, descriptors and hue-family counts."""

    def __init__(self):
        self.used_base_names: Set[str] = set()
        self.used_full_names: Set[str] = set()
        self.descriptor_counts: Dict[str, int] = {}
        self.fallback_counts: Dict[str, int] = {}
        self.hue_family_counts: Dict[str, int] = {}

    def reset(self) -> None:
        self.used_base_names.clear()
        self.used_full_names.clear()
        self.descriptor_counts.clear()
        self.fallback_counts.clear()
        self.hue_family_counts.clear()

    def _too_similar(self, candidate: str) -> bool:
        candidate_lower = candidate.lower()
        candidate_words = candidate_lower.split()

        for used in self.used_base_names:
            if used == candidate_lower or used in candidate_lower or candidate_lower in used:
                return True
            used_words = used.split()
            if len(used_words) <= 2 and any(word in candidate_words for word in used_words):
                return True
        return False

    def pick_name(self, names: ToneNames, tone: str, seed: int, hue_family: str) -> str:
        """
        Choose a base name from the tone bucket.

        Walks the bucket from a seed-derived start, skipping names that repeat
        or overlap a used base name. When the bucket is exhausted a prefixed
        variant of the seeded name is returned, then a numbered one.
        """
        options = names.get(tone) or names["medium"]
        if not options:
            return "Color"

        family_count = self.hue_family_counts.get(hue_family, 0)
        self.hue_family_counts[hue_family] = family_count + 1
        start_offset = family_count if family_count > 1 else 0

        for offset in range(start_offset, start_offset + len(options)):
            candidate = options[(abs(seed) + offset) % len(options)]
            if not self._too_similar(candidate):
                self.used_base_names.add(candidate.lower())
                return candidate

        base = options[abs(seed) % len(options)]
        count = self.fallback_counts.get(base, 0) + 1
        self.fallback_counts[base] = count

        for prefix in FALLBACK_PREFIXES:
            variant = f"{prefix} {base}"
            if not self.is_used(variant):
                return variant

        return f"{base} {count + 1}"

    def pick_descriptor(self, descriptor: Optional[str], base_name: str) -> Optional[str]:
        """Each descriptor may be used once per run, and never when the base already contains it."""
        if not descriptor:
            return None
        if descriptor.lower() in base_name.lower():
            return None
        if self.descriptor_counts.get(descriptor, 0) >= 1:
            return None

        self.descriptor_counts[descriptor] = 1
        return descriptor

    def is_used(self, name: str) -> bool:
        return name.lower() in self.used_full_names

    def mark_used(self, name: str) -> None:
        self.used_full_names.add(name.lower())

    def claim(self, name: str) -> str:
        """Reserve ``name``, numbering it when the exact full name is already taken."""
        unique = name
        suffix = 2
        while self.is_used(unique):
            unique = f"{name} {suffix}"
            suffix += 1
        self.mark_used(unique)
        return unique
