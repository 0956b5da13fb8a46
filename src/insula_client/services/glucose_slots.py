"""Editable list of glucose input slots."""

from dataclasses import dataclass, field

from insula_client.services.validation import is_glucose_entry, is_glucose_input_allowed

MAX_GLUCOSE_SLOTS = 24


@dataclass
class GlucoseSlots:
    """Free-form glucose inputs that grow as the last slot is filled."""

    values: list[str] = field(default_factory=lambda: [""])
    max_slots: int = MAX_GLUCOSE_SLOTS

    def set(self, index: int, value: str) -> bool:
        """Store ``value`` at ``index``; return False if it was rejected."""
        if not is_glucose_input_allowed(value):
            return False
        self.values[index] = value
        is_last = index == len(self.values) - 1
        if value and is_last and len(self.values) < self.max_slots:
            self.values.append("")
        return True

    def remove(self, index: int) -> None:
        """Drop a slot, always keeping at least one."""
        del self.values[index]
        if not self.values:
            self.values.append("")

    def replace(self, values: list[str]) -> None:
        """Replace all slots, e.g. with seeded readings."""
        self.values = list(values[: self.max_slots]) or [""]

    def clear(self) -> None:
        """Reset to a single empty slot."""
        self.values = [""]

    def entries(self) -> list[int]:
        """Usable readings as numbers, in slot order."""
        return [int(value) for value in self.values if is_glucose_entry(value)]

    def has_entry(self) -> bool:
        """Whether at least one slot holds a usable reading."""
        return any(is_glucose_entry(value) for value in self.values)
