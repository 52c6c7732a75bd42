from __future__ import annotations

from dataclasses import dataclass

from ..enums import PrimaryPosition, SecondaryPosition

INFIELD = frozenset({"1B", "2B", "SS", "3B"})
OUTFIELD = frozenset({"LF", "CF", "RF"})
PITCHERS = frozenset(
    {
        PrimaryPosition.STARTING_PITCHER,
        PrimaryPosition.SWING_PITCHER,
        PrimaryPosition.RELIEF_PITCHER,
        PrimaryPosition.CLOSER,
    }
)

# Roster slots each secondary category opens up.
SECONDARY_SLOTS: dict[SecondaryPosition, frozenset[str]] = {
    SecondaryPosition.CATCHER: frozenset({"C"}),
    SecondaryPosition.FIRST_BASE: frozenset({"1B"}),
    SecondaryPosition.SECOND_BASE: frozenset({"2B"}),
    SecondaryPosition.SHORTSTOP: frozenset({"SS"}),
    SecondaryPosition.THIRD_BASE: frozenset({"3B"}),
    SecondaryPosition.RIGHT_FIELD: frozenset({"RF"}),
    SecondaryPosition.CENTER_FIELD: frozenset({"CF"}),
    SecondaryPosition.LEFT_FIELD: frozenset({"LF"}),
    SecondaryPosition.INFIELD: INFIELD,
    SecondaryPosition.OUTFIELD: OUTFIELD,
    SecondaryPosition.UTILITY: INFIELD | OUTFIELD,
    SecondaryPosition.FIRST_BASE_OUTFIELD: frozenset({"1B"}) | OUTFIELD,
}

PRIMARY_SLOTS: dict[PrimaryPosition, frozenset[str]] = {
    PrimaryPosition.SWING_PITCHER: frozenset({"SP", "RP"}),
    PrimaryPosition.CLOSER: frozenset({"RP", "CP"}),
}

# Which secondary categories a primary position may carry. Pitchers carry none.
COMPATIBLE_SECONDARY: dict[PrimaryPosition, frozenset[SecondaryPosition]] = {
    primary: (
        frozenset()
        if primary in PITCHERS
        else frozenset(
            secondary
            for secondary in SecondaryPosition
            if SECONDARY_SLOTS[secondary] != frozenset({primary.value})
        )
    )
    for primary in PrimaryPosition
}


def normalize_position(value: object) -> str:
    return str(value or "").strip().upper()


@dataclass(frozen=True)
class PositionEligibility:
    primary: PrimaryPosition
    secondary: SecondaryPosition | None = None

    def __post_init__(self) -> None:
        if self.secondary is not None and self.secondary not in COMPATIBLE_SECONDARY[self.primary]:
            raise ValueError(
                f"Secondary position {self.secondary.value} is not compatible with {self.primary.value}."
            )

    @classmethod
    def parse(cls, primary: object, secondary: object = None) -> PositionEligibility:
        primary_text = normalize_position(primary)
        if not primary_text:
            raise ValueError("Missing primary position.")
        try:
            primary_position = PrimaryPosition(primary_text)
        except ValueError:
            raise ValueError(f'Invalid primary position "{primary_text}".') from None

        secondary_text = normalize_position(secondary)
        secondary_position = None
        if secondary_text:
            try:
                secondary_position = SecondaryPosition(secondary_text)
            except ValueError:
                raise ValueError(f'Invalid secondary position "{secondary_text}".') from None
        return cls(primary=primary_position, secondary=secondary_position)

    @property
    def is_pitcher(self) -> bool:
        return self.primary in PITCHERS

    @property
    def slots(self) -> frozenset[str]:
        base = PRIMARY_SLOTS.get(self.primary, frozenset({self.primary.value}))
        if self.secondary is None:
            return base
        return base | SECONDARY_SLOTS[self.secondary]
