"""Scheda (card) generation and validation.

A card is a 3x9 grid. Each row carries exactly 5 numbers, column ``c`` only
holds numbers from its tombola range and the numbers in a column ascend from
top to bottom. These helpers are pure: they never touch room state.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable

from .models import PATTERN_ORDER

ROWS = 3
COLUMNS = 9
NUMBERS_PER_ROW = 5
NUMBERS_PER_CARD = ROWS * NUMBERS_PER_ROW

# Minimum numbers in a single row for each line pattern.
ROW_THRESHOLDS = {"ambo": 2, "terna": 3, "quaterna": 4, "cinquina": 5}


class CardGenerationError(RuntimeError):
    """The generator reached a state with no legal placement left."""


@dataclass
class Cell:
    value: int = 0
    extracted: bool = False

    @property
    def empty(self) -> bool:
        return self.value == 0


@dataclass
class Card:
    rows: list[list[Cell]] = field(
        default_factory=lambda: [[Cell() for _ in range(COLUMNS)] for _ in range(ROWS)]
    )

    def cells(self) -> Iterable[Cell]:
        for row in self.rows:
            yield from row

    def numbers(self) -> list[int]:
        return [c.value for c in self.cells() if not c.empty]

    def mark(self, number: int) -> bool:
        for cell in self.cells():
            if cell.value == number and not cell.empty:
                cell.extracted = True
                return True
        return False

    def to_payload(self) -> list[list[dict]]:
        return [[{"value": c.value, "isExtracted": c.extracted} for c in row] for row in self.rows]

    @classmethod
    def from_payload(cls, data) -> Card:
        if not isinstance(data, list) or len(data) != ROWS:
            raise ValueError("card must have 3 rows")

        rows: list[list[Cell]] = []
        for raw_row in data:
            if not isinstance(raw_row, list) or len(raw_row) != COLUMNS:
                raise ValueError("each card row must have 9 cells")
            row: list[Cell] = []
            for raw_cell in raw_row:
                if not isinstance(raw_cell, dict):
                    raise ValueError("card cells must be objects")
                value = raw_cell.get("value", 0)
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ValueError("cell value must be an integer")
                if value < 0 or value > 90:
                    raise ValueError("cell value out of range")
                row.append(Cell(value=value, extracted=bool(raw_cell.get("isExtracted", False))))
            rows.append(row)
        return cls(rows=rows)


@dataclass
class ValidationResult:
    valid: bool
    message: str
    invalid_numbers: list[int] = field(default_factory=list)

    def to_payload(self) -> dict:
        return {
            "valid": self.valid,
            "message": self.message,
            "invalidNumbers": list(self.invalid_numbers),
        }


def column_range(col: int) -> range:
    if col == 0:
        return range(1, 10)
    if col == COLUMNS - 1:
        return range(80, 91)
    return range(col * 10, col * 10 + 10)


def generate_card(rng: random.Random | None = None) -> Card:
    """Build a legal card.

    Raises CardGenerationError if placement runs out of options before all
    15 numbers are placed. Callers should start over rather than patch the
    partial card (see generate_card_with_retry).
    """
    rng = rng or random.Random()
    pools = [list(column_range(c)) for c in range(COLUMNS)]
    card = Card()
    row_counts = [0] * ROWS

    def assign(col: int, row: int) -> None:
        pool = pools[col]
        number = pool.pop(rng.randrange(len(pool)))
        card.rows[row][col] = Cell(value=number)
        row_counts[row] += 1

    # One number per column first so no column stays empty.
    for col in range(COLUMNS):
        rows = [r for r in range(ROWS) if row_counts[r] < NUMBERS_PER_ROW]
        if not rows:
            raise CardGenerationError("no row left for column coverage")
        assign(col, rng.choice(rows))

    placed = COLUMNS
    while placed < NUMBERS_PER_CARD:
        rows = [r for r in range(ROWS) if row_counts[r] < NUMBERS_PER_ROW]
        if not rows:
            raise CardGenerationError("all rows full before 15 numbers were placed")
        row = rng.choice(rows)

        free_cols = [c for c in range(COLUMNS) if card.rows[row][c].empty]
        cols = [c for c in free_cols if pools[c]] or free_cols
        if not cols:
            raise CardGenerationError(f"no free column in row {row}")

        col = rng.choice(cols)
        if not pools[col]:
            raise CardGenerationError("number pools exhausted for free columns")

        assign(col, row)
        placed += 1

    for col in range(COLUMNS):
        values = sorted(card.rows[r][col].value for r in range(ROWS) if not card.rows[r][col].empty)
        it = iter(values)
        for r in range(ROWS):
            if not card.rows[r][col].empty:
                card.rows[r][col] = Cell(value=next(it))

    return card


def generate_card_with_retry(attempts: int = 10, rng: random.Random | None = None) -> Card:
    last_exc: CardGenerationError | None = None
    for _ in range(max(1, attempts)):
        try:
            return generate_card(rng)
        except CardGenerationError as exc:
            last_exc = exc
    assert last_exc is not None
    raise last_exc


def check_layout(card: Card) -> ValidationResult:
    """Check the structural invariants of a card submitted by a client."""
    if len(card.rows) != ROWS or any(len(row) != COLUMNS for row in card.rows):
        return ValidationResult(False, "La scheda deve essere 3x9")

    total = 0
    for r, row in enumerate(card.rows):
        count = sum(1 for c in row if not c.empty)
        if count != NUMBERS_PER_ROW:
            return ValidationResult(False, f"La riga {r + 1} deve contenere 5 numeri")
        total += count

    if total != NUMBERS_PER_CARD:
        return ValidationResult(False, "La scheda deve contenere 15 numeri")

    seen: set[int] = set()
    for col in range(COLUMNS):
        allowed = column_range(col)
        prev = 0
        for r in range(ROWS):
            value = card.rows[r][col].value
            if value == 0:
                continue
            if value not in allowed:
                return ValidationResult(False, f"Il numero {value} non appartiene alla colonna {col + 1}")
            if value <= prev:
                return ValidationResult(False, f"La colonna {col + 1} non e' in ordine crescente")
            if value in seen:
                return ValidationResult(False, f"Il numero {value} compare due volte")
            seen.add(value)
            prev = value

    return ValidationResult(True, "Scheda valida")


def validate_marks(card: Card, drawn_numbers: Iterable[int]) -> ValidationResult:
    drawn = set(drawn_numbers)
    invalid = [c.value for c in card.cells() if not c.empty and c.extracted and c.value not in drawn]

    if invalid:
        listed = ", ".join(str(n) for n in invalid)
        return ValidationResult(
            False,
            f"Attenzione! I seguenti numeri non sono stati estratti dal tabellone: {listed}",
            invalid,
        )

    return ValidationResult(True, "Scheda valida")


def check_pattern(pattern: str, card: Card, drawn_numbers: Iterable[int]) -> ValidationResult:
    if pattern not in PATTERN_ORDER:
        return ValidationResult(False, "Azione non valida")

    drawn = set(drawn_numbers)
    row_counts = [
        sum(1 for c in row if not c.empty and c.extracted and c.value in drawn) for row in card.rows
    ]
    total = sum(row_counts)

    if pattern == "tombola":
        if total != NUMBERS_PER_CARD:
            missing = NUMBERS_PER_CARD - total
            return ValidationResult(
                False,
                f"Hai solo {total}/15 numeri estratti validi! Ti mancano ancora {missing} numeri.",
            )
    else:
        needed = ROW_THRESHOLDS[pattern]
        if max(row_counts, default=0) < needed:
            return ValidationResult(False, f"Non hai almeno {needed} numeri estratti in una riga!")

    return ValidationResult(True, f"{pattern.upper()} vinto!")
