"""
Capture resolution for a played card against the table.
"""

from typing import List

from .models import Card


def find_combination(table_cards: List[Card], target: int) -> List[Card]:
    """
    Find the largest combination of two or more table cards summing to target.

    The search is depth-first over ascending table indices. When several
    combinations share the greatest size, the first one discovered wins.

    Returns:
        The combination in table order, or an empty list if none exists
    """
    best: List[int] = []

    def search(start: int, total: int, picks: List[int]):
        nonlocal best
        if total == target and len(picks) > 1:
            if len(picks) > len(best):
                best = picks
            return
        if total >= target:
            return
        for i in range(start, len(table_cards)):
            search(i + 1, total + table_cards[i].value, picks + [i])

    search(0, 0, [])
    return [table_cards[i] for i in best]


def resolve_capture(played: Card, table_cards: List[Card]) -> List[Card]:
    """
    Determine which table cards a played card captures.

    A table card of equal value is always taken first (only one, the
    first found), even if a multi-card combination would also match.
    Otherwise the largest exact-sum combination is taken. An empty result
    means the played card is laid on the table.

    The table is not modified; the caller applies the result.
    """
    for card in table_cards:
        if card.value == played.value:
            return [card]
    return find_combination(table_cards, played.value)


def remove_cards(table_cards: List[Card], captured: List[Card]) -> List[Card]:
    """Return the table without the captured cards, preserving order."""
    taken = {card.id for card in captured}
    return [card for card in table_cards if card.id not in taken]
