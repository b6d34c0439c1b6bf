"""
Card catalog, shuffling and dealing utilities.
"""

import random
from typing import List, Optional

from .constants import HAND_SIZE, RANKS, SUITS, card_id
from .models import Card, Player


def create_deck() -> List[Card]:
    """Create the 40-card Chkobba deck in catalog order (suit by suit, ranks 1-10)."""
    deck = []
    for suit, symbol, color in SUITS:
        for value, display, rank_name in RANKS:
            deck.append(Card(
                id=card_id(suit, value),
                suit=suit,
                suit_label=symbol,
                color=color,
                rank=value,
                display_rank=display,
                name=f"{rank_name} of {suit.capitalize()}",
                label=f"{display}{symbol}",
            ))
    return deck


def shuffle_deck(deck: List[Card], seed: Optional[int] = None) -> List[Card]:
    """
    Shuffle a deck deterministically if seed is provided.

    Args:
        deck: Cards to shuffle (left untouched)
        seed: Optional seed for deterministic shuffling

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = deck.copy()

    if seed is not None:
        rng = random.Random(seed)
        rng.shuffle(deck_copy)
    else:
        # random.shuffle is Fisher-Yates
        random.shuffle(deck_copy)

    return deck_copy


def draw(deck: List[Card], count: int) -> List[Card]:
    """Remove and return up to `count` cards from the front of the deck."""
    drawn = deck[:count]
    del deck[:count]
    return drawn


def deal_cards(deck: List[Card], players: List[Player], hand_size: int = HAND_SIZE):
    """Give each player, in roster order, the next `hand_size` cards from the deck."""
    for player in players:
        player.hand = draw(deck, hand_size)
