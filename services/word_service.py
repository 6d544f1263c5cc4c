"""
Word service: pick the secret word pair for a round

A lobby never plays the same pair twice; the indices it has used are kept in
Lobby.used_word_indices for the lifetime of the lobby.
"""
import random
from typing import Iterable, List, Tuple

# (legit, clone) as written; which side becomes legit is re-drawn every round
WORD_PAIRS: List[Tuple[str, str]] = [
    ("Cat", "Dog"),
    ("Coffee", "Tea"),
    ("Beach", "Pool"),
    ("Pizza", "Souvlaki"),
    ("Petrol", "Diesel"),
    ("Apple", "Pear"),
    ("Chair", "Stool"),
    ("Book", "Notebook"),
    ("Bicycle", "Motorbike"),
    ("Rain", "Snow"),
    ("Soap", "Shower gel"),
    ("Phone", "Tablet"),
    ("Television", "Radio"),
    ("Chicken", "Fish"),
    ("Sugar", "Salt"),
    ("Bus", "Taxi"),
    ("Photo", "Video"),
    ("Car", "Train"),
    ("Pillow", "Blanket"),
    ("Table", "Desk"),
    ("Glass", "Cup"),
    ("Hat", "Cap"),
    ("Beer", "Wine"),
    ("Fridge", "Freezer"),
    ("Dryer", "Washing machine"),
    ("Lamp", "Candle"),
    ("Guitar", "Violin"),
    ("Umbrella", "Raincoat"),
    ("Orange", "Tangerine"),
    ("Shoes", "Slippers"),
    ("Toothbrush", "Hairbrush"),
    ("Sheet", "Duvet"),
    ("Garden", "Park"),
    ("Movie", "Series"),
    ("Wallet", "Handbag"),
    ("Fork", "Spoon"),
    ("Pencil", "Pen"),
    ("Board", "Poster"),
    ("Ice cream", "Frozen yogurt"),
    ("Blouse", "Shirt"),
    ("Tree", "Bush"),
    ("Caramel", "Chocolate"),
    ("Oven", "Microwave"),
    ("Road", "Sidewalk"),
    ("Cafe", "Bar"),
    ("Painting", "Mirror"),
    ("Lemonade", "Cola"),
    ("Yogurt", "Milk"),
    ("Sofa", "Armchair"),
    ("Trousers", "Shorts"),
    ("Box", "Basket"),
    ("Pie", "Cake"),
    ("Banana", "Pineapple"),
    ("Jacket", "Coat"),
    ("Lemon", "Lime"),
    ("Sea", "Lake"),
    ("Lion", "Tiger"),
    ("Shark", "Crocodile"),
    ("Eagle", "Hawk"),
]


def available_pair_indices(used_indices: Iterable[int]) -> List[int]:
    """Indices of WORD_PAIRS this lobby has not played yet"""
    used = set(used_indices)
    return [i for i in range(len(WORD_PAIRS)) if i not in used]


def pick_word_pair(used_indices: Iterable[int]) -> Tuple[int, str, str]:
    """
    Pick an unused pair uniformly at random and decide which word is legit

    Logic:
    - candidates are the indices not yet in used_indices
    - one candidate is chosen uniformly
    - a fair coin decides whether the pair is flipped, so the same pair
      does not always hand the same word to the majority

    Args:
        used_indices: Lobby.used_word_indices

    Returns:
        (pair_index, legit_word, clone_word)

    Raises:
        LookupError: every pair has been used
    """
    candidates = available_pair_indices(used_indices)
    if not candidates:
        raise LookupError("No unused word pairs left")

    index = random.choice(candidates)
    first, second = WORD_PAIRS[index]
    if random.random() < 0.5:
        return index, second, first
    return index, first, second
