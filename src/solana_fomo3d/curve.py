"""
Key pricing curve.

Linear price per key, rescaled from the FoMo3D curve to lamports
and whole keys: key number k costs (10k + 9_599_990) / 128 lamports, so
the first key costs 75_000 lamports and keys near a 10bn SOL pot cost
about 1.25 SOL each. Buying the first K keys costs

    S(K) = (5 * K**2 + 9_599_990 * K) / 128

and the number of whole keys a pot S buys is the floor of the positive
root of that quadratic.
"""

from __future__ import annotations

from .checked import try_add, try_ceil_div, try_floor_div, try_mul, try_sqrt, try_sub

CURVE_LINEAR = 9_599_990
CURVE_QUADRATIC = 5
CURVE_SCALE = 128


def keys_for_pot(pot: int) -> int:
    """Whole keys bought by the first `pot` lamports of a round."""
    discriminant = try_add(
        try_mul(CURVE_LINEAR, CURVE_LINEAR),
        try_mul(try_mul(4 * CURVE_QUADRATIC, CURVE_SCALE), pot),
    )
    root = try_sqrt(discriminant)
    return try_floor_div(try_sub(root, CURVE_LINEAR), 2 * CURVE_QUADRATIC)


def keys_received(pot: int, amount: int) -> int:
    """Keys granted for adding `amount` lamports to a pot holding `pot`."""
    return try_sub(keys_for_pot(try_add(pot, amount)), keys_for_pot(pot))


def sol_for_keys(keys: int) -> int:
    """Lamports needed to buy the first `keys` keys of a round."""
    numerator = try_add(
        try_mul(CURVE_QUADRATIC, try_mul(keys, keys)),
        try_mul(CURVE_LINEAR, keys),
    )
    return try_ceil_div(numerator, CURVE_SCALE)


def lamports_for_keys(pot: int, keys: int) -> int:
    """Contribution that buys at least `keys` more keys at the current pot."""
    target = sol_for_keys(try_add(keys_for_pot(pot), keys))
    if target <= pot:
        return 0
    return try_sub(target, pot)
