# catering/services/fees.py
"""
Oplata administracyjna bramki platnosci.

subtotal < threshold -> round_half_up(subtotal * rate)
subtotal >= threshold -> flat
Ta sama funkcja dla jednego zamowienia i dla batcha (wtedy subtotal laczny).
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, ROUND_FLOOR

from catering.utils.settings import FEE_THRESHOLD, FEE_RATE, FEE_FLAT, BATCH_FEE_SPLIT


@dataclass(frozen=True)
class FeePolicy:
    threshold: int = FEE_THRESHOLD
    rate: Decimal = FEE_RATE
    flat: int = FEE_FLAT


DEFAULT_POLICY = FeePolicy()


def uses_flat_fee(subtotal: int, policy: FeePolicy = DEFAULT_POLICY) -> bool:
    return subtotal >= policy.threshold


def fee(subtotal: int, policy: FeePolicy = DEFAULT_POLICY) -> int:
    if subtotal < 0:
        raise ValueError("Subtotal cannot be negative")
    if uses_flat_fee(subtotal, policy):
        return policy.flat
    return int((Decimal(subtotal) * Decimal(policy.rate)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def split_amount(amount: int, weights: list[int], mode: str = BATCH_FEE_SPLIT) -> list[int]:
    """
    Rozklada kwote na N zamowien tak, zeby suma czesci == amount (co do grosza).

    mode="proportional": wg udzialu w subtotalu, reszta metoda najwiekszych reszt
    mode="even": po rowno, reszta dla pierwszych zamowien
    """
    n = len(weights)
    if n == 0:
        return []
    total_weight = sum(weights)

    if mode == "even" or total_weight == 0:
        base, rest = divmod(amount, n)
        return [base + (1 if i < rest else 0) for i in range(n)]

    if mode != "proportional":
        raise ValueError(f"Unknown split mode: {mode}")

    exact = [Decimal(amount) * Decimal(w) / Decimal(total_weight) for w in weights]
    shares = [int(x.to_integral_value(rounding=ROUND_FLOOR)) for x in exact]
    rest = amount - sum(shares)
    # najwieksza reszta dostaje brakujace jednostki, remis -> nizszy indeks
    order = sorted(range(n), key=lambda i: (-(exact[i] - shares[i]), i))
    for i in order[:rest]:
        shares[i] += 1
    return shares
