"""Customer account with a spendable balance."""

from __future__ import annotations


class Customer:
    """A named customer. Only checkout settlement changes the balance."""

    def __init__(self, name: str, balance: float) -> None:
        self._name = name
        self._balance = balance

    @property
    def name(self) -> str:
        return self._name

    @property
    def balance(self) -> float:
        return self._balance

    def deduct(self, amount: float) -> None:
        # Unguarded; checkout verifies funds first.
        self._balance -= amount

    def __repr__(self) -> str:
        return f"Customer(name={self._name!r}, balance={self._balance!r})"
