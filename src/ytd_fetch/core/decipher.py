"""Apply a cipher program to a ciphered signature.

Pure and deterministic: each operation returns a new character list, so
a :class:`~ytd_fetch.core.models.CipherProgram` can be shared between
any number of signatures.
"""

from __future__ import annotations

from collections.abc import Iterable

from ytd_fetch.core.models import CipherOp, Reverse, Splice, Swap


def apply_op(op: CipherOp, chars: list[str]) -> list[str]:
    """Return the result of applying one operation to *chars*."""
    if isinstance(op, Reverse):
        return chars[::-1]
    if isinstance(op, Splice):
        return chars[op.count:]
    if isinstance(op, Swap):
        if not chars:
            return []
        # Modulus against the current length, after any earlier splice.
        index = op.index % len(chars)
        swapped = list(chars)
        swapped[0], swapped[index] = swapped[index], swapped[0]
        return swapped
    raise TypeError(f"Unknown cipher operation: {op!r}")


def decipher(program: Iterable[CipherOp], ciphered: str) -> str:
    """Decode *ciphered* by running every operation of *program* in order."""
    chars = list(ciphered)
    for op in program:
        chars = apply_op(op, chars)
    return "".join(chars)
