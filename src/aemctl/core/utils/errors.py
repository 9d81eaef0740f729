from __future__ import annotations


def root_cause(exc: BaseException) -> BaseException:
    """Return the innermost exception of an explicit or implicit exception chain."""
    seen: set[int] = set()
    current = exc
    while id(current) not in seen:
        seen.add(id(current))
        nxt = current.__cause__ or current.__context__
        if nxt is None:
            break
        current = nxt
    return current


def root_cause_message(exc: BaseException) -> str:
    """Human readable message of the root cause, falling back to its type name."""
    cause = root_cause(exc)
    message = str(cause).strip()
    return message or cause.__class__.__name__


__all__ = ["root_cause", "root_cause_message"]
