"""
Authorization gate
"""


def needs_authorization(required: int, current_allowance: int | None) -> bool:
    """
    Decides whether an approval must be confirmed before the action is submitted.

    An unknown allowance, i.e., the allowance query has not resolved, requires authorization. Otherwise an action
    doomed to fail could be submitted.

    :param required: amount the action will spend, in base units
    :param current_allowance: spender's current allowance in the same base units, None if unknown
    """
    if required < 0:
        raise ValueError(f"required amount must not be negative: {required}")
    return current_allowance is None or current_allowance < required
