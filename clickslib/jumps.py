from __future__ import annotations

from .models import (
    EventDescription,
    Jump,
    JumpModeChange,
    JumpRequirement,
    JumpSymbol,
    Pause,
)


def classify_jump(
    requirement: JumpRequirement,
    when_jumped: JumpModeChange,
    when_passed: JumpModeChange,
) -> JumpSymbol:
    """Pick the marker for a jump.  Rules are checked in order:

    1. jump only while jump mode is off   -> volta (alternate ending)
    2. taking the jump switches it off    -> single repeat
    3. jump only while jump mode is on    -> sustained repeat / vamp
    4. anything else                      -> plain step-out

    *when_passed* never decides the symbol; it is accepted so callers can
    pass a jump's full triple.
    """
    if requirement == JumpRequirement.JUMP_MODE_OFF:
        return JumpSymbol.VOLTA
    if when_jumped == JumpModeChange.SET_OFF:
        return JumpSymbol.REPEAT_ONCE
    if requirement == JumpRequirement.JUMP_MODE_ON:
        return JumpSymbol.REPEAT
    return JumpSymbol.STEP_OUT


def classify_event(description: EventDescription | None) -> JumpSymbol | None:
    """Marker for a jump or pause description; None for anything else."""
    if isinstance(description, Jump):
        return classify_jump(
            description.requirement,
            description.when_jumped,
            description.when_passed,
        )
    if isinstance(description, Pause):
        return JumpSymbol.PAUSE
    return None
