import itertools

import pytest

from clickslib.jumps import classify_event, classify_jump
from clickslib.models import (
    Jump,
    JumpModeChange,
    JumpRequirement,
    JumpSymbol,
    Pause,
    PauseBehaviour,
    TempoChange,
)

R = JumpRequirement
M = JumpModeChange


class TestClassifyJump:

    @pytest.mark.parametrize("requirement, when_jumped, expected", [
        (R.JUMP_MODE_OFF, M.NONE, JumpSymbol.VOLTA),
        (R.NONE, M.SET_OFF, JumpSymbol.REPEAT_ONCE),
        (R.JUMP_MODE_ON, M.NONE, JumpSymbol.REPEAT),
        (R.JUMP_MODE_ON, M.TOGGLE, JumpSymbol.REPEAT),
        (R.NONE, M.NONE, JumpSymbol.STEP_OUT),
        (R.NONE, M.SET_ON, JumpSymbol.STEP_OUT),
    ])
    def test_table(self, requirement, when_jumped, expected):
        assert classify_jump(requirement, when_jumped, M.NONE) == expected

    def test_volta_beats_repeat_once(self):
        assert classify_jump(R.JUMP_MODE_OFF, M.SET_OFF, M.NONE) == JumpSymbol.VOLTA

    def test_repeat_once_beats_repeat(self):
        assert classify_jump(R.JUMP_MODE_ON, M.SET_OFF, M.NONE) == JumpSymbol.REPEAT_ONCE

    def test_total_and_ignores_when_passed(self):
        for req, jumped in itertools.product(R, M):
            symbols = {classify_jump(req, jumped, passed) for passed in M}
            assert len(symbols) == 1
            assert symbols.pop() in (
                JumpSymbol.VOLTA, JumpSymbol.REPEAT_ONCE,
                JumpSymbol.REPEAT, JumpSymbol.STEP_OUT,
            )


class TestClassifyEvent:

    def test_jump(self):
        jump = Jump(destination=4, requirement=R.JUMP_MODE_ON)
        assert classify_event(jump) == JumpSymbol.REPEAT

    def test_pause(self):
        assert classify_event(Pause(PauseBehaviour.NEXT_CUE)) == JumpSymbol.PAUSE

    def test_other_events(self):
        assert classify_event(TempoChange(90)) is None
        assert classify_event(None) is None
