from hrdraw.services.confirm_gate import ConfirmGate, GateState


def test_first_press_arms_second_confirms(clock):
    gate = ConfirmGate(timeout=3.0, clock=clock)
    assert gate.state is GateState.IDLE
    assert gate.press() is False
    assert gate.armed
    clock.advance(1.0)
    assert gate.press() is True
    assert gate.state is GateState.IDLE


def test_gate_disarms_after_timeout(clock):
    gate = ConfirmGate(timeout=3.0, clock=clock)
    gate.press()
    clock.advance(3.0)
    assert not gate.armed
    # the late press arms again instead of confirming
    assert gate.press() is False
    assert gate.armed


def test_disarm(clock):
    gate = ConfirmGate(timeout=3.0, clock=clock)
    gate.press()
    gate.disarm()
    assert gate.press() is False
