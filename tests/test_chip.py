import pytest

from apogeeopl.chip import NATIVE_RATE, ChannelType, OPL3Chip
from apogeeopl.slot import KEY_DRUM


def _voice(chip, key_on=True):
    """Program channel 0 with a sustaining sine and optionally key it on."""
    for reg, value in (
        (0x20, 0x21), (0x23, 0x21),
        (0x40, 0x3F), (0x43, 0x00),
        (0x60, 0xF0), (0x63, 0xF0),
        (0x80, 0x0F), (0x83, 0x0F),
        (0xA0, 0x41),
    ):
        chip.write_reg(reg, value)
    if key_on:
        chip.write_reg(0xB0, 0x32)


def _run(chip, count):
    return [chip.generate() for _ in range(count)]


def test_fresh_chip_is_silent():
    chip = OPL3Chip()
    frames = _run(chip, 200)
    assert all(frame == (0, 0) for frame in frames)


def test_frequency_registers():
    chip = OPL3Chip()
    chip.write_reg(0xA0, 0x41)
    chip.write_reg(0xB0, 0x12)
    assert chip.channels[0].f_num == 0x241
    assert chip.channels[0].block == 4


def test_note_sounds_and_releases():
    chip = OPL3Chip()
    _voice(chip)
    playing = _run(chip, 2000)
    peak = max(abs(left) for left, _ in playing)
    assert peak > 1000
    assert all(-32768 <= s <= 32767 for frame in playing for s in frame)
    chip.write_reg(0xB0, 0x12)
    released = _run(chip, 2000)
    assert max(abs(left) for left, _ in released[-500:]) <= 1


def test_stereo_enables_left_only():
    chip = OPL3Chip()
    chip.write_reg(0x105, 1)
    chip.write_reg(0xC0, 0x10)
    _voice(chip)
    frames = _run(chip, 1000)
    assert all(right == 0 for _, right in frames)
    assert any(left != 0 for left, _ in frames)


def test_stereo_enables_right_only():
    chip = OPL3Chip()
    chip.write_reg(0x105, 1)
    chip.write_reg(0xC0, 0x20)
    _voice(chip)
    frames = _run(chip, 1000)
    assert all(left == 0 for left, _ in frames)
    assert any(right != 0 for _, right in frames)


def test_opl2_mode_limits_waveform():
    chip = OPL3Chip()
    chip.write_reg(0xE0, 0x07)
    assert chip.slots[0].reg_wf == 0x03
    chip.write_reg(0x105, 1)
    chip.write_reg(0xE0, 0x07)
    assert chip.slots[0].reg_wf == 0x07


def test_unmapped_slot_offset_is_ignored():
    chip = OPL3Chip()
    chip.write_reg(0x26, 0x0F)
    assert all(slot.reg_mult == 0 for slot in chip.slots)
    chip.write_reg(0x28, 0x0F)
    assert chip.slots[6].reg_mult == 0x0F


def test_second_bank_addresses_upper_slots():
    chip = OPL3Chip()
    chip.write_reg(0x120, 0x05)
    assert chip.slots[18].reg_mult == 0x05
    assert chip.slots[0].reg_mult == 0


def test_four_operator_enable():
    chip = OPL3Chip()
    chip.write_reg(0x105, 1)
    chip.write_reg(0x104, 0x09)
    assert chip.channels[0].chtype == ChannelType.FOUR_OP
    assert chip.channels[3].chtype == ChannelType.FOUR_OP_PAIR
    assert chip.channels[9].chtype == ChannelType.FOUR_OP
    assert chip.channels[12].chtype == ChannelType.FOUR_OP_PAIR
    assert chip.channels[1].chtype == ChannelType.TWO_OP


def test_four_operator_frequency_follows_primary():
    chip = OPL3Chip()
    chip.write_reg(0x105, 1)
    chip.write_reg(0x104, 0x01)
    chip.write_reg(0xA3, 0x55)
    assert chip.channels[3].f_num == 0
    chip.write_reg(0xA0, 0x41)
    chip.write_reg(0xB0, 0x12)
    assert chip.channels[3].f_num == chip.channels[0].f_num
    assert chip.channels[3].block == chip.channels[0].block


def test_four_operator_connection():
    chip = OPL3Chip()
    chip.write_reg(0x105, 1)
    chip.write_reg(0x104, 0x01)
    chip.write_reg(0xC0, 0x01)
    first, second = chip.channels[0], chip.channels[3]
    assert first.alg == 0x08
    assert second.alg & 0x04
    assert second.outputs[0] is first.slots[0]
    assert first.outputs == [None] * 4


def test_four_operator_key_on_reaches_pair():
    chip = OPL3Chip()
    chip.write_reg(0x105, 1)
    chip.write_reg(0x104, 0x01)
    chip.write_reg(0xB0, 0x20)
    assert all(slot.key for slot in chip.channels[3].slots)
    assert all(slot.key for slot in chip.channels[0].slots)


def test_lfo_counters_advance():
    chip = OPL3Chip()
    _run(chip, 64)
    assert chip.tremolopos == 1
    _run(chip, 1024 - 64)
    assert chip.vibpos == 1
    assert chip.timer == 1024


def test_reset_restores_state():
    chip = OPL3Chip()
    _voice(chip)
    _run(chip, 50)
    chip.reset(NATIVE_RATE)
    assert chip.timer == 0
    assert chip.channels[0].f_num == 0
    assert _run(chip, 10) == [(0, 0)] * 10


def test_resampled_at_native_rate_lags_two_frames():
    direct = OPL3Chip()
    resampled = OPL3Chip()
    _voice(direct)
    _voice(resampled)
    expected = _run(direct, 300)
    got = [resampled.generate_resampled() for _ in range(302)]
    assert got[2:] == expected


def test_too_low_sample_rate_rejected():
    with pytest.raises(ValueError):
        OPL3Chip(10)