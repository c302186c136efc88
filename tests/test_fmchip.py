import pytest

from apogeeopl.chip import OPL3Chip
from apogeeopl.fmchip import LATENCY, FMChip


def test_generate_returns_interleaved_frames():
    fm = FMChip()
    samples = fm.generate(25)
    assert len(samples) == 50
    assert fm.counter == 25


def test_output_matches_chip_without_writes():
    fm = FMChip()
    chip = OPL3Chip()
    expected = [s for _ in range(40) for s in chip.generate()]
    assert fm.generate(40) == expected


def test_write_applied_after_latency():
    fm = FMChip()
    fm.write_reg(0xA0, 0x41)
    fm.generate(LATENCY + 1)
    assert fm.chip.channels[0].f_num == 0
    assert fm.pending == 1
    fm.generate(1)
    assert fm.chip.channels[0].f_num == 0x41
    assert fm.pending == 0


def test_writes_are_spaced():
    fm = FMChip()
    fm.write_reg(0xA0, 0x41)
    fm.write_reg(0xA1, 0x42)
    fm.generate(LATENCY + 3)
    assert fm.chip.channels[0].f_num == 0x41
    assert fm.chip.channels[1].f_num == 0
    fm.generate(1)
    assert fm.chip.channels[1].f_num == 0x42


def test_init_drops_pending_writes():
    fm = FMChip()
    fm.write_reg(0xA0, 0x41)
    fm.init(49716)
    assert fm.pending == 0
    fm.generate(LATENCY + 10)
    assert fm.chip.channels[0].f_num == 0


def test_negative_length_rejected():
    fm = FMChip()
    with pytest.raises(ValueError):
        fm.generate(-1)