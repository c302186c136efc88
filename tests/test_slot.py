from types import SimpleNamespace

import pytest

from apogeeopl.slot import KEY_DRUM, KEY_NORMAL, EnvelopeStage, OPL3Slot
from apogeeopl.waveforms import waveform


def make_slot(**channel_fields):
    chip = SimpleNamespace(timer=0, vibpos=0, vibshift=0, newm=0, tremolo=0)
    fields = dict(f_num=0, block=0, ksv=0, fb=0)
    fields.update(channel_fields)
    channel = SimpleNamespace(**fields)
    return OPL3Slot(chip, channel)


def test_initial_state_is_silent():
    slot = make_slot()
    assert slot.eg_rout == 0x1FF
    assert slot.eg_out == 0x1FF
    assert slot.eg_gen == EnvelopeStage.OFF
    assert slot.out == 0


def test_write_20_decodes_fields():
    slot = make_slot()
    slot.write_20(0xF5)
    assert slot.reg_am is True
    assert (slot.reg_vib, slot.reg_type, slot.reg_ksr, slot.reg_mult) == (1, 1, 1, 5)


def test_write_40_decodes_fields():
    slot = make_slot()
    slot.write_40(0x8A)
    assert slot.reg_ksl == 2
    assert slot.reg_tl == 0x0A


def test_write_80_maps_top_sustain_level():
    slot = make_slot()
    slot.write_80(0xF3)
    assert slot.reg_sl == 0x1F
    assert slot.reg_rr == 3
    slot.write_80(0x54)
    assert slot.reg_sl == 5


def test_write_e0_masks_waveform_outside_opl3_mode():
    slot = make_slot()
    slot.write_e0(0x07)
    assert slot.reg_wf == 3
    slot.chip.newm = 1
    slot.write_e0(0x07)
    assert slot.reg_wf == 7


def test_zero_attack_rate_gives_zero_rate():
    slot = make_slot(ksv=15)
    slot.write_60(0x0F)
    assert slot.eg_rate == 0


def test_rate_is_capped():
    slot = make_slot(ksv=15)
    slot.write_20(0x10)
    slot.write_60(0xF0)
    assert slot.eg_rate == 0x3C


def test_ksl_clamps_at_zero_for_low_notes():
    slot = make_slot(f_num=0, block=0)
    slot.update_ksl()
    assert slot.eg_ksl == 0


def test_ksl_for_highest_note():
    slot = make_slot(f_num=0x3FF, block=7)
    slot.update_ksl()
    assert slot.eg_ksl == 224


def test_fast_attack_skips_straight_to_decay():
    slot = make_slot()
    slot.write_60(0xF0)
    slot.pg_phase = 1234
    slot.key_on(KEY_NORMAL)
    assert slot.eg_gen == EnvelopeStage.DECAY
    assert slot.eg_rout == 0
    assert slot.pg_phase == 0


def test_key_on_enters_attack_and_key_off_releases():
    slot = make_slot()
    slot.write_60(0x40)
    slot.key_on(KEY_NORMAL)
    assert slot.eg_gen == EnvelopeStage.ATTACK
    slot.key_off(KEY_NORMAL)
    assert slot.eg_gen == EnvelopeStage.RELEASE
    assert slot.key == 0


def test_key_off_waits_for_every_source():
    slot = make_slot()
    slot.write_60(0x40)
    slot.key_on(KEY_NORMAL)
    slot.key_on(KEY_DRUM)
    slot.key_off(KEY_NORMAL)
    assert slot.eg_gen == EnvelopeStage.ATTACK
    assert slot.key == KEY_DRUM


def test_attack_converges_to_full_level_then_decays():
    slot = make_slot()
    slot.write_60(0xD0)
    slot.key_on(KEY_NORMAL)
    for _ in range(1000):
        slot.calc_envelope()
        if slot.eg_gen != EnvelopeStage.ATTACK:
            break
    assert slot.eg_rout == 0
    assert slot.eg_gen == EnvelopeStage.DECAY


def test_release_ends_in_off():
    slot = make_slot()
    slot.write_60(0xF0)
    slot.write_80(0x0F)
    slot.key_on(KEY_NORMAL)
    slot.key_off(KEY_NORMAL)
    for _ in range(1000):
        slot.calc_envelope()
        if slot.eg_gen == EnvelopeStage.OFF:
            break
    assert slot.eg_gen == EnvelopeStage.OFF
    assert slot.eg_rout == 0x1FF


def test_envelope_output_includes_total_level():
    slot = make_slot()
    slot.write_40(0x10)
    slot.eg_rout = 0
    slot.eg_gen = EnvelopeStage.SUSTAIN
    slot.reg_type = 1
    slot.calc_envelope()
    assert slot.eg_out == 0x10 << 2


def test_tremolo_only_applies_when_enabled():
    slot = make_slot()
    slot.chip.tremolo = 7
    slot.eg_rout = 0
    slot.eg_gen = EnvelopeStage.SUSTAIN
    slot.reg_type = 1
    slot.calc_envelope()
    without = slot.eg_out
    slot.write_20(0x80)
    slot.calc_envelope()
    assert slot.eg_out - without == 7


def test_phase_advances_evenly_and_scales_with_multiplier():
    slot = make_slot(f_num=0x100, block=4)
    slot.write_20(0x01)
    slot.generate_phase()
    first = slot.pg_phase
    slot.generate_phase()
    assert slot.pg_phase == 2 * first
    doubled = make_slot(f_num=0x100, block=4)
    doubled.write_20(0x02)
    doubled.generate_phase()
    assert doubled.pg_phase == 2 * first


def test_feedback_disabled_gives_zero():
    slot = make_slot(fb=0)
    slot.out = 300
    slot.calc_feedback()
    assert slot.fbmod == 0
    assert slot.prout == 300


def test_generate_matches_waveform_without_modulator():
    slot = make_slot()
    slot.eg_out = 0
    slot.pg_phase = 0x100 << 9
    slot.generate()
    assert slot.out == waveform(0, 0x100, 0)
    assert slot.out > 0


def test_generate_uses_other_slot_output():
    slot = make_slot()
    source = make_slot()
    source.out = 100
    slot.modulator = source
    slot.eg_out = 0
    slot.pg_phase = 50 << 9
    slot.generate()
    assert slot.out == waveform(0, 150, 0)


def test_generate_uses_own_feedback():
    slot = make_slot()
    slot.modulator = slot
    slot.fbmod = 20
    slot.out = 999
    slot.eg_out = 0
    slot.pg_phase = 10 << 9
    slot.generate()
    assert slot.out == waveform(0, 30, 0)


def test_generate_zero_mod_ignores_modulator():
    slot = make_slot()
    source = make_slot()
    source.out = 100
    slot.modulator = source
    slot.eg_out = 0
    slot.pg_phase = 50 << 9
    slot.generate_zero_mod()
    assert slot.out == waveform(0, 50, 0)


def test_generate_at_negative_half_is_negative():
    slot = make_slot()
    slot.eg_out = 0
    slot.generate_at(0x300)
    assert slot.out < 0
    assert slot.out == waveform(0, 0x300, 0)


@pytest.mark.parametrize("wave", range(8))
def test_silent_envelope_gives_small_output(wave):
    slot = make_slot()
    slot.chip.newm = 1
    slot.write_e0(wave)
    slot.generate_at(0x80)
    assert abs(slot.out) <= 1