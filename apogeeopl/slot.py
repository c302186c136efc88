"""A single OPL3 operator: envelope, phase generator and waveform output."""

from __future__ import annotations

from enum import IntEnum
from typing import Callable, Protocol

from .waveforms import waveform

__all__ = ["KEY_NORMAL", "KEY_DRUM", "EnvelopeStage", "OPL3Slot"]

# Reasons an operator can be keyed on; each is tracked as a separate bit.
KEY_NORMAL = 0x01
KEY_DRUM = 0x02

# Frequency multipliers, doubled so that the 1/2 setting stays integral.
_MULTIPLIERS = (1, 2, 4, 6, 8, 10, 12, 14, 16, 18, 20, 20, 24, 24, 30, 30)

_KSL_ROM = (0, 32, 40, 45, 48, 51, 53, 55, 56, 58, 59, 60, 61, 62, 63, 64)
_KSL_SHIFT = (8, 1, 2, 0)

_EG_INCSTEP = (
    (
        (0, 0, 0, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 0, 0, 0, 0),
        (0, 0, 0, 0, 0, 0, 0, 0),
    ),
    (
        (0, 1, 0, 1, 0, 1, 0, 1),
        (0, 1, 0, 1, 1, 1, 0, 1),
        (0, 1, 1, 1, 0, 1, 1, 1),
        (0, 1, 1, 1, 1, 1, 1, 1),
    ),
    (
        (1, 1, 1, 1, 1, 1, 1, 1),
        (2, 2, 1, 1, 1, 1, 1, 1),
        (2, 2, 1, 1, 2, 2, 1, 1),
        (2, 2, 2, 2, 2, 2, 1, 1),
    ),
)
_EG_INCDESC = (0, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 1, 2, 2, 2)
_EG_INCSH = (0, 11, 10, 9, 8, 7, 6, 5, 4, 3, 2, 1, 0, 0, -1, -2)

_SILENT_LEVEL = 0x1FF
_MAX_RATE = 0x3C


def _int16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


class _ChipLike(Protocol):
    timer: int
    vibpos: int
    vibshift: int
    newm: int
    tremolo: int


class _ChannelLike(Protocol):
    f_num: int
    block: int
    ksv: int
    fb: int


class EnvelopeStage(IntEnum):
    """Phase of an operator's envelope generator."""

    OFF = 0
    ATTACK = 1
    DECAY = 2
    SUSTAIN = 3
    RELEASE = 4


class OPL3Slot:
    """One of the chip's 36 operators.

    ``modulator`` selects the phase modulation input: ``None`` for none,
    the slot itself for its own feedback, or another slot for that slot's
    output.
    """

    def __init__(self, chip: _ChipLike, channel: _ChannelLike | None = None) -> None:
        self.chip = chip
        self.channel = channel
        self.modulator: OPL3Slot | None = None
        self.out = 0
        self.fbmod = 0
        self.prout = 0
        self.eg_rout = _SILENT_LEVEL
        self.eg_out = _SILENT_LEVEL
        self.eg_inc = 0
        self.eg_gen = EnvelopeStage.OFF
        self.eg_rate = 0
        self.eg_ksl = 0
        self.reg_am = False
        self.reg_vib = 0
        self.reg_type = 0
        self.reg_ksr = 0
        self.reg_mult = 0
        self.reg_ksl = 0
        self.reg_tl = 0
        self.reg_ar = 0
        self.reg_dr = 0
        self.reg_sl = 0
        self.reg_rr = 0
        self.reg_wf = 0
        self.key = 0
        self.pg_phase = 0

    # Register writes

    def write_20(self, data: int) -> None:
        """Tremolo, vibrato, sustain type, key scale rate and multiplier."""
        self.reg_am = bool((data >> 7) & 0x01)
        self.reg_vib = (data >> 6) & 0x01
        self.reg_type = (data >> 5) & 0x01
        self.reg_ksr = (data >> 4) & 0x01
        self.reg_mult = data & 0x0F
        self.update_rate()

    def write_40(self, data: int) -> None:
        """Key scale level and total level."""
        self.reg_ksl = (data >> 6) & 0x03
        self.reg_tl = data & 0x3F
        self.update_ksl()

    def write_60(self, data: int) -> None:
        """Attack and decay rates."""
        self.reg_ar = (data >> 4) & 0x0F
        self.reg_dr = data & 0x0F
        self.update_rate()

    def write_80(self, data: int) -> None:
        """Sustain level and release rate."""
        self.reg_sl = (data >> 4) & 0x0F
        if self.reg_sl == 0x0F:
            self.reg_sl = 0x1F
        self.reg_rr = data & 0x0F
        self.update_rate()

    def write_e0(self, data: int) -> None:
        """Waveform select; only the first four are available outside OPL3 mode."""
        self.reg_wf = data & 0x07
        if not self.chip.newm:
            self.reg_wf &= 0x03

    # Envelope generator

    def _calc_rate(self, reg_rate: int) -> int:
        if reg_rate == 0:
            return 0
        ksv = self.channel.ksv
        rate = (reg_rate << 2) + (ksv if self.reg_ksr else ksv >> 2)
        return min(rate, _MAX_RATE) & 0xFF

    def update_ksl(self) -> None:
        """Recompute key scaling from the channel's frequency."""
        channel = self.channel
        ksl = (_KSL_ROM[channel.f_num >> 6] << 2) - ((0x08 - channel.block) << 5)
        self.eg_ksl = max(ksl, 0) & 0xFF

    def update_rate(self) -> None:
        """Select the envelope rate that belongs to the current stage."""
        if self.eg_gen in (EnvelopeStage.OFF, EnvelopeStage.ATTACK):
            self.eg_rate = self._calc_rate(self.reg_ar)
        elif self.eg_gen == EnvelopeStage.DECAY:
            self.eg_rate = self._calc_rate(self.reg_dr)
        else:
            self.eg_rate = self._calc_rate(self.reg_rr)

    def _stage_off(self) -> None:
        self.eg_rout = _SILENT_LEVEL

    def _stage_attack(self) -> None:
        if self.eg_rout == 0:
            self.eg_gen = EnvelopeStage.DECAY
            self.update_rate()
            return
        self.eg_rout = _int16(self.eg_rout + (((~self.eg_rout) * self.eg_inc) >> 3))
        if self.eg_rout < 0:
            self.eg_rout = 0

    def _stage_decay(self) -> None:
        if self.eg_rout >= self.reg_sl << 4:
            self.eg_gen = EnvelopeStage.SUSTAIN
            self.update_rate()
            return
        self.eg_rout = _int16(self.eg_rout + self.eg_inc)

    def _stage_sustain(self) -> None:
        if not self.reg_type:
            self._stage_release()

    def _stage_release(self) -> None:
        if self.eg_rout >= _SILENT_LEVEL:
            self.eg_gen = EnvelopeStage.OFF
            self.eg_rout = _SILENT_LEVEL
            self.update_rate()
            return
        self.eg_rout = _int16(self.eg_rout + self.eg_inc)

    _STAGES: dict[EnvelopeStage, Callable[[OPL3Slot], None]] = {
        EnvelopeStage.OFF: _stage_off,
        EnvelopeStage.ATTACK: _stage_attack,
        EnvelopeStage.DECAY: _stage_decay,
        EnvelopeStage.SUSTAIN: _stage_sustain,
        EnvelopeStage.RELEASE: _stage_release,
    }

    def calc_envelope(self) -> None:
        """Advance the envelope by one sample and refresh ``eg_out``."""
        rate_h = self.eg_rate >> 2
        rate_l = self.eg_rate & 3
        shift = _EG_INCSH[rate_h]
        steps = _EG_INCSTEP[_EG_INCDESC[rate_h]][rate_l]
        timer = self.chip.timer
        if shift > 0:
            if timer & ((1 << shift) - 1) == 0:
                inc = steps[(timer >> shift) & 0x07]
            else:
                inc = 0
        else:
            inc = steps[timer & 0x07] << -shift
        self.eg_inc = inc & 0xFF
        tremolo = self.chip.tremolo if self.reg_am else 0
        self.eg_out = _int16(
            self.eg_rout
            + (self.reg_tl << 2)
            + (self.eg_ksl >> _KSL_SHIFT[self.reg_ksl])
            + tremolo
        )
        self._STAGES[self.eg_gen](self)

    def key_on(self, kind: int) -> None:
        """Start the envelope unless the operator is already keyed."""
        if not self.key:
            self.eg_gen = EnvelopeStage.ATTACK
            self.update_rate()
            if (self.eg_rate >> 2) == 0x0F:
                self.eg_gen = EnvelopeStage.DECAY
                self.update_rate()
                self.eg_rout = 0
            self.pg_phase = 0
        self.key |= kind

    def key_off(self, kind: int) -> None:
        """Drop one key source; release once none remain."""
        if self.key:
            self.key &= ~kind & 0xFF
            if not self.key:
                self.eg_gen = EnvelopeStage.RELEASE
                self.update_rate()

    # Phase generator and output

    def generate_phase(self) -> None:
        """Advance the phase accumulator by one sample."""
        f_num = self.channel.f_num
        if self.reg_vib:
            vib_range = (f_num >> 7) & 7
            vibpos = self.chip.vibpos
            if not vibpos & 3:
                vib_range = 0
            elif vibpos & 1:
                vib_range >>= 1
            vib_range >>= self.chip.vibshift
            if vibpos & 4:
                vib_range = -vib_range
            f_num = (f_num + vib_range) & 0xFFFF
        basefreq = ((f_num << self.channel.block) >> 1) & 0xFFFFFFFF
        step = (basefreq * _MULTIPLIERS[self.reg_mult]) >> 1
        self.pg_phase = (self.pg_phase + step) & 0xFFFFFFFF

    def calc_feedback(self) -> None:
        """Compute the self-modulation input from the last two outputs."""
        fb = self.channel.fb
        if fb:
            self.fbmod = _int16((self.prout + self.out) >> (0x09 - fb))
        else:
            self.fbmod = 0
        self.prout = self.out

    def _modulation(self) -> int:
        if self.modulator is None:
            return 0
        if self.modulator is self:
            return self.fbmod
        return self.modulator.out

    def generate_at(self, phase: int) -> None:
        """Produce the output for an explicit phase."""
        self.out = _int16(waveform(self.reg_wf, phase & 0xFFFF, self.eg_out))

    def generate(self) -> None:
        """Produce the output from the accumulator plus modulation."""
        self.generate_at(((self.pg_phase >> 9) & 0xFFFF) + self._modulation())

    def generate_zero_mod(self) -> None:
        """Produce the output from the accumulator alone."""
        self.generate_at((self.pg_phase >> 9) & 0xFFFF)