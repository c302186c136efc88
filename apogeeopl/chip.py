"""The OPL3 chip: 18 channels of two operators each, mixed to stereo."""

from __future__ import annotations

from enum import IntEnum

from .slot import KEY_DRUM, KEY_NORMAL, OPL3Slot

__all__ = ["NATIVE_RATE", "ChannelType", "OPL3Channel", "OPL3Chip"]

NATIVE_RATE = 49716
_RESAMPLE_FRAC = 10

# Register offset (low five bits) to operator index; -1 marks unused offsets.
_AD_SLOT = (
    0, 1, 2, 3, 4, 5, -1, -1, 6, 7, 8, 9, 10, 11, -1, -1,
    12, 13, 14, 15, 16, 17, -1, -1, -1, -1, -1, -1, -1, -1, -1, -1,
)

# First operator of each channel; the second is three further on.
_CH_SLOT = (0, 1, 2, 6, 7, 8, 12, 13, 14, 18, 19, 20, 24, 25, 26, 30, 31, 32)

_SLOT_WRITERS = {
    0x20: OPL3Slot.write_20,
    0x30: OPL3Slot.write_20,
    0x40: OPL3Slot.write_40,
    0x50: OPL3Slot.write_40,
    0x60: OPL3Slot.write_60,
    0x70: OPL3Slot.write_60,
    0x80: OPL3Slot.write_80,
    0x90: OPL3Slot.write_80,
    0xE0: OPL3Slot.write_e0,
    0xF0: OPL3Slot.write_e0,
}


def _int16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def _clip(sample: int) -> int:
    return max(-32768, min(32767, sample))


def _div_trunc(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator < 0) == (denominator < 0) else -quotient


class ChannelType(IntEnum):
    """How a channel's operators are combined."""

    TWO_OP = 0
    FOUR_OP = 1
    FOUR_OP_PAIR = 2
    DRUM = 3


class OPL3Channel:
    """Two operators, their connection and the stereo routing.

    ``outputs`` lists the operators whose output is summed into the mix;
    ``None`` entries contribute nothing.
    """

    def __init__(self, chip: OPL3Chip, slots: tuple[OPL3Slot, OPL3Slot]) -> None:
        self.chip = chip
        self.slots = slots
        self.pair: OPL3Channel | None = None
        self.outputs: list[OPL3Slot | None] = [None] * 4
        self.chtype = ChannelType.TWO_OP
        self.f_num = 0
        self.block = 0
        self.fb = 0
        self.con = 0
        self.alg = 0
        self.ksv = 0
        self.cha = True
        self.chb = True

    def _refresh_frequency(self, copy_block: bool) -> None:
        self.ksv = ((self.block << 1) | ((self.f_num >> (0x09 - self.chip.nts)) & 0x01)) & 0xFF
        targets = [self]
        if self.chip.newm and self.chtype == ChannelType.FOUR_OP and self.pair is not None:
            pair = self.pair
            pair.f_num = self.f_num
            if copy_block:
                pair.block = self.block
            pair.ksv = self.ksv
            targets.append(pair)
        for channel in targets:
            for slot in channel.slots:
                slot.update_ksl()
            for slot in channel.slots:
                slot.update_rate()

    def write_a0(self, data: int) -> None:
        """Low eight bits of the frequency number."""
        if self.chip.newm and self.chtype == ChannelType.FOUR_OP_PAIR:
            return
        self.f_num = (self.f_num & 0x300) | (data & 0xFF)
        self._refresh_frequency(copy_block=False)

    def write_b0(self, data: int) -> None:
        """High frequency bits and block; the key bit is handled by the chip."""
        if self.chip.newm and self.chtype == ChannelType.FOUR_OP_PAIR:
            return
        self.f_num = (self.f_num & 0xFF) | ((data & 0x03) << 8)
        self.block = (data >> 2) & 0x07
        self._refresh_frequency(copy_block=True)

    def setup_algorithm(self) -> None:
        """Wire operator modulation and channel outputs for the algorithm."""
        s0, s1 = self.slots
        if self.chtype == ChannelType.DRUM:
            s0.modulator = s0
            s1.modulator = None if self.alg & 0x01 else s0
            return
        if self.alg & 0x08:
            return
        if self.alg & 0x04:
            pair = self.pair
            p0, p1 = pair.slots
            pair.outputs = [None] * 4
            p0.modulator = p0
            mode = self.alg & 0x03
            if mode == 0x00:
                p1.modulator = p0
                s0.modulator = p1
                s1.modulator = s0
                self.outputs = [s1, None, None, None]
            elif mode == 0x01:
                p1.modulator = p0
                s0.modulator = None
                s1.modulator = s0
                self.outputs = [p1, s1, None, None]
            elif mode == 0x02:
                p1.modulator = None
                s0.modulator = p1
                s1.modulator = s0
                self.outputs = [p0, s1, None, None]
            else:
                p1.modulator = None
                s0.modulator = p1
                s1.modulator = None
                self.outputs = [p0, s0, s1, None]
            return
        s0.modulator = s0
        if self.alg & 0x01:
            s1.modulator = None
            self.outputs = [s0, s1, None, None]
        else:
            s1.modulator = s0
            self.outputs = [s1, None, None, None]

    def write_c0(self, data: int) -> None:
        """Feedback, connection and, in OPL3 mode, left/right enables."""
        self.fb = (data & 0x0E) >> 1
        self.con = data & 0x01
        self.alg = self.con
        newm = self.chip.newm
        if newm and self.chtype == ChannelType.FOUR_OP:
            self.pair.alg = 0x04 | (self.con << 1) | self.pair.con
            self.alg = 0x08
            self.pair.setup_algorithm()
        elif newm and self.chtype == ChannelType.FOUR_OP_PAIR:
            self.alg = 0x04 | (self.pair.con << 1) | self.con
            self.pair.alg = 0x08
            self.setup_algorithm()
        else:
            self.setup_algorithm()
        if newm:
            self.cha = bool((data >> 4) & 0x01)
            self.chb = bool((data >> 5) & 0x01)
        else:
            self.cha = self.chb = True

    def _keyed_slots(self) -> tuple[OPL3Slot, ...]:
        if not self.chip.newm:
            return self.slots
        if self.chtype == ChannelType.FOUR_OP:
            return self.slots + self.pair.slots
        if self.chtype in (ChannelType.TWO_OP, ChannelType.DRUM):
            return self.slots
        return ()

    def key_on(self) -> None:
        """Key on every operator this channel drives."""
        for slot in self._keyed_slots():
            slot.key_on(KEY_NORMAL)

    def key_off(self) -> None:
        """Key off every operator this channel drives."""
        for slot in self._keyed_slots():
            slot.key_off(KEY_NORMAL)

    def _mix(self) -> int:
        return _int16(sum(slot.out for slot in self.outputs if slot is not None))


class OPL3Chip:
    """Register-level OPL3 emulation producing one stereo frame per call."""

    def __init__(self, sample_rate: int = NATIVE_RATE) -> None:
        self.reset(sample_rate)

    def reset(self, sample_rate: int) -> None:
        """Return every register to power-on state for ``sample_rate`` output."""
        rateratio = (sample_rate << _RESAMPLE_FRAC) // NATIVE_RATE
        if rateratio <= 0:
            raise ValueError(f"sample rate {sample_rate} is too low")
        self.timer = 0
        self.newm = 0
        self.nts = 0
        self.rhy = 0
        self.vibpos = 0
        self.vibshift = 0
        self.tremolo = 0
        self.tremolopos = 0
        self.tremoloshift = 0
        self.noise = 0x306600
        self.mixbuff = [0, 0]
        self.rateratio = rateratio
        self.samplecnt = 0
        self.oldsamples = (0, 0)
        self.samples = (0, 0)

        self.slots = [OPL3Slot(self) for _ in range(36)]
        self.channels: list[OPL3Channel] = []
        for base in _CH_SLOT:
            first, second = self.slots[base], self.slots[base + 3]
            channel = OPL3Channel(self, (first, second))
            first.channel = channel
            second.channel = channel
            self.channels.append(channel)
        for number, channel in enumerate(self.channels):
            position = number % 9
            if position < 3:
                channel.pair = self.channels[number + 3]
            elif position < 6:
                channel.pair = self.channels[number - 3]
        for channel in self.channels:
            channel.setup_algorithm()

    # Register interface

    def _set_four_op(self, data: int) -> None:
        for bit in range(6):
            number = bit if bit < 3 else bit + 6
            if (data >> bit) & 0x01:
                self.channels[number].chtype = ChannelType.FOUR_OP
                self.channels[number + 3].chtype = ChannelType.FOUR_OP_PAIR
            else:
                self.channels[number].chtype = ChannelType.TWO_OP
                self.channels[number + 3].chtype = ChannelType.TWO_OP

    def _update_rhythm(self, data: int) -> None:
        self.rhy = data & 0x3F
        drums = self.channels[6:9]
        if not self.rhy & 0x20:
            for channel in drums:
                channel.chtype = ChannelType.TWO_OP
                channel.setup_algorithm()
            return
        ch6, ch7, ch8 = drums
        ch6.outputs = [ch6.slots[1], ch6.slots[1], None, None]
        ch7.outputs = [ch7.slots[0], ch7.slots[0], ch7.slots[1], ch7.slots[1]]
        ch8.outputs = [ch8.slots[0], ch8.slots[0], ch8.slots[1], ch8.slots[1]]
        for channel in drums:
            channel.chtype = ChannelType.DRUM
        ch6.setup_algorithm()
        instruments = (
            (0x01, (ch7.slots[0],)),
            (0x02, (ch8.slots[1],)),
            (0x04, (ch8.slots[0],)),
            (0x08, (ch7.slots[1],)),
            (0x10, ch6.slots),
        )
        for mask, slots in instruments:
            for slot in slots:
                if self.rhy & mask:
                    slot.key_on(KEY_DRUM)
                else:
                    slot.key_off(KEY_DRUM)

    def write_reg(self, reg: int, value: int) -> None:
        """Write ``value`` to register ``reg`` (bit 8 selects the second bank)."""
        value &= 0xFF
        high = (reg >> 8) & 0x01
        regm = reg & 0xFF
        low = regm & 0x0F
        group = regm & 0xF0
        if group == 0x00:
            if high:
                if low == 0x04:
                    self._set_four_op(value)
                elif low == 0x05:
                    self.newm = value & 0x01
            elif low == 0x08:
                self.nts = (value >> 6) & 0x01
        elif group in _SLOT_WRITERS:
            index = _AD_SLOT[regm & 0x1F]
            if index >= 0:
                _SLOT_WRITERS[group](self.slots[18 * high + index], value)
        elif group == 0xA0:
            if low < 9:
                self.channels[9 * high + low].write_a0(value)
        elif group == 0xB0:
            if regm == 0xBD and not high:
                self.tremoloshift = (((value >> 7) ^ 1) << 1) + 2
                self.vibshift = ((value >> 6) & 0x01) ^ 1
                self._update_rhythm(value)
            elif low < 9:
                channel = self.channels[9 * high + low]
                channel.write_b0(value)
                if value & 0x20:
                    channel.key_on()
                else:
                    channel.key_off()
        elif group == 0xC0:
            if low < 9:
                self.channels[9 * high + low].write_c0(value)

    # Sample generation

    @staticmethod
    def _advance(slots: list[OPL3Slot], produce: bool) -> None:
        for slot in slots:
            slot.calc_feedback()
            slot.generate_phase()
            slot.calc_envelope()
            if produce:
                slot.generate()

    def _hihat_cymbal_bit(self) -> tuple[int, int]:
        phase14 = (self.channels[7].slots[0].pg_phase >> 9) & 0x3FF
        phase17 = (self.channels[8].slots[1].pg_phase >> 9) & 0x3FF
        bit = (
            (phase14 & 0x08)
            | (((phase14 >> 5) ^ phase14) & 0x04)
            | (((phase17 >> 2) ^ phase17) & 0x08)
        )
        return phase14, 1 if bit else 0

    def _rhythm_first(self) -> None:
        ch6, ch7, ch8 = self.channels[6:9]
        ch6.slots[0].generate()
        _, phasebit = self._hihat_cymbal_bit()
        phase = (phasebit << 9) | (0x34 << (phasebit ^ ((self.noise & 0x01) << 1)))
        ch7.slots[0].generate_at(phase)
        ch8.slots[0].generate_zero_mod()

    def _rhythm_second(self) -> None:
        ch6, ch7, ch8 = self.channels[6:9]
        ch6.slots[1].generate()
        phase14, phasebit = self._hihat_cymbal_bit()
        phase = (0x100 << ((phase14 >> 8) & 0x01)) ^ ((self.noise & 0x01) << 8)
        ch7.slots[1].generate_at(phase)
        ch8.slots[1].generate_at(0x100 | (phasebit << 9))

    def generate(self) -> tuple[int, int]:
        """Advance one native-rate sample and return ``(left, right)``."""
        slots = self.slots
        right = _clip(self.mixbuff[1])
        rhythm = bool(self.rhy & 0x20)

        self._advance(slots[0:12], produce=True)
        self._advance(slots[12:15], produce=False)
        if rhythm:
            self._rhythm_first()
        else:
            for slot in slots[12:15]:
                slot.generate()

        self.mixbuff[0] = sum(ch._mix() for ch in self.channels if ch.cha)

        self._advance(slots[15:18], produce=False)
        if rhythm:
            self._rhythm_second()
        else:
            for slot in slots[15:18]:
                slot.generate()

        left = _clip(self.mixbuff[0])

        self._advance(slots[18:33], produce=True)
        self.mixbuff[1] = sum(ch._mix() for ch in self.channels if ch.chb)
        self._advance(slots[33:36], produce=True)

        if self.noise & 0x01:
            self.noise ^= 0x800302
        self.noise >>= 1

        if (self.timer & 0x3F) == 0x3F:
            self.tremolopos = (self.tremolopos + 1) % 210
            if self.tremolopos < 105:
                self.tremolo = self.tremolopos >> self.tremoloshift
            else:
                self.tremolo = (210 - self.tremolopos) >> self.tremoloshift

        if (self.timer & 0x3FF) == 0x3FF:
            self.vibpos = (self.vibpos + 1) & 7

        self.timer = (self.timer + 1) & 0xFFFF
        return left, right

    def generate_resampled(self) -> tuple[int, int]:
        """Return one frame at the rate given to :meth:`reset`."""
        ratio = self.rateratio
        while self.samplecnt >= ratio:
            self.oldsamples = self.samples
            self.samples = self.generate()
            self.samplecnt -= ratio
        count = self.samplecnt
        frame = tuple(
            _int16(_div_trunc(old * (ratio - count) + new * count, ratio))
            for old, new in zip(self.oldsamples, self.samples)
        )
        self.samplecnt += 1 << _RESAMPLE_FRAC
        return frame[0], frame[1]