"""Log-sine and exponent lookups that shape the eight OPL3 operator waveforms."""

from __future__ import annotations

from typing import Callable

__all__ = ["LOGSIN_ROM", "EXP_ROM", "envelope_exp", "waveform"]

LOGSIN_ROM: tuple[int, ...] = (
    0x859, 0x6C3, 0x607, 0x58B, 0x52E, 0x4E4, 0x4A6, 0x471,
    0x443, 0x41A, 0x3F5, 0x3D3, 0x3B5, 0x398, 0x37E, 0x365,
    0x34E, 0x339, 0x324, 0x311, 0x2FF, 0x2ED, 0x2DC, 0x2CD,
    0x2BD, 0x2AF, 0x2A0, 0x293, 0x286, 0x279, 0x26D, 0x261,
    0x256, 0x24B, 0x240, 0x236, 0x22C, 0x222, 0x218, 0x20F,
    0x206, 0x1FD, 0x1F5, 0x1EC, 0x1E4, 0x1DC, 0x1D4, 0x1CD,
    0x1C5, 0x1BE, 0x1B7, 0x1B0, 0x1A9, 0x1A2, 0x19B, 0x195,
    0x18F, 0x188, 0x182, 0x17C, 0x177, 0x171, 0x16B, 0x166,
    0x160, 0x15B, 0x155, 0x150, 0x14B, 0x146, 0x141, 0x13C,
    0x137, 0x133, 0x12E, 0x129, 0x125, 0x121, 0x11C, 0x118,
    0x114, 0x10F, 0x10B, 0x107, 0x103, 0x0FF, 0x0FB, 0x0F8,
    0x0F4, 0x0F0, 0x0EC, 0x0E9, 0x0E5, 0x0E2, 0x0DE, 0x0DB,
    0x0D7, 0x0D4, 0x0D1, 0x0CD, 0x0CA, 0x0C7, 0x0C4, 0x0C1,
    0x0BE, 0x0BB, 0x0B8, 0x0B5, 0x0B2, 0x0AF, 0x0AC, 0x0A9,
    0x0A7, 0x0A4, 0x0A1, 0x09F, 0x09C, 0x099, 0x097, 0x094,
    0x092, 0x08F, 0x08D, 0x08A, 0x088, 0x086, 0x083, 0x081,
    0x07F, 0x07D, 0x07A, 0x078, 0x076, 0x074, 0x072, 0x070,
    0x06E, 0x06C, 0x06A, 0x068, 0x066, 0x064, 0x062, 0x060,
    0x05E, 0x05C, 0x05B, 0x059, 0x057, 0x055, 0x053, 0x052,
    0x050, 0x04E, 0x04D, 0x04B, 0x04A, 0x048, 0x046, 0x045,
    0x043, 0x042, 0x040, 0x03F, 0x03E, 0x03C, 0x03B, 0x039,
    0x038, 0x037, 0x035, 0x034, 0x033, 0x031, 0x030, 0x02F,
    0x02E, 0x02D, 0x02B, 0x02A, 0x029, 0x028, 0x027, 0x026,
    0x025, 0x024, 0x023, 0x022, 0x021, 0x020, 0x01F, 0x01E,
    0x01D, 0x01C, 0x01B, 0x01A, 0x019, 0x018, 0x017, 0x017,
    0x016, 0x015, 0x014, 0x014, 0x013, 0x012, 0x011, 0x011,
    0x010, 0x00F, 0x00F, 0x00E, 0x00D, 0x00D, 0x00C, 0x00C,
    0x00B, 0x00A, 0x00A, 0x009, 0x009, 0x008, 0x008, 0x007,
    0x007, 0x007, 0x006, 0x006, 0x005, 0x005, 0x005, 0x004,
    0x004, 0x004, 0x003, 0x003, 0x003, 0x002, 0x002, 0x002,
    0x002, 0x001, 0x001, 0x001, 0x001, 0x001, 0x001, 0x001,
    0x000, 0x000, 0x000, 0x000, 0x000, 0x000, 0x000, 0x000,
)

EXP_ROM: tuple[int, ...] = (
    0x000, 0x003, 0x006, 0x008, 0x00B, 0x00E, 0x011, 0x014,
    0x016, 0x019, 0x01C, 0x01F, 0x022, 0x025, 0x028, 0x02A,
    0x02D, 0x030, 0x033, 0x036, 0x039, 0x03C, 0x03F, 0x042,
    0x045, 0x048, 0x04B, 0x04E, 0x051, 0x054, 0x057, 0x05A,
    0x05D, 0x060, 0x063, 0x066, 0x069, 0x06C, 0x06F, 0x072,
    0x075, 0x078, 0x07B, 0x07E, 0x082, 0x085, 0x088, 0x08B,
    0x08E, 0x091, 0x094, 0x098, 0x09B, 0x09E, 0x0A1, 0x0A4,
    0x0A8, 0x0AB, 0x0AE, 0x0B1, 0x0B5, 0x0B8, 0x0BB, 0x0BE,
    0x0C2, 0x0C5, 0x0C8, 0x0CC, 0x0CF, 0x0D2, 0x0D6, 0x0D9,
    0x0DC, 0x0E0, 0x0E3, 0x0E7, 0x0EA, 0x0ED, 0x0F1, 0x0F4,
    0x0F8, 0x0FB, 0x0FF, 0x102, 0x106, 0x109, 0x10C, 0x110,
    0x114, 0x117, 0x11B, 0x11E, 0x122, 0x125, 0x129, 0x12C,
    0x130, 0x134, 0x137, 0x13B, 0x13E, 0x142, 0x146, 0x149,
    0x14D, 0x151, 0x154, 0x158, 0x15C, 0x160, 0x163, 0x167,
    0x16B, 0x16F, 0x172, 0x176, 0x17A, 0x17E, 0x181, 0x185,
    0x189, 0x18D, 0x191, 0x195, 0x199, 0x19C, 0x1A0, 0x1A4,
    0x1A8, 0x1AC, 0x1B0, 0x1B4, 0x1B8, 0x1BC, 0x1C0, 0x1C4,
    0x1C8, 0x1CC, 0x1D0, 0x1D4, 0x1D8, 0x1DC, 0x1E0, 0x1E4,
    0x1E8, 0x1EC, 0x1F0, 0x1F5, 0x1F9, 0x1FD, 0x201, 0x205,
    0x209, 0x20E, 0x212, 0x216, 0x21A, 0x21E, 0x223, 0x227,
    0x22B, 0x230, 0x234, 0x238, 0x23C, 0x241, 0x245, 0x249,
    0x24E, 0x252, 0x257, 0x25B, 0x25F, 0x264, 0x268, 0x26D,
    0x271, 0x276, 0x27A, 0x27F, 0x283, 0x288, 0x28C, 0x291,
    0x295, 0x29A, 0x29E, 0x2A3, 0x2A8, 0x2AC, 0x2B1, 0x2B5,
    0x2BA, 0x2BF, 0x2C4, 0x2C8, 0x2CD, 0x2D2, 0x2D6, 0x2DB,
    0x2E0, 0x2E5, 0x2E9, 0x2EE, 0x2F3, 0x2F8, 0x2FD, 0x302,
    0x306, 0x30B, 0x310, 0x315, 0x31A, 0x31F, 0x324, 0x329,
    0x32E, 0x333, 0x338, 0x33D, 0x342, 0x347, 0x34C, 0x351,
    0x356, 0x35B, 0x360, 0x365, 0x36A, 0x370, 0x375, 0x37A,
    0x37F, 0x384, 0x38A, 0x38F, 0x394, 0x399, 0x39F, 0x3A4,
    0x3A9, 0x3AE, 0x3B4, 0x3B9, 0x3BF, 0x3C4, 0x3C9, 0x3CF,
    0x3D4, 0x3DA, 0x3DF, 0x3E4, 0x3EA, 0x3EF, 0x3F5, 0x3FA,
)

# Log-domain value that silences the output entirely.
_SILENT = 0x1000


def envelope_exp(level: int) -> int:
    """Convert an attenuation in the log domain to a linear amplitude."""
    level &= 0xFFFFFFFF
    if level > 0x1FFF:
        level = 0x1FFF
    return ((EXP_ROM[(level & 0xFF) ^ 0xFF] | 0x400) << 1) >> (level >> 8)


def _quarter_sine(phase: int) -> int:
    """Log-sine of a phase, mirrored in the second quarter of each half."""
    if phase & 0x100:
        return LOGSIN_ROM[(phase & 0xFF) ^ 0xFF]
    return LOGSIN_ROM[phase & 0xFF]


def _double_speed_sine(phase: int) -> int:
    if phase & 0x80:
        return LOGSIN_ROM[((phase ^ 0xFF) << 1) & 0xFF]
    return LOGSIN_ROM[(phase << 1) & 0xFF]


def _sine(phase: int, envelope: int) -> int:
    value = envelope_exp(_quarter_sine(phase) + (envelope << 3))
    return ~value if phase & 0x200 else value


def _half_sine(phase: int, envelope: int) -> int:
    out = _SILENT if phase & 0x200 else _quarter_sine(phase)
    return envelope_exp(out + (envelope << 3))


def _abs_sine(phase: int, envelope: int) -> int:
    return envelope_exp(_quarter_sine(phase) + (envelope << 3))


def _pulse_sine(phase: int, envelope: int) -> int:
    out = _SILENT if phase & 0x100 else LOGSIN_ROM[phase & 0xFF]
    return envelope_exp(out + (envelope << 3))


def _alternating_sine(phase: int, envelope: int) -> int:
    out = _SILENT if phase & 0x200 else _double_speed_sine(phase)
    value = envelope_exp(out + (envelope << 3))
    return ~value if (phase & 0x300) == 0x100 else value


def _camel_sine(phase: int, envelope: int) -> int:
    out = _SILENT if phase & 0x200 else _double_speed_sine(phase)
    return envelope_exp(out + (envelope << 3))


def _square(phase: int, envelope: int) -> int:
    value = envelope_exp(envelope << 3)
    return ~value if phase & 0x200 else value


def _log_sawtooth(phase: int, envelope: int) -> int:
    negative = bool(phase & 0x200)
    if negative:
        phase = (phase & 0x1FF) ^ 0x1FF
    value = envelope_exp((phase << 3) + (envelope << 3))
    return ~value if negative else value


_WAVEFORMS: tuple[Callable[[int, int], int], ...] = (
    _sine,
    _half_sine,
    _abs_sine,
    _pulse_sine,
    _alternating_sine,
    _camel_sine,
    _square,
    _log_sawtooth,
)


def waveform(wave: int, phase: int, envelope: int) -> int:
    """Return the signed output of waveform ``wave`` (0-7) at ``phase``.

    ``phase`` is taken modulo 1024 and ``envelope`` as a 16-bit attenuation.
    """
    if not 0 <= wave < len(_WAVEFORMS):
        raise ValueError(f"waveform must be in 0..7, got {wave}")
    return _WAVEFORMS[wave](phase & 0x3FF, envelope & 0xFFFF)