# apogeeopl

An emulated OPL3 (YMF262) FM chip in pure Python, with the pieces around
it that a MIDI synthesizer for the chip needs: a queue of timed register
writes, the Apogee instrument (timbre) bank and its file format, and a loop
that hands timestamped MIDI messages to a synthesizer while rendering audio.
There are no third-party dependencies.

## Modules

- `apogeeopl.chip`
  - `OPL3Chip(sample_rate=49716)`: emulates the chip one native-rate sample
    at a time. `write_reg(reg, value)` writes a register; bit 8 of `reg`
    selects the second register bank. `generate()` advances one sample and
    returns `(left, right)`. `generate_resampled()` returns one frame at the
    rate given to `reset(sample_rate)`, interpolated between native samples.
  - `OPL3Channel` and `ChannelType` (two-operator, four-operator, pair, drum).
  - `NATIVE_RATE` is 49716.
- `apogeeopl.slot`: `OPL3Slot`, a single operator with envelope generator,
  phase generator and waveform output, and `EnvelopeStage`.
- `apogeeopl.waveforms`: `waveform(wave, phase, envelope)` for the eight
  operator waveforms and `envelope_exp(level)`, with the log-sine and
  exponent tables `LOGSIN_ROM` and `EXP_ROM`.
- `apogeeopl.fmchip`
  - `FMChip(rate=49716)`: an `OPL3Chip` behind a queue of register writes.
    `write_reg(reg, data)` schedules a write `LATENCY` frames (50 ms) after
    the current frame, and at least two frames after the previous write.
    `generate(length)` applies writes that have come due and returns
    `length` frames as a flat list of interleaved left/right samples.
    `init(rate)` resets the chip and drops pending writes; `counter` and
    `pending` report progress.
- `apogeeopl.timbres`
  - `Timbre`: the register values of a two-operator instrument, with
    `Timbre.from_bytes(data)` and `to_bytes()` for 13-byte bank records.
  - `default_bank()`: the built-in 256-entry bank (128 melodic instruments,
    then percussion entries indexed by drum key + 128).
  - `parse_bank(data)` decodes a 3328-byte bank; `load_bank(path)` reads a
    bank file and falls back to the built-in bank when the path is `None`,
    unreadable, or the wrong size.
- `apogeeopl.midistream`: `MidiStream`, a fixed ring of
  `(message, timestamp)` pairs holding at most 1023 messages, raising
  `StreamFullError` and `StreamEmptyError`.
- `apogeeopl.renderer`
  - `MidiRenderer(synth, sample_rate=49716, buffer_ms=100, chunk_ms=10,
    latency_ms=0)`: renders `synth` into a looping frame buffer.
    `push(message, position)` queues a message for a buffer frame;
    `render(frames)` returns interleaved samples, passing each message to
    `synth.write` exactly when rendering reaches its frame; `reset()` resets
    the synthesizer and drops queued messages. `synth` may be any object
    with `write(data)`, `generate(length)` (returning a list of samples) and
    `reset()`.

## Example

Play a tone straight on the chip:

```python
from apogeeopl.chip import OPL3Chip

chip = OPL3Chip()
for reg, value in [
    (0x20, 0x01), (0x23, 0x01),   # multiplier 1 on both operators
    (0x40, 0x10), (0x43, 0x00),   # levels
    (0x60, 0xF0), (0x63, 0xF0),   # attack / decay
    (0x80, 0x77), (0x83, 0x77),   # sustain / release
    (0xA0, 0x41),                 # frequency number, low bits
    (0xB0, 0x32),                 # key on, block 4, high bits
]:
    chip.write_reg(reg, value)

frames = [chip.generate() for _ in range(4096)]   # (left, right) pairs
```

Through `FMChip`, writes only reach the chip after the latency, so render
past `LATENCY` frames to hear them:

```python
from apogeeopl.fmchip import FMChip, LATENCY

fm = FMChip(49716)
fm.write_reg(0x20, 0x01)
samples = fm.generate(LATENCY + 1024)   # interleaved left/right
```

Reading a custom bank:

```python
from apogeeopl.timbres import load_bank

bank = load_bank("APOGEE.TMB")
piano = bank[0]
print(piano.level, piano.feedback)
```

## What the package does not do

There is no General MIDI synthesizer in the package: nothing allocates chip
voices to notes or turns note-on, control-change, program-change or
pitch-bend messages into register writes. `MidiRenderer` needs such a
synthesizer to be supplied by the caller. The package also has no audio
output and no command-line program; rendered samples are returned as Python
integers for the caller to play or store.

## Tests

```
pip install -e .[test]
pytest
```