"""OPL3 FM chip emulation, a timed register-write queue, the Apogee timbre bank and a MIDI render loop."""

__version__ = "0.1.0"