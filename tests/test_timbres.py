import pytest

from apogeeopl.timbres import (
    BANK_SIZE,
    TIMBRE_SIZE,
    Timbre,
    default_bank,
    load_bank,
    parse_bank,
)


def _bank_bytes(bank):
    return b"".join(timbre.to_bytes() for timbre in bank)


def test_default_bank_has_256_entries():
    assert len(default_bank()) == BANK_SIZE == 256


def test_default_first_entry_matches_table():
    first = default_bank()[0]
    assert first.savek == (33, 33)
    assert first.level == (143, 6)
    assert first.env1 == (242, 242)
    assert first.env2 == (69, 118)
    assert first.wave == (0, 0)
    assert first.feedback == 8
    assert first.transpose == 0
    assert first.velocity == 0


def test_default_drum_entries():
    bank = default_bank()
    assert bank[128 + 35].transpose == 52
    assert bank[128 + 35].env1 == (252, 250)
    assert bank[128].transpose == 35
    assert bank[255].transpose == 35


def test_default_bank_is_a_fresh_copy():
    bank = default_bank()
    bank.clear()
    assert len(default_bank()) == BANK_SIZE


def test_record_round_trip():
    for timbre in default_bank():
        data = timbre.to_bytes()
        assert len(data) == TIMBRE_SIZE
        assert Timbre.from_bytes(data) == timbre


def test_record_byte_order():
    record = bytes(range(1, 14))
    timbre = Timbre.from_bytes(record)
    assert timbre.savek == (1, 2)
    assert timbre.level == (3, 4)
    assert timbre.env1 == (5, 6)
    assert timbre.env2 == (7, 8)
    assert timbre.wave == (9, 10)
    assert timbre.feedback == 11
    assert timbre.transpose == 12
    assert timbre.velocity == 13


def test_signed_transpose_and_velocity():
    record = bytes([0] * 11 + [0xFF, 0x80])
    timbre = Timbre.from_bytes(record)
    assert timbre.transpose == -1
    assert timbre.velocity == -128
    assert timbre.to_bytes() == record


def test_from_bytes_rejects_wrong_length():
    with pytest.raises(ValueError):
        Timbre.from_bytes(bytes(12))


def test_parse_bank_round_trip():
    bank = default_bank()
    assert parse_bank(_bank_bytes(bank)) == bank


def test_parse_bank_rejects_wrong_size():
    with pytest.raises(ValueError):
        parse_bank(bytes(BANK_SIZE * TIMBRE_SIZE - 1))


def test_load_bank_none_gives_default():
    assert load_bank(None) == default_bank()


def test_load_bank_missing_file_gives_default(tmp_path):
    assert load_bank(tmp_path / "missing.tmb") == default_bank()


def test_load_bank_wrong_size_gives_default(tmp_path):
    path = tmp_path / "short.tmb"
    path.write_bytes(bytes(100))
    assert load_bank(path) == default_bank()


def test_load_bank_reads_file(tmp_path):
    bank = default_bank()
    bank[0] = Timbre.from_bytes(bytes(range(20, 33)))
    path = tmp_path / "bank.tmb"
    path.write_bytes(_bank_bytes(bank))
    loaded = load_bank(path)
    assert loaded == bank
    assert loaded[0].savek == (20, 21)
    assert loaded[0] != default_bank()[0]