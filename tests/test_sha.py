import hashlib

import pytest

from mobileglue.sha import Sha1, Sha224, Sha256, sha1, sha224, sha256

LENGTHS = [0, 1, 3, 55, 56, 57, 63, 64, 65, 119, 120, 128, 1000]


def _message(n):
    return bytes((i * 31 + 7) % 256 for i in range(n))


@pytest.mark.parametrize("length", LENGTHS)
def test_sha1_one_shot_matches_reference(length):
    data = _message(length)
    assert sha1(data) == hashlib.sha1(data).digest()


@pytest.mark.parametrize("length", LENGTHS)
def test_sha256_one_shot_matches_reference(length):
    data = _message(length)
    assert sha256(data) == hashlib.sha256(data).digest()


@pytest.mark.parametrize("length", LENGTHS)
def test_sha224_one_shot_matches_reference(length):
    data = _message(length)
    assert sha224(data) == hashlib.sha224(data).digest()


def test_known_sha1_abc():
    assert sha1(b"abc").hex() == "a9993e364706816aba3e25717850c26c9cd0d89d"


def test_known_sha256_abc():
    assert sha256(b"abc").hex() == (
        "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    )


def test_known_sha224_abc():
    assert sha224(b"abc").hex() == "23097d223405d8228642a477bda255b32aadbce4bda0b3f7e36c9da7"


def test_digest_sizes():
    assert len(sha1(b"hello")) == 20
    assert len(sha256(b"hello")) == 32
    assert len(sha224(b"hello")) == 28
    assert len(Sha1(b"hello").digest()) == 20
    assert len(Sha256(b"hello").digest()) == 32
    assert len(Sha224(b"hello").digest()) == 28


def test_incremental_updates_equal_one_shot():
    data = _message(300)
    h1, h256, h224 = Sha1(), Sha256(), Sha224()
    for start in range(0, len(data), 17):
        piece = data[start:start + 17]
        h1.update(piece)
        h256.update(piece)
        h224.update(piece)
    assert h1.digest() == hashlib.sha1(data).digest()
    assert h256.digest() == hashlib.sha256(data).digest()
    assert h224.digest() == hashlib.sha224(data).digest()


def test_digest_is_repeatable_and_update_continues():
    whole = b"first part second part"
    for h, reference in ((Sha1(), hashlib.sha1), (Sha256(), hashlib.sha256), (Sha224(), hashlib.sha224)):
        h.update(b"first part ")
        first = h.digest()
        assert first == reference(b"first part ").digest()
        assert h.digest() == first
        h.update(b"second part")
        assert h.digest() == reference(whole).digest()


def test_copy_is_independent():
    for h, reference in ((Sha1(b"shared"), hashlib.sha1), (Sha256(b"shared"), hashlib.sha256),
                         (Sha224(b"shared"), hashlib.sha224)):
        other = h.copy()
        other.update(b" more")
        assert h.digest() == reference(b"shared").digest()
        assert other.digest() == reference(b"shared more").digest()


def test_hexdigest_matches_reference():
    assert Sha1(b"data").hexdigest() == hashlib.sha1(b"data").hexdigest()
    assert Sha256(b"data").hexdigest() == hashlib.sha256(b"data").hexdigest()
    assert Sha224(b"data").hexdigest() == hashlib.sha224(b"data").hexdigest()


def test_accepts_bytearray_and_memoryview():
    data = _message(70)
    assert sha1(bytearray(data)) == hashlib.sha1(data).digest()
    assert sha1(memoryview(data)) == hashlib.sha1(data).digest()
    assert sha256(bytearray(data)) == hashlib.sha256(data).digest()
    assert sha256(memoryview(data)) == hashlib.sha256(data).digest()
    assert sha224(bytearray(data)) == hashlib.sha224(data).digest()
    assert sha224(memoryview(data)) == hashlib.sha224(data).digest()


@pytest.mark.parametrize("bad", [None, "text", 5])
def test_sha1_rejects_non_bytes(bad):
    with pytest.raises(TypeError):
        Sha1().update(bad)


@pytest.mark.parametrize("bad", [None, "text", 5])
def test_sha256_rejects_non_bytes(bad):
    with pytest.raises(TypeError):
        Sha256().update(bad)


@pytest.mark.parametrize("bad", [None, "text", 5])
def test_sha224_rejects_non_bytes(bad):
    with pytest.raises(TypeError):
        Sha224().update(bad)


def test_sha224_differs_from_truncated_sha256():
    assert sha224(b"abc") != sha256(b"abc")[:28]