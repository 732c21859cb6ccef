import pytest

from rebel.hash import hash_u32x8

MAX = 0xFFFFFFFF

INPUTS = [
    [0, 0, 0, 0, 0, 0, 0, 0],
    [1, 2, 3, 4, 5, 6, 7, 8],
    [MAX, MAX, MAX, MAX, 0, 0, 0, 0],
    [0x12345678, 0x9ABCDEF0, 0x0FEDCBA9, 0x87654321,
     0xCAFEBABE, 0xDEADBEEF, 0xFEEDFACE, 0xBADC0DE],
    [0xA5A5A5A5, 0x5A5A5A5A, 0xA5A5A5A5, 0x5A5A5A5A,
     0xA5A5A5A5, 0x5A5A5A5A, 0xA5A5A5A5, 0x5A5A5A5A],
]


@pytest.mark.parametrize("words", INPUTS)
def test_hash_consistency(words):
    assert hash_u32x8(words) == hash_u32x8(tuple(words))


@pytest.mark.parametrize("words", INPUTS)
def test_hash_fits_in_u32(words):
    assert 0 <= hash_u32x8(words) <= MAX


def test_zero_input_hashes_to_zero():
    assert hash_u32x8([0] * 8) == 0


def test_hash_is_linear_over_xor():
    a = INPUTS[3]
    b = INPUTS[4]
    combined = [x ^ y for x, y in zip(a, b)]
    assert hash_u32x8(combined) == hash_u32x8(a) ^ hash_u32x8(b)


def test_hash_different_inputs():
    assert hash_u32x8([1, 2, 3, 4, 5, 6, 7, 8]) != hash_u32x8([8, 7, 6, 5, 4, 3, 2, 1])


def test_hash_stability():
    words = [42, 99, 123, 456, 789, 1024, 2048, 4096]
    assert hash_u32x8(words) == hash_u32x8(list(words))


@pytest.mark.parametrize("index", range(8))
def test_avalanche(index):
    base = [1, 2, 3, 4, 5, 6, 7, 8]
    base_hash = hash_u32x8(base)
    modified = list(base)
    modified[index] ^= 1
    modified_hash = hash_u32x8(modified)
    assert base_hash != modified_hash
    assert bin(base_hash ^ modified_hash).count("1") >= 10


def test_hash_edge_cases():
    assert hash_u32x8([0] * 8) != hash_u32x8([MAX] * 8)


def test_hash_alternating():
    alt1 = [0, MAX, 0, MAX, 0, MAX, 0, MAX]
    alt2 = [MAX, 0, MAX, 0, MAX, 0, MAX, 0]
    assert hash_u32x8(alt1) != hash_u32x8(alt2)


def test_wrong_length_rejected():
    with pytest.raises(ValueError):
        hash_u32x8([1, 2, 3])


def test_out_of_range_word_rejected():
    with pytest.raises(ValueError):
        hash_u32x8([MAX + 1, 0, 0, 0, 0, 0, 0, 0])