import math
import random

import pytest

import huffman as huff
from huffman import HuffmanCoder, MalformedStreamError, UnknownSymbolError


def _leaves(node):
    if node.is_leaf:
        return [node]
    return _leaves(node.left) + _leaves(node.right)


def _internal_nodes(node):
    if node.is_leaf:
        return []
    return [node] + _internal_nodes(node.left) + _internal_nodes(node.right)


def test_count_frequencies():
    assert huff.count_frequencies("aabbbcc") == {"a": 2, "b": 3, "c": 2}
    assert huff.count_frequencies("") == {}
    assert huff.count_frequencies(b"\x00\x01\x00") == {0: 2, 1: 1}


def test_count_frequencies_rejects_none():
    with pytest.raises(TypeError):
        huff.count_frequencies(None)


def test_frequency_conservation():
    text = "the quick brown fox jumps over the lazy dog"
    freqs = huff.count_frequencies(text)
    assert sum(freqs.values()) == len(text)
    assert set(freqs) == set(text)

    root = huff.build_huffman_tree(freqs)
    assert sum(leaf.frequency for leaf in _leaves(root)) == root.frequency == len(text)
    for node in _internal_nodes(root):
        assert node.symbol is None
        assert node.left is not None and node.right is not None
        assert node.frequency == node.left.frequency + node.right.frequency


def test_build_tree_edge_cases():
    assert huff.build_huffman_tree({}) is None

    root = huff.build_huffman_tree({"x": 4})
    assert root.is_leaf
    assert root.symbol == "x"
    assert root.frequency == 4


def test_build_tree_is_deterministic():
    freqs = {"a": 1, "b": 1, "c": 1, "d": 1, "e": 2}
    codes1 = huff.generate_huffman_codes(huff.build_huffman_tree(freqs))
    codes2 = huff.generate_huffman_codes(huff.build_huffman_tree(dict(freqs)))
    assert codes1 == codes2


def test_codes_are_prefix_free():
    coder = HuffmanCoder("abracadabra alakazam")
    codes = list(coder.codes.values())
    for i, a in enumerate(codes):
        for j, b in enumerate(codes):
            if i != j:
                assert not b.startswith(a)


def test_example_aabbbcc():
    coder = HuffmanCoder("aabbbcc")
    assert coder.frequencies == {"a": 2, "b": 3, "c": 2}
    # b is the most frequent symbol so it gets the shortest code
    assert len(coder.codes["b"]) == 1
    assert len(coder.codes["a"]) == 2
    assert len(coder.codes["c"]) == 2

    encoded = coder.encode()
    assert len(encoded) == 2 + 2 + 1 + 1 + 1 + 2 + 2
    assert coder.decode() == "aabbbcc"


@pytest.mark.parametrize("text", [
    "a",
    "ab",
    "hello world",
    "mississippi\nmississippi",
    "".join(chr(c) for c in range(32, 127)),
])
def test_roundtrip_text(text):
    coder = HuffmanCoder(text)
    assert coder.decode(coder.encode()) == text


def test_roundtrip_random_bytes():
    rng = random.Random(7)
    data = bytes(rng.getrandbits(8) for _ in range(5000))
    coder = HuffmanCoder(data)
    assert coder.decode(coder.encode()) == data


def test_roundtrip_list_of_symbols():
    tokens = ["GET", "/", "GET", "/index", "POST", "/", "GET"]
    coder = HuffmanCoder(tokens)
    assert coder.decode(coder.encode()) == tokens


def test_not_longer_than_fixed_width():
    rng = random.Random(3)
    for alphabet in (2, 3, 5, 17, 64):
        data = [rng.randrange(alphabet) for _ in range(2000)]
        coder = HuffmanCoder(data)
        width = math.ceil(math.log2(len(coder.frequencies)))
        assert len(coder.encode()) <= width * len(data)


def test_single_symbol_alphabet():
    coder = HuffmanCoder("aaaa")
    assert coder.codes == {"a": "0"}
    encoded = coder.encode()
    assert encoded == "0000"
    assert coder.decode(encoded) == "aaaa"


def test_single_symbol_rejects_other_bits():
    coder = HuffmanCoder("aaaa")
    with pytest.raises(MalformedStreamError) as exc:
        coder.decode("0010")
    assert exc.value.position == 2


def test_empty_input():
    coder = HuffmanCoder("")
    assert coder.root is None
    assert coder.codes == {}
    assert coder.encode() == ""
    assert coder.decode("") == ""
    assert coder.compression_rate() == 0.0


def test_empty_tree_rejects_bits():
    with pytest.raises(MalformedStreamError):
        huff.huffman_decode("01", None)


def test_unknown_symbol():
    coder = HuffmanCoder("abc")
    with pytest.raises(UnknownSymbolError) as exc:
        coder.encode("abd")
    assert exc.value.symbol == "d"


def test_unknown_symbol_is_a_value_error():
    with pytest.raises(ValueError):
        huff.huffman_encode("z", {"a": "0"})


def test_truncated_stream():
    coder = HuffmanCoder("aabbbcc")
    encoded = coder.encode()
    # the last symbol, c, has a two-bit code
    with pytest.raises(MalformedStreamError) as exc:
        coder.decode(encoded[:-1])
    assert exc.value.position == len(encoded) - 1


def test_invalid_bit_character():
    coder = HuffmanCoder("abc")
    with pytest.raises(MalformedStreamError):
        coder.decode("01x")


def test_decode_without_prior_encode():
    coder = HuffmanCoder("banana")
    assert coder.decode() == "banana"
    assert coder.encoded is not None


def test_compression_rate():
    text = "this is an example of a huffman tree"
    coder = HuffmanCoder(text)
    encoded = coder.encode()
    assert coder.compression_rate() == pytest.approx(len(encoded) / len(text) / 8.0)


def test_compression_rate_tracks_last_encoding():
    coder = HuffmanCoder("aabbbcc")
    encoded = coder.encode("bbb")
    assert encoded == coder.codes["b"] * 3
    assert coder.compression_rate() == pytest.approx(len(encoded) / 3 / 8.0)


def test_compression_rate_function():
    assert huff.compression_rate(16, 4) == pytest.approx(0.5)
    assert huff.compression_rate(0, 0) == 0.0


def test_bytearray_input_decodes_to_bytearray():
    data = bytearray(b"abracadabra")
    decoded = HuffmanCoder(data).decode()
    assert type(decoded) is bytearray
    assert decoded == data
