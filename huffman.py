import heapq
import itertools
import logging
from typing import Dict, Hashable, Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)


class HuffmanError(ValueError):
    """Base class for errors raised by the coder."""


class UnknownSymbolError(HuffmanError):
    def __init__(self, symbol):
        super().__init__(f"symbol {symbol!r} has no code in the table")
        self.symbol = symbol


class MalformedStreamError(HuffmanError):
    def __init__(self, message: str, position: int):
        super().__init__(f"{message} (bit {position})")
        self.position = position


class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol, frequency, left=None, right=None):
        self.symbol = symbol    # None for internal nodes
        self.frequency = frequency
        self.left = left
        self.right = right

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode({self.symbol!r}, {self.frequency})"
        return f"HuffmanNode(None, {self.frequency}, {self.left!r}, {self.right!r})"


def count_frequencies(symbols: Iterable[Hashable]) -> Dict[Hashable, int]: # symbols: any finite sequence
    if symbols is None:
        raise TypeError("symbols must be a sequence, not None")
    freqs: Dict[Hashable, int] = {}
    for s in symbols:
        freqs[s] = freqs.get(s, 0) + 1
    return freqs


def build_huffman_tree(frequency_table: Dict[Hashable, int]) -> Optional[HuffmanNode]:
    """
    Greedy least-frequency-first merge of one leaf per symbol.
    Returns the root, a lone leaf for a one-symbol table, or None for an empty table.
    """
    # (frequency, insertion order, node) so equal frequencies pop in a stable order
    order = itertools.count()
    priority_queue = [(frequency, next(order), HuffmanNode(symbol, frequency))
                      for symbol, frequency in frequency_table.items()]
    heapq.heapify(priority_queue)

    while len(priority_queue) > 1:
        f1, _, left = heapq.heappop(priority_queue)
        f2, _, right = heapq.heappop(priority_queue)
        merged = HuffmanNode(None, f1 + f2, left, right)
        heapq.heappush(priority_queue, (merged.frequency, next(order), merged))

    if not priority_queue:
        return None
    root = priority_queue[0][2]
    logger.debug("built huffman tree over %d symbols, root frequency %d",
                 len(frequency_table), root.frequency)
    return root


def generate_huffman_codes(root: Optional[HuffmanNode]) -> Dict[Hashable, str]:
    codes: Dict[Hashable, str] = {}
    if root is None:
        return codes

    # A lone leaf would get the empty code, which can't separate repeated symbols
    if root.is_leaf:
        codes[root.symbol] = "0"
        return codes

    def generate_codes_helper(node, current_code):
        if node.is_leaf:
            codes[node.symbol] = current_code
            return
        generate_codes_helper(node.left, current_code + '0')
        generate_codes_helper(node.right, current_code + '1')

    generate_codes_helper(root, '')
    logger.debug("derived %d codes", len(codes))
    return codes


def huffman_encode(symbols: Iterable[Hashable], code_map: Dict[Hashable, str]) -> str:
    out = []
    for s in symbols:
        try:
            out.append(code_map[s])
        except KeyError:
            raise UnknownSymbolError(s) from None
    return ''.join(out)


def huffman_decode(bitstring: str, root: Optional[HuffmanNode]) -> List[Hashable]:
    """
    Walk the tree from the root, '0' left and '1' right, emitting a symbol at
    every leaf. Raises MalformedStreamError when the bits don't fit the tree,
    including a stream that stops in the middle of a code.
    """
    decoded = []
    if not bitstring:
        return decoded
    if root is None:
        raise MalformedStreamError("bits given for an empty tree", 0)

    if root.is_leaf:
        for i, bit in enumerate(bitstring):
            if bit != '0':
                raise MalformedStreamError(f"unexpected bit {bit!r} for a one-symbol code", i)
            decoded.append(root.symbol)
        return decoded

    node = root
    for i, bit in enumerate(bitstring):
        if bit == '0':
            node = node.left
        elif bit == '1':
            node = node.right
        else:
            raise MalformedStreamError(f"invalid bit {bit!r}", i)
        if node is None:
            raise MalformedStreamError("walked off the tree", i)
        if node.is_leaf:
            decoded.append(node.symbol)
            node = root

    if node is not root:
        raise MalformedStreamError("stream ends in the middle of a code", len(bitstring))
    return decoded


def compression_rate(encoded_bits: int, original_symbols: int) -> float:
    # original size is taken as one byte per symbol
    if original_symbols == 0:
        return 0.0
    return encoded_bits / original_symbols / 8.0


def _restore(symbols: List[Hashable], like: Sequence[Hashable]):
    if isinstance(like, str):
        return ''.join(symbols)
    if isinstance(like, (bytes, bytearray)):
        return type(like)(symbols)
    return symbols


class HuffmanCoder:
    """
    Huffman coder for one input sequence.

    The frequency table, tree and code table are built once from ``symbols``
    and never change afterwards. ``encode`` and ``decode`` default to the
    construction input and the most recent encoding. ``decode`` returns a
    value of the input's type for str, bytes and bytearray input, a list
    otherwise.
    """

    def __init__(self, symbols: Sequence[Hashable]):
        self.input = symbols
        self.frequencies = count_frequencies(symbols)
        self.root = build_huffman_tree(self.frequencies)
        self.codes = generate_huffman_codes(self.root)
        self.encoded: Optional[str] = None
        self.encoded_count = 0

    def encode(self, symbols: Optional[Sequence[Hashable]] = None) -> str:
        if symbols is None:
            symbols = self.input
        self.encoded = huffman_encode(symbols, self.codes)
        self.encoded_count = len(symbols)
        return self.encoded

    def decode(self, bits: Optional[str] = None):
        if bits is None:
            bits = self.encoded if self.encoded is not None else self.encode()
        return _restore(huffman_decode(bits, self.root), self.input)

    def compression_rate(self) -> float:
        if self.encoded is None:
            self.encode()
        return compression_rate(len(self.encoded), self.encoded_count)
