"""
Tests for the Merkleization Core

Context construction, packing, the virtual-padding merkleizer and
decoration mixing, checked against fixed regression vectors.
"""

import hashlib

import pytest

from sszmerkle import (
    BYTES_PER_CHUNK,
    MAX_MERKLE_TREE_DEPTH,
    Context,
    Node,
    LeafCount,
    Boolean,
    Uint8,
    Uint16,
    Uint32,
    Uint256,
    SerializationError,
    PartialChunkError,
    InputExceedsLimitError,
    SimpleSerialize,
    next_power_of_two,
    pack,
    pack_bytes,
    pack_bits,
    merkleize,
    merkleize_chunks_with_virtual_padding,
    merkleize_chunks_reference,
    mix_in_length,
    mix_in_selector,
)


@pytest.fixture(scope="module")
def context():
    return Context()


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


class TestNode:
    """Tests for the 32-byte digest type."""

    def test_default_is_zero(self):
        assert bytes(Node()) == bytes(32)

    def test_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            Node(b'\x00' * 31)
        with pytest.raises(ValueError):
            Node(b'\x00' * 33)

    def test_bytewise_ordering(self):
        low = Node(b'\x00' * 31 + b'\x01')
        high = Node(b'\x01' + b'\x00' * 31)
        assert low < high
        assert sorted([high, low]) == [low, high]

    def test_hex_roundtrip(self):
        node = Node(bytes(range(32)))
        assert Node.from_hex(node.hex()) == node
        assert Node.from_hex('0x' + node.hex()) == node

    def test_node_is_its_own_root(self, context):
        node = Node(b'\xab' * 32)
        assert node.serialize() == b'\xab' * 32
        assert node.hash_tree_root(context) == node

    def test_hashable(self):
        assert len({Node(), Node(bytes(32))}) == 1

    def test_deserialize_roundtrip(self):
        node = Node(bytes(range(32)))
        assert Node.deserialize(node.serialize()) == node
        assert Node.deserialize(bytearray(node.serialize())) == node

    def test_deserialize_wrong_length(self):
        with pytest.raises(SerializationError):
            Node.deserialize(b'\x00' * 31)
        with pytest.raises(ValueError):
            Node.deserialize(b'\x00' * 33)


class TestLeafCount:
    """Tests for the power-of-two leaf count."""

    def test_next_power_of_two(self):
        assert next_power_of_two(0) == 1
        assert next_power_of_two(1) == 1
        assert next_power_of_two(2) == 2
        assert next_power_of_two(3) == 4
        assert next_power_of_two(5) == 8
        assert next_power_of_two(1024) == 1024
        assert next_power_of_two(1025) == 2048

    def test_for_chunks(self):
        assert LeafCount.for_chunks(0).value == 1
        assert LeafCount.for_chunks(3).value == 4
        assert LeafCount.for_chunks(3).depth == 2

    def test_rejects_non_power_of_two(self):
        for bad in (0, 3, 6, 100):
            with pytest.raises(ValueError):
                LeafCount(bad)

    def test_rejects_beyond_max_depth(self):
        assert LeafCount(2 ** 63).depth == 63
        with pytest.raises(ValueError):
            LeafCount(2 ** 64)

    def test_rejects_non_int(self):
        with pytest.raises(TypeError):
            LeafCount(4.0)
        with pytest.raises(TypeError):
            LeafCount(True)


class TestContext:
    """Tests for the zero-hash table."""

    def test_depth_zero_is_zero_chunk(self, context):
        assert context[0] == bytes(32)

    def test_each_entry_hashes_the_previous(self, context):
        for i in range(MAX_MERKLE_TREE_DEPTH - 1):
            assert context[i + 1] == sha256(context[i] + context[i])

    def test_known_vector(self, context):
        assert context[1].hex() == (
            "f5a5fd42d16a20302798ef6ed309979b43003d2320d9f0e8ea9831a92759fb4b"
        )

    def test_out_of_range(self, context):
        with pytest.raises(IndexError):
            context[MAX_MERKLE_TREE_DEPTH]
        with pytest.raises(IndexError):
            context[-1]

    def test_immutable(self, context):
        with pytest.raises(AttributeError):
            context._zero_hashes = b''

    def test_independent_contexts_agree(self, context):
        other = Context()
        assert all(context[i] == other[i] for i in range(len(context)))


class FailingValue(SimpleSerialize):
    """A value whose encoder always fails."""

    def serialize(self) -> bytes:
        raise SerializationError("encoder failed")

    def hash_tree_root(self, context):
        raise NotImplementedError


class TestPacking:
    """Tests for chunk packing."""

    def test_single_boolean(self):
        result = pack([Boolean(True)])
        expected = bytearray(32)
        expected[0] = 1
        assert result == bytes(expected)

    def test_several_booleans(self):
        result = pack([Boolean(True), Boolean(False), Boolean(False), Boolean(True)])
        expected = bytearray(32)
        expected[0] = 1
        expected[3] = 1
        assert result == bytes(expected)

    def test_multiple_full_chunks(self):
        data = Uint256(int.from_bytes(b'\x01' * 32, 'little'))
        assert pack([data, data, data]) == b'\x01' * 96

    def test_empty(self):
        assert pack([]) == b''

    def test_little_endian(self):
        assert pack([Uint16(0x0102)])[:2] == b'\x02\x01'

    def test_serialization_failure_propagates(self):
        with pytest.raises(SerializationError, match="encoder failed"):
            pack([Uint8(1), FailingValue()])

    def test_pack_bytes_pads_to_chunk(self):
        assert pack_bytes(b'\x01') == b'\x01' + bytes(31)
        assert len(pack_bytes(b'\x00' * 33)) == 64

    def test_pack_bytes_bytearray_in_place(self):
        buffer = bytearray(b'\x07' * 5)
        result = pack_bytes(buffer)
        assert result is buffer
        assert len(buffer) == 32

    def test_pack_bytes_idempotent(self):
        once = pack_bytes(b'\xff' * 45)
        assert pack_bytes(once) == once

    def test_pack_bits_lsb_first(self):
        result = pack_bits([True, False, False, False, False, False, False, False, True])
        assert result[:2] == b'\x01\x01'
        assert len(result) == 32


class TestMerkleize:
    """Tests for merkleize() and the virtual-padding algorithm."""

    def test_empty_is_zero_node(self, context):
        assert merkleize(b'', None, context) == Node()

    def test_single_chunk_is_its_own_root(self, context):
        chunks = pack([Boolean(True)])
        expected = bytearray(32)
        expected[0] = 1
        assert merkleize(chunks, None, context) == Node(bytes(expected))

    def test_two_zero_chunks(self, context):
        root = merkleize_chunks_with_virtual_padding(bytes(64), LeafCount(2), context)
        assert root == Node.from_hex(
            "f5a5fd42d16a20302798ef6ed309979b43003d2320d9f0e8ea9831a92759fb4b"
        )

    def test_reference_vectors(self):
        vectors = [
            (bytes(2 * 32), 2,
             "f5a5fd42d16a20302798ef6ed309979b43003d2320d9f0e8ea9831a92759fb4b"),
            (b'\x01' * (2 * 32), 2,
             "7c8975e1e60a5c8337f28edf8c33c3b180360b7279644a9bc1af3c51e6220bf5"),
            (bytes(32), 4,
             "db56114e00fdd4c1f85c892bf35ac9a89289aaecb1ebd0a96cde606a748b5d71"),
            (b'\x01' * 32, 4,
             "29797eded0e83376b70f2bf034cc0811ae7f1414653b1d720dfd18f74cf13309"),
            (b'\x02' * 32, 8,
             "fa4cf775712aa8a2fe5dcb5a517d19b2e9effcf58ff311b9fd8e4a7d308e6d00"),
            (b'\x01' * (5 * 32), 8,
             "0ae67e34cba4ad2bbfea5dc39e6679b444021522d861fab00f05063c54341289"),
        ]
        for chunks, leaves, expected in vectors:
            assert merkleize_chunks_reference(chunks, LeafCount(leaves)) == Node.from_hex(expected)

    def test_virtual_padding_vectors(self, context):
        vectors = [
            (3, 4, "65aa94f2b59e517abd400cab655f42821374e433e41b8fe599f6bb15484adcec"),
            (5, 8, "0ae67e34cba4ad2bbfea5dc39e6679b444021522d861fab00f05063c54341289"),
            (6, 8, "0ef7df63c204ef203d76145627b8083c49aa7c55ebdee2967556f55a4f65a238"),
        ]
        for chunk_count, leaves, expected in vectors:
            chunks = b'\x01' * (chunk_count * BYTES_PER_CHUNK)
            root = merkleize_chunks_with_virtual_padding(chunks, LeafCount(leaves), context)
            assert root == Node.from_hex(expected)

    def test_many_virtual_nodes(self, context):
        chunks = b'\x01' * (5 * BYTES_PER_CHUNK)
        root = merkleize_chunks_with_virtual_padding(chunks, LeafCount(2 ** 10), context)
        assert root == Node.from_hex(
            "2647cb9e26bd83eeb0982814b2ac4d6cc4a65d0d98637f1a73a4c06d3db0e6ce"
        )

        chunks = b'\x01' * (70 * BYTES_PER_CHUNK)
        root = merkleize_chunks_with_virtual_padding(chunks, LeafCount(2 ** 63), context)
        assert root == Node.from_hex(
            "9317695d95b5a3b46e976b5a9cbfcfccb600accaddeda9ac867cc9669b862979"
        )

    def test_empty_with_limit_is_zero_subtree(self, context):
        for limit in (1, 2, 64, 1000):
            depth = LeafCount.for_chunks(limit).depth
            assert merkleize(b'', limit, context) == context.zero_node(depth)

    def test_limit_pads_tree(self, context):
        chunks = b'\x01' * 32
        assert merkleize(chunks, 4, context) == Node.from_hex(
            "29797eded0e83376b70f2bf034cc0811ae7f1414653b1d720dfd18f74cf13309"
        )

    def test_limit_exceeded(self, context):
        with pytest.raises(InputExceedsLimitError) as excinfo:
            merkleize(bytes(3 * 32), 2, context)
        assert excinfo.value.limit == 2

    def test_partial_chunk(self, context):
        with pytest.raises(PartialChunkError) as excinfo:
            merkleize(bytes(33), None, context)
        assert excinfo.value.length == 33

    def test_errors_are_value_errors(self, context):
        with pytest.raises(ValueError):
            merkleize(bytes(3 * 32), 1, context)

    def test_input_buffer_untouched(self, context):
        chunks = bytes(range(32)) * 3
        copy = bytes(chunks)
        merkleize(chunks, None, context)
        assert chunks == copy

    def test_accepts_bytearray(self, context):
        chunks = bytearray(b'\x01' * 96)
        assert merkleize(chunks, None, context) == merkleize(bytes(chunks), None, context)


class TestDecoration:
    """Tests for length and selector mixing."""

    def test_mix_in_length_formula(self, context):
        root = Node(b'\x11' * 32)
        length_chunk = (5).to_bytes(32, 'little')
        assert mix_in_length(root, 5, context) == Node(sha256(bytes(root) + length_chunk))

    def test_empty_list_root(self, context):
        # List[uint16, 1024] with no elements: 64 chunks of capacity
        root = mix_in_length(merkleize(b'', 64, context), 0, context)
        assert root == Node.from_hex(
            "c9eece3e14d3c3db45c38bbf69a4cb7464981e2506d8424a0ba450dad9b9af30"
        )

    def test_length_changes_root(self, context):
        root = Node(b'\x22' * 32)
        assert mix_in_length(root, 1, context) != mix_in_length(root, 2, context)

    def test_order_matters(self, context):
        root = Node(b'\x33' * 32)
        decoration = Uint256(7).hash_tree_root(context)
        assert mix_in_length(root, 7, context) != Node(sha256(bytes(decoration) + bytes(root)))

    def test_selector_uses_same_routine(self, context):
        root = Node(b'\x44' * 32)
        assert mix_in_selector(root, 3, context) == mix_in_length(root, 3, context)
        assert mix_in_selector(root, 1, context) != mix_in_selector(root, 2, context)

    def test_decoration_out_of_range(self, context):
        with pytest.raises(ValueError):
            mix_in_length(Node(), -1, context)
        with pytest.raises(ValueError):
            mix_in_length(Node(), 2 ** 256, context)


class TestBasicValues:
    """Tests for basic value encodings and roots."""

    def test_uint_roots_are_padded_encodings(self, context):
        assert Uint32(1).hash_tree_root(context) == Node(b'\x01' + bytes(31))
        assert Uint256(2 ** 256 - 1).hash_tree_root(context) == Node(b'\xff' * 32)

    def test_uint_range(self):
        with pytest.raises(ValueError):
            Uint8(256)
        with pytest.raises(ValueError):
            Uint16(-1)
        with pytest.raises(TypeError):
            Uint16(True)

    def test_boolean(self, context):
        assert Boolean(False).serialize() == b'\x00'
        assert Boolean(1).value is True
        with pytest.raises(ValueError):
            Boolean(2)
