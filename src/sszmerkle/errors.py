"""
Merkleization errors.

All caller-visible failures derive from MerkleizationError, which is a
ValueError so existing `except ValueError` handlers keep working.
"""


class MerkleizationError(ValueError):
    """The value could not be merkleized."""


class SerializationError(MerkleizationError):
    """A value failed to produce its encoded bytes."""


class PartialChunkError(MerkleizationError):
    """A chunk buffer whose length is not a multiple of the chunk size."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"cannot merkleize a partial chunk of length {length}")


class InputExceedsLimitError(MerkleizationError):
    """More data than the declared maximum capacity allows."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"cannot merkleize data that exceeds the declared limit {limit}")
