from typing import Sequence, Tuple, Union

from Crypto.Hash import keccak

HEX_PREFIX = '0x'


class SelectorError(ValueError):
    pass


class InvalidInterfaceEntry(SelectorError):
    pass


class MalformedInstructionError(SelectorError):
    pass


class BytecodeDecodeError(SelectorError):
    pass


class CompilationError(SelectorError):
    pass


def keccak256(s: str) -> str:
    k = keccak.new(digest_bits=256)
    k.update(s.encode())
    return k.hexdigest()


def strip_hex_prefix(s: str) -> str:
    s = s.strip()
    if s[:2].lower() == HEX_PREFIX:
        return s[2:]
    return s


def normalize_selector(s: str) -> str:
    '''Lowercase a selector and drop any `0x` prefix'''
    return strip_hex_prefix(s).lower()


def get_by_index(lst: Union[Sequence, Tuple], idx: int):
    '''Get by index from a sequence, returns None if the index is out of range.
    Negative indexes are treated as out of range, they never wrap around.'''
    if 0 <= idx < len(lst):
        return lst[idx]
    return None

