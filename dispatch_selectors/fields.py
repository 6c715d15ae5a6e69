import re
import string
from dataclasses import dataclass, field
from typing import List, Optional

from .shared import MalformedInstructionError

HEX_DIGITS = frozenset(string.hexdigits)
PUSH_WIDTH = re.compile(r'^PUSH([0-9]+)$')


@dataclass(frozen=True)
class Instruction:
    offset:       int
    mnemonic:     str
    is_jump_dest: bool = False
    is_push:      bool = False
    push_value:   Optional[str] = None  # hex without 0x, present iff is_push

    def __post_init__(self):
        if self.offset < 0:
            raise MalformedInstructionError(f'Negative offset {self.offset} for {self.mnemonic}')
        if self.is_push and not self.push_value:
            raise MalformedInstructionError(f'Push instruction {self.mnemonic} at {self.offset} has no value')
        if not self.is_push and self.push_value is not None:
            raise MalformedInstructionError(f'Non push instruction {self.mnemonic} at {self.offset} carries a value')
        if self.push_value is not None and not set(self.push_value) <= HEX_DIGITS:
            raise MalformedInstructionError(f'Invalid push value {self.push_value!r} at {self.offset}')
        width = PUSH_WIDTH.match(self.mnemonic)
        if self.is_push and width and len(self.push_value) != 2 * int(width.group(1)):
            raise MalformedInstructionError(f'{self.mnemonic} at {self.offset} needs {width.group(1)} bytes, got {self.push_value!r}')

    @property
    def push_int(self) -> Optional[int]:
        return int(self.push_value, 16) if self.push_value else None


@dataclass
class SelectorDiff:
    abi_selectors:      List[str] = field(default_factory=list)
    code_selectors:     List[str] = field(default_factory=list)
    missing_in_bytecode: List[str] = field(default_factory=list)  # in ABI, not dispatched
    extra_in_bytecode:  List[str] = field(default_factory=list)   # dispatched, not in ABI
    common:             List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.missing_in_bytecode or self.extra_in_bytecode)

    def as_dict(self) -> dict:
        return dict(abi_selectors=self.abi_selectors,
                    code_selectors=self.code_selectors,
                    missing_in_bytecode=self.missing_in_bytecode,
                    extra_in_bytecode=self.extra_in_bytecode,
                    common=self.common,
                    ok=self.ok)
