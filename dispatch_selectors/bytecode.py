"""
Selectors a contract actually dispatches on.

solc routes an incoming call by comparing the selector left on the stack with
each known selector and jumping to the handler on a match:

    0040    80  DUP1
    0041    63  PUSH4 0x095ea7b3
    0046    14  EQ
    0047    61  PUSH2 0x02af
    004A    57  JUMPI

Binary search dispatchers emitted for large contracts use `LT`/`GT` in place of
`EQ`. A match only counts when the pushed target is a real `JUMPDEST`, which
filters out comparisons against constants that merely look like selectors.
"""
from typing import Callable, Dict, Optional, Sequence, Set, Union

from .disassembler import disassemble
from .fields import Instruction
from .idiom_cfg import dispatch_idiom, offsets
from .shared import MalformedInstructionError, get_by_index

Log = Optional[Callable[[str], None]]


def _push_value(ins: Optional[Instruction]) -> Optional[str]:
    '''Pushed literal of `ins`, None if `ins` is missing or not a push'''
    if ins is None or not ins.is_push:
        return None
    if not ins.push_value:
        raise MalformedInstructionError(f'Push instruction {ins.mnemonic} at {ins.offset} has no value')
    return ins.push_value


def _mnemonic(ins: Optional[Instruction]) -> Optional[str]:
    return ins.mnemonic if ins is not None else None


def jump_destinations(instructions: Sequence[Instruction]) -> Dict[int, Instruction]:
    '''Offset to instruction for every valid jump destination'''
    return {ins.offset: ins for ins in instructions if ins.is_jump_dest}


def match_dispatch(instructions: Sequence[Instruction], i: int):
    '''
    Try to match the dispatch idiom ending with the JUMPI at position `i`.
    Returns `(selector, target)` or None.
    '''
    if i < offsets.dup or _mnemonic(get_by_index(instructions, i)) != dispatch_idiom.jump:
        return None

    target_op = get_by_index(instructions, i - offsets.target)
    if _push_value(target_op) is None:
        return None
    dest = target_op.push_int

    if _mnemonic(get_by_index(instructions, i - offsets.compare)) not in dispatch_idiom.compare:
        return None

    sig_op = get_by_index(instructions, i - offsets.selector)
    if _mnemonic(sig_op) != dispatch_idiom.selector:
        return None
    sig = _push_value(sig_op)
    if sig is None:
        return None

    if _mnemonic(get_by_index(instructions, i - offsets.dup)) != dispatch_idiom.dup:
        return None

    return sig.lower(), dest


def _scan(instructions: Sequence[Instruction], log: Log = None):
    dests: Dict[int, Instruction] = {}
    jumps: Dict[str, int] = {}

    for i, ins in enumerate(instructions):
        if ins.is_jump_dest:
            dests[ins.offset] = ins
            continue

        matched = match_dispatch(instructions, i)
        if matched is None:
            continue

        sig, dest = matched
        if log:
            log(f'{ins.offset}  \t{ins.mnemonic}\t{dest}\t{sig}')
        # a selector dispatched twice keeps the last target
        jumps[sig] = dest

    return dests, jumps


def candidate_jump_table(instructions: Sequence[Instruction], log: Log = None) -> Dict[str, int]:
    '''Selector to claimed jump target for every recognized dispatch, before reachability filtering'''
    _, jumps = _scan(instructions, log)
    return jumps


def selectors_from_instructions(instructions: Sequence[Instruction], log: Log = None) -> Set[str]:
    '''
    Selectors recognized by the dispatch idiom whose jump target is a valid
    jump destination of the same program.

    `log` receives one trace line per match plus summaries of destinations,
    candidates and results. It has no effect on the return value.
    '''
    dests, jumps = _scan(instructions, log)
    local = {sig for sig, dest in jumps.items() if dest in dests}

    if log:
        log(f'dests {sorted(dests)}')
        log(f'jumps {sorted(jumps.items())}')
        log(f'local {sorted(local)}')
    return local


def selectors_from_code(code: Union[str, bytes, bytearray], log: Log = None, fork: Optional[str] = None) -> Set[str]:
    '''Disassemble runtime bytecode and return its dispatched selectors'''
    return selectors_from_instructions(disassemble(code, fork), log)
