import binascii
from typing import List, Optional, Union

import pyevmasm

from .fields import Instruction
from .idiom_cfg import dispatch_idiom
from .shared import BytecodeDecodeError, strip_hex_prefix


def normalize_code(code: Union[str, bytes, bytearray]) -> bytes:
    '''Accept raw bytes or a hex string (optionally `0x` prefixed) and return bytes'''
    if isinstance(code, (bytes, bytearray)):
        return bytes(code)
    hex_code = strip_hex_prefix(code)
    if len(hex_code) % 2:
        raise BytecodeDecodeError(f'Odd length hex bytecode ({len(hex_code)} chars)')
    try:
        return binascii.unhexlify(hex_code)
    except (binascii.Error, ValueError) as e:
        raise BytecodeDecodeError(f'Invalid hex bytecode: {e}') from e


def to_instruction(ins: pyevmasm.Instruction) -> Instruction:
    '''Convert a pyevmasm instruction, PUSH0 carries no immediate so it is not a push here'''
    name = ins.name
    is_push = name.startswith('PUSH') and ins.has_operand
    push_value = None
    if is_push:
        push_value = format(ins.operand, f'0{ins.operand_size * 2}x')
    return Instruction(offset=ins.pc,
                       mnemonic=name,
                       is_jump_dest=name == dispatch_idiom.jump_dest,
                       is_push=is_push,
                       push_value=push_value)


def disassemble(code: Union[str, bytes, bytearray], fork: Optional[str] = None) -> List[Instruction]:
    '''
    Decode bytecode into a list of `Instruction`.

    Opcodes are named after the `fork` instruction table, pyevmasm's default
    (istanbul) when none is given. Opcodes the fork does not define decode as
    `INVALID`, so `5f` (PUSH0 from shanghai on) is an `INVALID` non-push there.
    A push whose immediate runs past the end of the code terminates the stream.
    '''
    raw = normalize_code(code)
    kwargs = {'fork': fork} if fork else {}
    try:
        return [to_instruction(ins) for ins in pyevmasm.disassemble_all(raw, pc=0, **kwargs)]
    except KeyError as e:
        raise BytecodeDecodeError(f'Unknown EVM fork {fork!r}') from e


def format_instruction(ins: Instruction) -> str:
    if ins.is_push:
        return f'{ins.offset:04x}  {ins.mnemonic} 0x{ins.push_value}'
    return f'{ins.offset:04x}  {ins.mnemonic}'


def decode_and_print(code: Union[str, bytes, bytearray], fork: Optional[str] = None):
    for ins in disassemble(code, fork):
        print(format_instruction(ins))
