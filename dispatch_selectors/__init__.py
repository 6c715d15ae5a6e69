from .abi import function_signature, selectors_from_abi, signatures_from_abi
from .bytecode import jump_destinations, candidate_jump_table, selectors_from_instructions, selectors_from_code
from .compare import compare_contract, compare_selectors
from .disassembler import disassemble
from .fields import Instruction, SelectorDiff
from .shared import (SelectorError, InvalidInterfaceEntry, MalformedInstructionError,
                     BytecodeDecodeError, CompilationError)
