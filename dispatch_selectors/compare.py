from typing import Any, Iterable, List, Union

from .abi import selectors_from_abi
from .bytecode import Log, selectors_from_code
from .fields import SelectorDiff
from .shared import normalize_selector


def compare_selectors(abi_selectors: Iterable[str], code_selectors: Iterable[str]) -> SelectorDiff:
    abi_set = {normalize_selector(s) for s in abi_selectors}
    code_set = {normalize_selector(s) for s in code_selectors}
    return SelectorDiff(abi_selectors=sorted(abi_set),
                        code_selectors=sorted(code_set),
                        missing_in_bytecode=sorted(abi_set - code_set),
                        extra_in_bytecode=sorted(code_set - abi_set),
                        common=sorted(abi_set & code_set))


def compare_contract(abi: List[Any], code: Union[str, bytes, bytearray], log: Log = None) -> SelectorDiff:
    '''Run both extractors over one contract and diff the results'''
    return compare_selectors(selectors_from_abi(abi), selectors_from_code(code, log))
