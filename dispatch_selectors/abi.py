# Selectors from an ABI.
#
# Every function in an ABI is routed by the first 4 bytes of the keccak-256
# hash of its canonical signature, e.g.
#
#   {"type": "function", "name": "transfer",
#    "inputs": [{"name": "to", "type": "address"}, {"name": "value", "type": "uint"}]}
#
# is canonicalized as `transfer(address,uint256)` and hashed to `a9059cbb`.
# Entries may also be given in the human-readable form
# `function transfer(address to, uint value) returns (bool)`.

import json
import re
from typing import Any, Dict, Iterator, List, Union

from eth_abi.exceptions import ABITypeError, ParseError
from eth_abi.grammar import ABIType, TupleType, normalize, parse
from eth_utils.abi import collapse_if_tuple

from .shared import InvalidInterfaceEntry, keccak256

SELECTOR_SIZE = 8  # hex chars

IDENTIFIER = re.compile(r'^[A-Za-z_$][A-Za-z0-9_$]*$')
LEADING_WORD = re.compile(r'^([A-Za-z_$][A-Za-z0-9_$]*)(\s*)')
TUPLE_SUFFIX = re.compile(r'^((\[[0-9]*\])*)(.*)$', re.DOTALL)

# eth_abi parses any lowercase word as a base type
ELEMENTARY_BASES = frozenset(('address', 'bool', 'string', 'bytes', 'int', 'uint', 'fixed', 'ufixed'))

# words that may follow a parameter type in human-readable signatures
PARAM_MODIFIERS = frozenset(('indexed', 'memory', 'calldata', 'storage', 'payable'))

OTHER_FRAGMENT_KEYWORDS = frozenset(('event', 'error', 'constructor', 'fallback', 'receive', 'struct'))


def _basic_types(abi_type: ABIType) -> Iterator[ABIType]:
    if isinstance(abi_type, TupleType):
        for c in abi_type.components:
            yield from _basic_types(c)
    else:
        yield abi_type


def canonical_type(type_str: str) -> str:
    '''Validate an ABI type and expand its aliases, e.g. `(uint,byte)[2]` -> `(uint256,bytes1)[2]`'''
    try:
        abi_type = parse(normalize(type_str.strip()))
        abi_type.validate()
    except (ParseError, ABITypeError) as e:
        raise InvalidInterfaceEntry(f'Invalid type {type_str!r}: {e}') from e
    for t in _basic_types(abi_type):
        if t.base not in ELEMENTARY_BASES:
            raise InvalidInterfaceEntry(f'Unknown type {t.base!r} in {type_str!r}')
        if t.base == 'bytes' and t.sub == 0:
            raise InvalidInterfaceEntry(f'Zero sized bytes in {type_str!r}')
    return abi_type.to_type_str()


def _split_top_level(s: str) -> List[str]:
    '''Split a parameter list on commas that are not nested inside parentheses'''
    parts, depth, current = [], 0, ''
    for c in s:
        if c == '(':
            depth += 1
        elif c == ')':
            depth -= 1
            if depth < 0:
                raise InvalidInterfaceEntry(f'Unbalanced parentheses in {s!r}')
        if c == ',' and depth == 0:
            parts.append(current.strip())
            current = ''
        else:
            current += c
    if depth != 0:
        raise InvalidInterfaceEntry(f'Unbalanced parentheses in {s!r}')
    if current.strip() or parts:
        parts.append(current.strip())
    return parts


def _matching_paren(s: str, start: int) -> int:
    depth = 0
    for i in range(start, len(s)):
        if s[i] == '(':
            depth += 1
        elif s[i] == ')':
            depth -= 1
            if depth == 0:
                return i
    raise InvalidInterfaceEntry(f'Unbalanced parentheses in {s!r}')


def _type_from_string(param: str) -> str:
    '''Type of a human-readable parameter with its names and location words removed'''
    param = param.strip()
    if param.startswith('tuple('):
        param = param[len('tuple'):]

    if param.startswith('('):
        end = _matching_paren(param, 0)
        m = TUPLE_SUFFIX.match(param[end + 1:].strip())
        suffix, tail = m.group(1), m.group(3)
        components = [_type_from_string(p) for p in _split_top_level(param[1:end])]
        ptype = '(' + ','.join(components) + ')' + suffix
    else:
        if not param:
            raise InvalidInterfaceEntry('Empty parameter type')
        ptype, *rest = param.split(None, 1)
        tail = rest[0] if rest else ''

    words = [w for w in tail.split() if w not in PARAM_MODIFIERS]
    if len(words) > 1 or (words and not IDENTIFIER.match(words[0])):
        raise InvalidInterfaceEntry(f'Invalid parameter {param!r}')
    return ptype


def param_type_from_string(param: str) -> str:
    '''Canonical type of a human-readable parameter such as `(uint a, bool)[] calldata xs`'''
    return canonical_type(_type_from_string(param))


def param_type_from_dict(param: Dict[str, Any]) -> str:
    '''Canonical type of a JSON ABI parameter, expanding `tuple` components'''
    try:
        collapsed = collapse_if_tuple(param)
    except (KeyError, TypeError, AttributeError) as e:
        raise InvalidInterfaceEntry(f'Invalid parameter {param!r}') from e
    return canonical_type(collapsed)


def signature_from_string(entry: str) -> str:
    s = entry.strip()
    m = LEADING_WORD.match(s)
    if m and m.group(1) in OTHER_FRAGMENT_KEYWORDS:
        raise InvalidInterfaceEntry(f'Not a function fragment: {entry!r}')
    if m and m.group(1) == 'function' and m.group(2):
        s = s[len('function'):].strip()

    start = s.find('(')
    if start < 0:
        raise InvalidInterfaceEntry(f'Missing parameter list in {entry!r}')
    name = s[:start].strip()
    if not IDENTIFIER.match(name):
        raise InvalidInterfaceEntry(f'Invalid function name {name!r} in {entry!r}')

    end = _matching_paren(s, start)
    params = [param_type_from_string(p) for p in _split_top_level(s[start + 1:end])]

    # whatever follows the parameter list: visibility, mutability, returns (...)
    tail = s[end + 1:].strip()
    if tail and not re.match(r'^[A-Za-z]', tail):
        raise InvalidInterfaceEntry(f'Unexpected trailing {tail!r} in {entry!r}')
    return f'{name}({",".join(params)})'


def signature_from_dict(entry: Dict[str, Any]) -> str:
    name = entry.get('name')
    if not isinstance(name, str) or not IDENTIFIER.match(name):
        raise InvalidInterfaceEntry(f'Invalid function name {name!r}')
    inputs = entry.get('inputs') or []
    if not isinstance(inputs, list):
        raise InvalidInterfaceEntry(f'Invalid inputs for {name}: {inputs!r}')
    return f'{name}({",".join(param_type_from_dict(p) for p in inputs)})'


def function_signature(entry: Union[str, Dict[str, Any]]) -> str:
    '''Canonical function signature of an ABI entry, e.g. `foo(uint256,(address,bool)[])`'''
    if isinstance(entry, str):
        return signature_from_string(entry)
    if isinstance(entry, dict):
        return signature_from_dict(entry)
    raise InvalidInterfaceEntry(f'Unsupported ABI entry {entry!r}')


def selector_from_signature(signature: str) -> str:
    return keccak256(signature)[:SELECTOR_SIZE]


def is_function_entry(entry: Any) -> bool:
    if isinstance(entry, str):
        return True
    return isinstance(entry, dict) and entry.get('type') == 'function'


def selectors_from_abi(abi: List[Any]) -> List[str]:
    '''Selectors of the function entries of an ABI, in ABI order, duplicates kept'''
    return [selector_from_signature(function_signature(e)) for e in abi if is_function_entry(e)]


def signatures_from_abi(abi: List[Any]) -> Dict[str, str]:
    '''Mapping from canonical signature to selector'''
    return {sig: selector_from_signature(sig)
            for sig in (function_signature(e) for e in abi if is_function_entry(e))}


def load_abi(path: str) -> List[Any]:
    '''Load an ABI from a JSON file holding either the entry list or an object with an `abi` key'''
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, dict) and isinstance(data.get('abi'), list):
        data = data['abi']
    if not isinstance(data, list):
        raise InvalidInterfaceEntry(f'ABI in {path} must be a JSON array of entries')
    return data
