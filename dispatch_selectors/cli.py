#!/usr/bin/env python3
import argparse
import json
import logging
import os
import sys

from . import disassembler
from .abi import load_abi, selectors_from_abi, signatures_from_abi
from .bytecode import selectors_from_code
from .compare import compare_selectors
from .compiler import compile_contract
from .shared import SelectorError

MAX_PREVIEW = 20

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_MISMATCH = 2


def read_code(data_or_path: str) -> str:
    '''Bytecode given inline, or the content of a file holding it'''
    if os.path.isfile(data_or_path):
        with open(data_or_path, 'r') as f:
            return f.read().strip()
    return data_or_path


def preview(selectors) -> str:
    shown = ', '.join(selectors[:MAX_PREVIEW])
    return shown + (' ...' if len(selectors) > MAX_PREVIEW else '')


def cmd_decode(args) -> int:
    disassembler.decode_and_print(read_code(args.data), fork=args.fork)
    return EXIT_OK


def cmd_abi(args) -> int:
    sigs = signatures_from_abi(load_abi(args.path))
    if args.json:
        print(json.dumps(sigs, indent=2))
    else:
        for sig, selector in sigs.items():
            print(f'{selector}  {sig}')
    return EXIT_OK


def cmd_code(args) -> int:
    selectors = selectors_from_code(read_code(args.data), log=logging.debug, fork=args.fork)
    if args.json:
        print(json.dumps(sorted(selectors)))
    else:
        for selector in sorted(selectors):
            print(selector)
    return EXIT_OK


def cmd_compare(args) -> int:
    if args.source:
        abi, code = compile_contract(args.source, contract_name=args.contract,
                                     version=args.solc_version, try_install_solc=args.install_solc)
    else:
        abi, code = None, read_code(args.bin)
    if args.abi:
        abi = load_abi(args.abi)
    if abi is None:
        raise SelectorError('An ABI is required, pass --abi or --source')

    diff = compare_selectors(selectors_from_abi(abi), selectors_from_code(code, log=logging.debug, fork=args.fork))

    if args.json:
        print(json.dumps(diff.as_dict(), indent=2))
    else:
        print(f'ABI selectors:      {len(diff.abi_selectors)}')
        print(f'Bytecode selectors: {len(diff.code_selectors)}')
        if diff.missing_in_bytecode:
            print(f'Missing in bytecode ({len(diff.missing_in_bytecode)}): {preview(diff.missing_in_bytecode)}')
        if diff.extra_in_bytecode:
            print(f'Extra in bytecode ({len(diff.extra_in_bytecode)}): {preview(diff.extra_in_bytecode)}')
        if diff.ok:
            print('ABI and bytecode dispatch agree')
    return EXIT_OK if diff.ok else EXIT_MISMATCH


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Extract dispatched function selectors from EVM bytecode and compare them with an ABI.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Print the selector matching trace')
    parser.add_argument('--fork', default=None, help='EVM fork used to decode opcodes (pyevmasm fork name)')
    subparsers = parser.add_subparsers(dest='command', help='Subcommands')

    decode_parser = subparsers.add_parser('decode_binary', aliases=['dp'], help='Decode binary data')
    decode_parser.add_argument('data', type=str, help='Hex bytecode or a file holding it')

    abi_parser = subparsers.add_parser('abi', help='Selectors of the functions in an ABI JSON file')
    abi_parser.add_argument('path', type=str, help='ABI JSON file')
    abi_parser.add_argument('--json', action='store_true', help='Emit JSON')

    code_parser = subparsers.add_parser('code', help='Selectors dispatched by runtime bytecode')
    code_parser.add_argument('data', type=str, help='Hex runtime bytecode or a file holding it')
    code_parser.add_argument('--json', action='store_true', help='Emit JSON')

    compare_parser = subparsers.add_parser('compare', help='Compare ABI selectors with bytecode dispatch')
    compare_parser.add_argument('--abi', type=str, help='ABI JSON file, defaults to the compiled ABI with --source')
    target = compare_parser.add_mutually_exclusive_group(required=True)
    target.add_argument('--bin', type=str, help='Hex runtime bytecode or a file holding it')
    target.add_argument('--source', type=str, help='Solidity source file to compile')
    compare_parser.add_argument('--contract', type=str, help='Contract name in --source, defaults to the last one')
    compare_parser.add_argument('--solc-version', type=str, help='solc version, detected from pragma by default')
    compare_parser.add_argument('--install-solc', action='store_true', help='Install the solc version if missing')
    compare_parser.add_argument('--json', action='store_true', help='Emit JSON')
    return parser


COMMANDS = {
    'decode_binary': cmd_decode,
    'dp': cmd_decode,
    'abi': cmd_abi,
    'code': cmd_code,
    'compare': cmd_compare,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(message)s')

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return EXIT_OK

    try:
        return command(args)
    except (SelectorError, json.JSONDecodeError, OSError) as e:
        logging.error(e)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
