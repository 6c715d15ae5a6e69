import os
import tempfile
import unittest
from unittest import mock

import solcx
from semantic_version import Version

from dispatch_selectors.bytecode import selectors_from_code
from dispatch_selectors.compare import compare_contract
from dispatch_selectors.compiler import (ContractCompiler, compile_contract, next_lower_version,
                                         pragma_version_spec, solc_candidates)
from dispatch_selectors.shared import CompilationError

INSTALLABLE = [Version(v) for v in ('0.4.26', '0.5.17', '0.6.12', '0.7.6', '0.8.0', '0.8.19', '0.8.24')]

STORAGE_SOL = os.path.join(os.path.dirname(__file__), 'test_contracts', 'Storage.sol')

with open(STORAGE_SOL, 'r') as f:
    STORAGE_SOURCE = f.read()

COMPILED = {'<stdin>:Storage': {'abi': [], 'bin-runtime': '6080'}}


def installed_solc():
    versions = [v for v in solcx.get_installed_solc_versions() if v >= Version('0.5.0')]
    return str(max(versions)) if versions else None


SOLC_VERSION = installed_solc()


class TestPragma(unittest.TestCase):
    def test_pragma_version_spec(self):
        tests = [
            ('pragma solidity ^0.8.0;\n', '^0.8.0'),
            ('pragma solidity >=0.4.22 <0.9.0;\n', '>=0.4.22 <0.9.0'),
            ('  pragma solidity >= 0.6.0;\ncontract A {}\n', '>=0.6.0'),
            ('pragma solidity ^0.8.0;\npragma solidity >=0.8.4;\n', '>=0.8.4 ^0.8.0'),
            ('pragma experimental ABIEncoderV2;\ncontract A {}\n', None),
            ('contract A {}\n', None),
        ]
        for (source, expected) in tests:
            self.assertEqual(expected, pragma_version_spec(source), f'Failed for {source!r}')

    def test_solc_candidates(self):
        tests = [
            ('pragma solidity ^0.8.0;\n', ['0.8.0', '0.8.19', '0.8.24']),
            ('pragma solidity >=0.5.0 <0.7.0;\n', ['0.5.17', '0.6.12']),
            ('pragma solidity 0.4.26;\n', ['0.4.26']),
            ('pragma solidity ^0.9.0;\n', []),
            ('contract A {}\n', []),
        ]
        for (source, expected) in tests:
            self.assertEqual(expected, solc_candidates(source, INSTALLABLE), f'Failed for {source!r}')

    def test_next_lower_version(self):
        candidates = ['0.5.17', '0.7.6', '0.8.0', '0.8.19']
        self.assertEqual(('0.7.6', ['0.5.17']), next_lower_version('0.8.19', candidates))
        self.assertEqual(('0.8.0', []), next_lower_version('0.8.19', ['0.8.0', '0.8.19']))
        with self.assertRaises(CompilationError):
            next_lower_version('0.4.26', ['0.4.26'])


class TestContractCompiler(unittest.TestCase):
    def test_version_from_pragma(self):
        compiler = ContractCompiler(STORAGE_SOURCE, installable=INSTALLABLE, lazy=True)
        self.assertEqual('source', compiler.compile_type)
        self.assertEqual('0.8.24', compiler.exact_version)
        self.assertEqual('0.5.17', compiler.solc_candidates[0])

        with self.assertRaises(CompilationError):
            ContractCompiler('contract A {}\n', installable=INSTALLABLE, lazy=True)

    def test_unknown_contract(self):
        compiler = ContractCompiler(STORAGE_SOURCE, version='0.8.19', lazy=True)
        with self.assertRaises(CompilationError):
            compiler.abi('Storage')
        compiler.output = {'Storage': {'abi': [], 'bin-runtime': '00'}}
        self.assertEqual('00', compiler.runtime_bytecode())
        with self.assertRaises(CompilationError):
            compiler.abi('Missing')

    def test_retry_with_lower_version(self):
        cwd = os.getcwd()
        compiler = ContractCompiler(STORAGE_SOURCE, retry_num=1, installable=INSTALLABLE, lazy=True)
        with mock.patch('solcx.compile_source', side_effect=[RuntimeError('boom'), COMPILED]) as compile_source:
            compiler.compile()
        self.assertEqual('0.7.6', compiler.exact_version)
        self.assertEqual(['0.8.24', '0.7.6'], [c.kwargs['solc_version'] for c in compile_source.call_args_list])
        self.assertEqual(0, compiler.retry_num)
        self.assertEqual('6080', compiler.runtime_bytecode())
        self.assertEqual(cwd, os.getcwd())

    def test_retries_exhausted(self):
        cwd = os.getcwd()
        compiler = ContractCompiler(STORAGE_SOURCE, retry_num=1, installable=INSTALLABLE, lazy=True)
        with mock.patch('solcx.compile_source', side_effect=RuntimeError('boom')) as compile_source:
            with self.assertRaises(CompilationError) as ctx:
                compiler.compile()
        self.assertEqual(2, compile_source.call_count)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertEqual(cwd, os.getcwd())

    def test_compile_file(self):
        fd, path = tempfile.mkstemp(suffix='.sol')
        with os.fdopen(fd, 'w') as f:
            f.write(STORAGE_SOURCE)
        self.addCleanup(os.remove, path)

        cwd = os.getcwd()
        compiler = ContractCompiler(path, installable=INSTALLABLE, lazy=True)
        self.assertEqual('file', compiler.compile_type)
        self.assertEqual(os.path.dirname(os.path.abspath(path)), compiler.root_path)
        self.assertEqual(STORAGE_SOURCE, compiler.source)

        seen = {}

        def compile_files(files, **kwargs):
            seen['cwd'] = os.getcwd()
            seen['files'] = files
            return {f'{path}:Storage': {'abi': [], 'bin-runtime': '6080'}}

        with mock.patch('solcx.compile_files', side_effect=compile_files):
            compiler.compile()
        self.assertEqual([os.path.abspath(path)], seen['files'])
        self.assertEqual(os.path.realpath(compiler.root_path), os.path.realpath(seen['cwd']))
        self.assertEqual(['Storage'], compiler.contract_names)
        self.assertEqual(cwd, os.getcwd())

    @unittest.skipUnless(SOLC_VERSION, 'no solc >= 0.5.0 installed')
    def test_storage_selectors(self):
        abi, code = compile_contract(STORAGE_SOURCE, 'Storage', version=SOLC_VERSION)
        self.assertEqual({'2e64cec1', '6057361d'}, selectors_from_code(code))
        self.assertTrue(compare_contract(abi, code).ok)
