import logging
import os
import re
from functools import cache
from typing import Any, Dict, List, Optional, Tuple

import semantic_version
import solcx
from semantic_version import Version

from .shared import CompilationError

COMPILE_OUTPUTS = ['abi', 'bin-runtime']

PRAGMA_SOLIDITY = re.compile(r'^\s*pragma\s+solidity\s+([^;]+);', re.MULTILINE)


@cache
def installable_solc_versions() -> List[Version]:
    '''solc releases available for install, ascending'''
    return sorted(solcx.get_installable_solc_versions())


def pragma_version_spec(source: str) -> Optional[str]:
    '''Requirement of all `pragma solidity` directives of a source joined into one npm range, e.g. `>=0.5.0 <0.7.0`'''
    found = {re.sub(r'([\^>=<~]+)\s+', r'\1', m.strip()) for m in PRAGMA_SOLIDITY.findall(source)}
    if not found:
        logging.warning('No pragma directive found in source code')
        return None
    return ' '.join(sorted(found))


def solc_candidates(source: str, installable: Optional[List[Version]] = None) -> List[str]:
    '''Installable solc versions allowed by the pragmas of `source`, ascending'''
    spec = pragma_version_spec(source)
    if not spec:
        return []
    if installable is None:
        installable = installable_solc_versions()
    return [str(v) for v in semantic_version.NpmSpec(spec).filter(sorted(installable))]


def next_lower_version(current: str, candidates: List[str]) -> Tuple[str, List[str]]:
    '''
    Version to retry with after `current` failed, and the candidates left below it.
    The newest release of an older minor series is tried first, any older
    release otherwise.
    '''
    ver = Version(current)
    older = [c for c in candidates if Version(c) < ver]
    if not older:
        raise CompilationError(f'No next solc version available for {current}')
    series_start = Version(major=ver.major, minor=ver.minor, patch=0)
    chosen = ([c for c in older if Version(c) < series_start] or older)[-1]
    return chosen, [c for c in older if Version(c) < Version(chosen)]


class ContractCompiler():
    '''
    Compile a Solidity source (file path or source string) with solc and
    expose the ABI and runtime bytecode of its contracts.
    '''
    def __init__(self, contract_source_path: str, version=None, retry_num=None, solc_options=None, try_install_solc=False,
                 lazy=False, installable: Optional[List[Version]] = None):
        self.file_path = None
        self.root_path = None

        if '\n' in contract_source_path:
            self.source = contract_source_path
            self.compile_type = 'source'
        else:
            self.compile_type = 'file'
            self.file_path = os.path.abspath(contract_source_path)
            self.root_path = os.path.dirname(self.file_path)
            with open(contract_source_path, 'r') as f:
                self.source = f.read()

        self.solc_options = dict(solc_options or {})
        self.try_install_solc = try_install_solc
        self.retry_num = retry_num or 0
        self.solc_candidates = solc_candidates(self.source, installable) if version is None else [version]
        if not self.solc_candidates:
            raise CompilationError('No solc version satisfies the pragma directives of the source')
        self.exact_version: str = self.solc_candidates[-1]
        self.output: Dict[str, Dict[str, Any]] = {}

        if not lazy:
            self.compile()

    def compile(self):
        current_working_dir = os.getcwd()
        try:
            if self.try_install_solc:
                solcx.install_solc(self.exact_version)
            if self.root_path:
                os.chdir(self.root_path)

            compiler_options = dict(self.solc_options)
            compiler_options.update(output_values=COMPILE_OUTPUTS, solc_version=self.exact_version)
            if self.compile_type == 'file':
                out = solcx.compile_files([self.file_path], **compiler_options)
            else:
                out = solcx.compile_source(self.source, **compiler_options)
            self.output = {k.split(':')[-1]: v for k, v in out.items()}
        except Exception as e:
            if self.retry_num > 0:
                self.retry_num -= 1
                logging.warning(f'Compile failed with solc version {self.exact_version}, retrying: {e}')
                self.exact_version, self.solc_candidates = next_lower_version(self.exact_version, self.solc_candidates)
                self.compile()
            else:
                raise CompilationError(f'Compile failed with solc version {self.exact_version}, err msg: {e}') from e
        finally:
            os.chdir(current_working_dir)

    @property
    def contract_names(self) -> List[str]:
        return list(self.output.keys())

    def contract_output(self, contract_name: Optional[str] = None) -> Dict[str, Any]:
        '''Compile output of `contract_name`, defaults to the last contract of the source'''
        if not self.output:
            raise CompilationError('Nothing compiled')
        if contract_name is None:
            contract_name = self.contract_names[-1]
        out = self.output.get(contract_name)
        if out is None:
            raise CompilationError(f'Contract {contract_name} not found in compiled output, available: {self.contract_names}')
        return out

    def abi(self, contract_name: Optional[str] = None) -> List[Any]:
        return self.contract_output(contract_name).get('abi', [])

    def runtime_bytecode(self, contract_name: Optional[str] = None) -> str:
        return self.contract_output(contract_name).get('bin-runtime', '')


def compile_contract(source_or_file: str, contract_name: Optional[str] = None, version: Optional[str] = None,
                     try_install_solc=False, solc_options=None, retry_num=None) -> Tuple[List[Any], str]:
    '''Returns `(abi, runtime_bytecode)` of a contract compiled from source'''
    compiler = ContractCompiler(source_or_file, version=version, retry_num=retry_num,
                                solc_options=solc_options, try_install_solc=try_install_solc)
    return compiler.abi(contract_name), compiler.runtime_bytecode(contract_name)
