#!/usr/bin/env python3
"""
i18n 字面量擷取工具

將 JavaScript / TypeScript / JSX 原始碼中的中文字面量替換為
i18n("pinyinkey") 查詢呼叫，並彙整翻譯表供匯出。
"""

__version__ = "1.0.0"

from .errors import ConfigurationError, ErrorType, ExtractorError, ParseFailure, PrintFailure
from .key_generator import generate_key
from .classifier import LiteralClassifier, NodeKind, ScriptMatcher, classify_node, normalize_text
from .store import KeyedEntry, TranslationStore
from .config import AutoImportOptions, ExportSheetOptions, TransformOptions, resolve_options
from .transformer import TranslationUnit, transform, transform_unit
from .exporter import export_store
from .batch import BatchReport, UnitResult, UnitStatus, collect_files, run

__all__ = [
    '__version__',
    'ConfigurationError',
    'ErrorType',
    'ExtractorError',
    'ParseFailure',
    'PrintFailure',
    'generate_key',
    'LiteralClassifier',
    'NodeKind',
    'ScriptMatcher',
    'classify_node',
    'normalize_text',
    'KeyedEntry',
    'TranslationStore',
    'AutoImportOptions',
    'ExportSheetOptions',
    'TransformOptions',
    'resolve_options',
    'TranslationUnit',
    'transform',
    'transform_unit',
    'export_store',
    'BatchReport',
    'UnitResult',
    'UnitStatus',
    'collect_files',
    'run',
]
