#!/usr/bin/env python3
"""
單一檔案轉換流程

parse → 檢查/插入 import → 改寫中文字面量 → 輸出程式碼

transform() 遇到解析或輸出失敗時回傳 None（該檔案略過、不寫入），
transform_unit() 則直接拋出例外，供需要錯誤細節的呼叫端使用。
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .classifier import LiteralClassifier, ScriptMatcher
from .config import TransformOptions
from .errors import ParseFailure, PrintFailure
from .import_injector import inject_import
from .rewriter import rewrite_unit
from .store import TranslationStore
from .syntax import SourceUnit, TextEdit, grammar_for, parse_code, print_code

logger = logging.getLogger(__name__)


@dataclass
class TranslationUnit:
    """單一檔案的轉換結果"""
    source: str                                     # 原始程式碼
    path: Optional[str] = None                      # 來源檔案
    unit: Optional[SourceUnit] = None               # 解析結果
    edits: List[TextEdit] = field(default_factory=list)
    output: Optional[str] = None                    # 改寫後的程式碼
    replacements: int = 0                           # 替換的字面量數量
    import_injected: bool = False

    @property
    def changed(self) -> bool:
        return self.output is not None and self.output != self.source


def transform_unit(
    code: str,
    options: Optional[TransformOptions] = None,
    store: Optional[TranslationStore] = None,
    path: Optional[str] = None,
) -> TranslationUnit:
    """
    轉換單一原始碼單元

    Args:
        code: 原始程式碼
        options: 轉換選項（None 使用預設值）
        store: 翻譯鍵儲存（None 時建立新的）
        path: 來源檔案路徑（決定解析語法，並用於錯誤訊息）

    Returns:
        TranslationUnit

    Raises:
        ParseFailure: 原始碼無法解析
        PrintFailure: 改寫結果無法輸出
    """
    options = options or TransformOptions()
    store = store if store is not None else TranslationStore()
    result = TranslationUnit(source=code, path=path)

    result.unit = parse_code(code, grammar_for(path), path)

    import_edit = inject_import(result.unit, options.function_identity, options.import_options)
    if import_edit is not None:
        result.edits.append(import_edit)
        result.import_injected = True

    # 先寫入暫存，輸出成功後才合併，失敗的檔案不會留下資料
    pending = TranslationStore()
    classifier = LiteralClassifier(ScriptMatcher(options.script_ranges))
    try:
        rewriter = rewrite_unit(result.unit, pending, options.function_identity, classifier)
    except ParseFailure as e:
        # 字串內容的跳脫序列無效
        e.path = e.path or path
        raise
    result.edits.extend(rewriter.edits)
    result.replacements = rewriter.replacements

    result.output = print_code(result.unit, result.edits)
    store.merge(pending)
    return result


def transform(
    code: str,
    options: Optional[TransformOptions] = None,
    store: Optional[TranslationStore] = None,
    path: Optional[str] = None,
) -> Optional[str]:
    """
    將程式碼中的中文字面量替換為查詢函數呼叫

    Args:
        code: 原始程式碼
        options: 轉換選項
        store: 批次共用的翻譯鍵儲存
        path: 來源檔案路徑

    Returns:
        改寫後的程式碼；解析或輸出失敗時回傳 None
    """
    try:
        return transform_unit(code, options, store, path).output
    except (ParseFailure, PrintFailure) as e:
        logger.warning(f"略過 {e}")
        return None
