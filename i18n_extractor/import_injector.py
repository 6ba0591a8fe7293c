#!/usr/bin/env python3
"""
查詢函數自動導入

檢查頂層的 import 宣告，若沒有任何一個從設定來源導入查詢函數，
則在檔案開頭（hashbang 與 'use client' 之類的指令之後）插入一次：

    import { i18n } from "i18n";

判斷時同時比對綁定的本地名稱與來源路徑，重複執行不會產生第二個 import。
"""

import json
import logging
from typing import Iterator, Optional

from tree_sitter import Node

from .classifier import NodeKind, classify_node
from .config import AutoImportOptions
from .syntax import SourceUnit, TextEdit, string_value

logger = logging.getLogger(__name__)


def _local_names(import_node: Node) -> Iterator[str]:
    """列出 import 宣告綁定的所有本地名稱"""
    for clause in import_node.named_children:
        if clause.type != 'import_clause':
            continue
        for child in clause.named_children:
            if child.type == 'identifier':
                yield child.text.decode('utf-8')
            elif child.type == 'namespace_import':
                for name in child.named_children:
                    if name.type == 'identifier':
                        yield name.text.decode('utf-8')
            elif child.type == 'named_imports':
                for specifier in child.named_children:
                    if specifier.type != 'import_specifier':
                        continue
                    bound = specifier.child_by_field_name('alias') or specifier.child_by_field_name('name')
                    if bound is not None:
                        yield bound.text.decode('utf-8')


def has_lookup_import(unit: SourceUnit, local_name: str, source: str) -> bool:
    """
    頂層是否已從 source 導入 local_name

    Args:
        unit: 原始碼單元
        local_name: 程式碼中呼叫的函數名稱
        source: 導入來源

    Returns:
        是否已存在
    """
    for node in unit.root.named_children:
        if classify_node(node) is not NodeKind.IMPORT_DECLARATION:
            continue
        source_node = node.child_by_field_name('source')
        if source_node is None or string_value(unit, source_node) != source:
            continue
        if local_name in _local_names(node):
            return True
    return False


def build_import(function_identity: str, auto_import: AutoImportOptions) -> str:
    """生成 import 宣告文字"""
    if auto_import.identity == function_identity:
        specifier = function_identity
    else:
        specifier = f"{auto_import.identity} as {function_identity}"
    return f"import {{ {specifier} }} from {json.dumps(auto_import.source, ensure_ascii=False)};"


def _is_directive(node: Node) -> bool:
    """'use strict' / 'use client' 之類的指令敘述"""
    return (
        node.type == 'expression_statement'
        and node.named_child_count == 1
        and node.named_children[0].type == 'string'
    )


def insertion_offset(unit: SourceUnit) -> int:
    """計算 import 插入位置：hashbang 與開頭指令之後"""
    offset = 0
    for node in unit.root.named_children:
        if node.type == 'comment':
            continue
        if node.type == 'hash_bang_line' or _is_directive(node):
            offset = node.end_byte
            continue
        break
    return offset


def inject_import(unit: SourceUnit, function_identity: str,
                  auto_import: Optional[AutoImportOptions]) -> Optional[TextEdit]:
    """
    產生插入 import 的編輯（不需要時回傳 None）

    Args:
        unit: 原始碼單元
        function_identity: 程式碼中使用的查詢函數名稱
        auto_import: 自動導入設定（None 表示停用）

    Returns:
        TextEdit 或 None
    """
    if auto_import is None:
        return None
    if classify_node(unit.root) is not NodeKind.PROGRAM:
        return None
    if has_lookup_import(unit, function_identity, auto_import.source):
        logger.debug(f"已存在 {function_identity} 的導入，略過")
        return None

    declaration = build_import(function_identity, auto_import)
    offset = insertion_offset(unit)
    text = f"{declaration}\n" if offset == 0 else f"\n{declaration}"
    return TextEdit(start=offset, end=offset, text=text)
