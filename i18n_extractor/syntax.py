#!/usr/bin/env python3
"""
語法樹解析與輸出（tree-sitter 介面層）

功能：
1. 以 tree-sitter 的 TSX / TypeScript 語法解析原始碼（支援 JSX 與型別註解）
2. 提供節點走訪、欄位查詢、字串內容解碼等輔助函數
3. 以不重疊的位元組區段編輯（TextEdit）輸出改寫後的程式碼，
   未改動的區段逐位元組保留

語法樹本身不可變，改寫結果一律以編輯清單表示，最後一次拼接。
"""

import html
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from .errors import ParseFailure, PrintFailure

logger = logging.getLogger(__name__)


class Grammar(Enum):
    """解析語法"""
    TSX = "tsx"                 # TypeScript + JSX（預設，涵蓋 .js/.jsx/.tsx）
    TYPESCRIPT = "typescript"   # 純 TypeScript（.ts 檔案中的 <T>x 型別斷言）


# 不含 JSX 的副檔名，改用純 TypeScript 語法
TYPESCRIPT_ONLY_EXTENSIONS = {'.ts', '.mts', '.cts'}

_LANGUAGES: Dict[Grammar, Language] = {}


def get_language(grammar: Grammar) -> Language:
    """取得（並快取）tree-sitter 語言物件"""
    if grammar not in _LANGUAGES:
        if grammar is Grammar.TYPESCRIPT:
            _LANGUAGES[grammar] = Language(tree_sitter_typescript.language_typescript())
        else:
            _LANGUAGES[grammar] = Language(tree_sitter_typescript.language_tsx())
    return _LANGUAGES[grammar]


def grammar_for(path: Optional[str]) -> Grammar:
    """
    依檔名選擇語法

    Args:
        path: 檔案路徑（None 表示未知，使用 TSX 超集語法）

    Returns:
        Grammar
    """
    if path and PurePath(path).suffix.lower() in TYPESCRIPT_ONLY_EXTENSIONS:
        return Grammar.TYPESCRIPT
    return Grammar.TSX


@dataclass
class TextEdit:
    """位元組區段替換"""
    start: int      # 起始位元組（含）
    end: int        # 結束位元組（不含）
    text: str       # 替換內容


@dataclass
class SourceUnit:
    """解析後的單一原始碼單元"""
    source: bytes
    tree: Tree
    grammar: Grammar = Grammar.TSX
    path: Optional[str] = None

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text_of(self, node: Node) -> str:
        """節點對應的原始碼文字"""
        return self.slice(node.start_byte, node.end_byte)

    def slice(self, start: int, end: int) -> str:
        return self.source[start:end].decode('utf-8')


def _find_error(node: Node) -> Optional[Node]:
    """找出第一個 ERROR 或 MISSING 節點"""
    for current in walk(node):
        if current.type == 'ERROR' or current.is_missing:
            return current
    return None


def parse_code(text: str, grammar: Grammar = Grammar.TSX, path: Optional[str] = None) -> SourceUnit:
    """
    解析原始碼

    Args:
        text: 原始碼文字
        grammar: 解析語法
        path: 來源檔案路徑（僅用於錯誤訊息）

    Returns:
        SourceUnit

    Raises:
        ParseFailure: 原始碼含有語法錯誤
    """
    source = text.encode('utf-8')
    parser = Parser(get_language(grammar))
    tree = parser.parse(source)
    logger.debug(f"解析 {path or '<code>'}（{grammar.value}，{len(source)} bytes）")

    if tree.root_node.has_error:
        error_node = _find_error(tree.root_node) or tree.root_node
        row, column = error_node.start_point
        raise ParseFailure(
            f"無法以 {grammar.value} 語法解析",
            path=path,
            line=row + 1,
            column=column + 1,
        )

    return SourceUnit(source=source, tree=tree, grammar=grammar, path=path)


def apply_edits(source: bytes, edits: Sequence[TextEdit]) -> bytes:
    """
    將編輯套用到原始位元組

    Raises:
        PrintFailure: 編輯區段重疊或超出範圍
    """
    ordered = sorted(edits, key=lambda edit: (edit.start, edit.end))
    chunks: List[bytes] = []
    cursor = 0

    for edit in ordered:
        if edit.start < cursor or edit.end < edit.start or edit.end > len(source):
            raise PrintFailure(f"編輯區段重疊或無效: [{edit.start}, {edit.end})")
        chunks.append(source[cursor:edit.start])
        chunks.append(edit.text.encode('utf-8'))
        cursor = edit.end

    chunks.append(source[cursor:])
    return b''.join(chunks)


def print_code(unit: SourceUnit, edits: Sequence[TextEdit]) -> str:
    """
    輸出改寫後的程式碼

    輸出結果會以相同語法重新解析，確認沒有產生損壞的程式碼。

    Args:
        unit: 原始碼單元
        edits: 編輯清單

    Returns:
        改寫後的程式碼

    Raises:
        PrintFailure: 編輯無法套用，或輸出無法再解析
    """
    try:
        output = apply_edits(unit.source, edits)
    except PrintFailure as e:
        e.path = unit.path
        raise

    if edits:
        parser = Parser(get_language(unit.grammar))
        if parser.parse(output).root_node.has_error:
            raise PrintFailure("改寫後的程式碼無法重新解析", path=unit.path)

    return output.decode('utf-8')


# ==========================================
# 節點走訪
# ==========================================

def walk(node: Node) -> Iterator[Node]:
    """前序走訪（非遞迴，避免深層巢狀時超過遞迴上限）"""
    pending = [node]
    while pending:
        current = pending.pop()
        yield current
        pending.extend(reversed(current.children))


def same_node(a: Optional[Node], b: Optional[Node]) -> bool:
    if a is None or b is None:
        return False
    return (a.start_byte, a.end_byte, a.type) == (b.start_byte, b.end_byte, b.type)


def is_field(node: Node, field_name: str) -> bool:
    """節點是否位於父節點的指定欄位"""
    parent = node.parent
    if parent is None:
        return False
    return same_node(parent.child_by_field_name(field_name), node)


# ==========================================
# 字面量內容
# ==========================================

_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[0-7]{1,3}|\r\n|[\s\S])"
)

_SIMPLE_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'b': '\b',
    'f': '\f',
    'v': '\v',
}

_LINE_CONTINUATIONS = {'\n', '\r', '\r\n', '\u2028', '\u2029'}

MAX_CODE_POINT = 0x10FFFF


def _decode_escape(match: 're.Match') -> str:
    seq = match.group(1)
    if seq.startswith('u{'):
        code_point = int(seq[2:-1], 16)
        if code_point > MAX_CODE_POINT:
            raise ParseFailure(f"無效的 Unicode 跳脫序列: \\{seq}")
        return chr(code_point)
    if seq[0] == 'u' and len(seq) == 5:
        return chr(int(seq[1:], 16))
    if seq[0] == 'x' and len(seq) == 3:
        return chr(int(seq[1:], 16))
    if seq.isdigit():
        return chr(int(seq, 8))
    if seq in _LINE_CONTINUATIONS:
        return ''
    return _SIMPLE_ESCAPES.get(seq, seq)


def cook(raw: str) -> str:
    """
    解碼 JavaScript 字串跳脫序列

    Args:
        raw: 原始字串內容（不含引號）

    Returns:
        執行期的字串值

    Raises:
        ParseFailure: \\u{...} 超出 Unicode 範圍
    """
    if '\\' not in raw:
        return raw
    cooked = _ESCAPE_RE.sub(_decode_escape, raw)
    # 合併 \uD83D\uDE00 這類代理對
    return cooked.encode('utf-16', 'surrogatepass').decode('utf-16', 'replace')


def string_value(unit: SourceUnit, node: Node, jsx: bool = False) -> str:
    """
    取得 string 節點的值

    JSX 屬性字串不處理跳脫序列，只解碼 HTML 字元參照。
    """
    raw = unit.text_of(node)[1:-1]
    if jsx:
        return html.unescape(raw)
    return cook(raw)


def template_segments(unit: SourceUnit, node: Node) -> List[Tuple[int, int]]:
    """
    取得樣板字串的靜態片段區段

    片段為反引號與各個 ${...} 之間的位元組區段（可能為空），
    數量恆為插值數量 + 1。

    Returns:
        [(起始位元組, 結束位元組), ...]
    """
    segments = []
    cursor = node.start_byte + 1
    for child in node.named_children:
        if child.type == 'template_substitution':
            segments.append((cursor, child.start_byte))
            cursor = child.end_byte
    segments.append((cursor, node.end_byte - 1))
    return segments


def lookup_call(identity: str, key: str) -> str:
    """生成查詢函數呼叫，例如 i18n("zimianliang")"""
    return f"{identity}({json.dumps(key, ensure_ascii=False)})"
