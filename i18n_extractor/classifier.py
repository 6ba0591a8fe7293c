#!/usr/bin/env python3
"""
可翻譯位置判定

1. NodeKind: 改寫相關的節點類型（封閉列舉）
2. ScriptMatcher: 判斷文字是否含有中文字元（Unicode 區段可設定）
3. LiteralClassifier: 判斷節點是否為可改寫的候選位置
   - 型別層級的字面量（只存在於型別系統中）一律排除
   - 語法上必須是字面量的位置（模組路徑、enum 成員名稱）一律排除
"""

import re
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple, Union

from tree_sitter import Node

from .errors import ConfigurationError
from .syntax import is_field

ScriptRange = Tuple[int, int]

# 中日韓統一表意文字 + 擴充 A 區 + 相容表意文字
EXTENDED_RANGES: Tuple[ScriptRange, ...] = (
    (0x3400, 0x4DBF),
    (0x4E00, 0x9FFF),
    (0xF900, 0xFAFF),
)

# 嚴格版本：只限基本區常用字
BASIC_RANGES: Tuple[ScriptRange, ...] = (
    (0x4E00, 0x9FA5),
)

SCRIPT_RANGE_PRESETS = {
    'extended': EXTENDED_RANGES,
    'basic': BASIC_RANGES,
}

_WHITESPACE_RE = re.compile(r'\s+')


class NodeKind(Enum):
    """改寫相關的節點類型"""
    LITERAL = "literal"                         # 一般字串字面量
    KEYED_FIELD = "keyed_field"                 # 物件屬性鍵
    TEMPLATE = "template"                       # 樣板字串
    ATTRIBUTE = "attribute"                     # JSX 屬性值
    TEXT_CONTENT = "text_content"               # JSX 標籤之間的文字
    IMPORT_DECLARATION = "import_declaration"
    PROGRAM = "program"
    OTHER = "other"


# 父節點為以下類型時，字面量只存在於型別系統
TYPE_LEVEL_PARENTS = {
    'literal_type',
    'property_signature',
    'method_signature',
    'abstract_method_signature',
}

# 語法上必須保持字面量的位置（父節點類型 → 欄位名稱，None 表示任何子節點）
FIXED_LITERAL_POSITIONS = {
    'import_statement': 'source',
    'export_statement': 'source',
    'import_require_clause': 'source',
    'module': 'name',
    'enum_body': None,
    'enum_assignment': 'name',
    'import_specifier': None,
    'export_specifier': None,
    'namespace_export': None,
}

OBJECT_KEY_PARENTS = {'pair', 'pair_pattern'}
CLASS_MEMBER_PARENTS = {'method_definition', 'public_field_definition'}
SHORTHAND_KEYS = {'shorthand_property_identifier', 'shorthand_property_identifier_pattern'}
# 只存在於型別宣告的類別成員
AMBIENT_MEMBER_MODIFIERS = {'abstract', 'declare'}
TEXT_RUN_TYPES = {'jsx_text', 'html_character_reference'}


def normalize_text(text: str) -> str:
    """
    正規化候選文字：去除前後空白，並移除所有內部空白

    '測 試' 與 '測試' 會得到相同結果。
    """
    return _WHITESPACE_RE.sub('', text.strip())


def parse_script_ranges(value: Union[str, Iterable, None]) -> Tuple[ScriptRange, ...]:
    """
    解析字元區段設定

    Args:
        value: 預設名稱（'extended' / 'basic'）、'4E00-9FFF' 形式的字串列表、
               或 (起, 迄) 整數對列表

    Returns:
        字元區段 tuple

    Raises:
        ConfigurationError: 格式無效
    """
    if value is None:
        return EXTENDED_RANGES

    if isinstance(value, str):
        if value in SCRIPT_RANGE_PRESETS:
            return SCRIPT_RANGE_PRESETS[value]
        value = [part for part in value.split(',') if part.strip()]

    ranges = []
    for item in value:
        try:
            if isinstance(item, str):
                low, _, high = item.strip().partition('-')
                pair = (int(low, 16), int(high or low, 16))
            else:
                low, high = item
                pair = (int(low), int(high))
        except (TypeError, ValueError):
            raise ConfigurationError(f"無效的字元區段: {item!r}")

        if pair[0] > pair[1]:
            raise ConfigurationError(f"字元區段起點大於終點: {item!r}")
        ranges.append(pair)

    if not ranges:
        raise ConfigurationError("字元區段不可為空")
    return tuple(ranges)


class ScriptMatcher:
    """中文字元偵測"""

    def __init__(self, ranges: Sequence[ScriptRange] = EXTENDED_RANGES):
        self.ranges = tuple(ranges)
        char_class = ''.join(
            f"\\U{low:08x}-\\U{high:08x}" for low, high in self.ranges
        )
        self.pattern = re.compile(f"[{char_class}]")

    def matches(self, text: str) -> bool:
        """文字是否至少包含一個指定區段內的字元"""
        return bool(self.pattern.search(text))


def classify_node(node: Node) -> NodeKind:
    """將 tree-sitter 節點對應到改寫類型"""
    node_type = node.type

    if node_type == 'program':
        return NodeKind.PROGRAM
    if node_type == 'import_statement':
        return NodeKind.IMPORT_DECLARATION
    if node_type == 'template_string':
        return NodeKind.TEMPLATE
    if node_type in TEXT_RUN_TYPES:
        return NodeKind.TEXT_CONTENT
    if is_key_position(node):
        return NodeKind.KEYED_FIELD
    if node_type == 'string':
        parent = node.parent
        if parent is not None and parent.type == 'jsx_attribute':
            return NodeKind.ATTRIBUTE
        return NodeKind.LITERAL
    return NodeKind.OTHER


def is_key_position(node: Node) -> bool:
    """節點是否為物件屬性鍵（或類別成員的字串名稱）"""
    parent = node.parent
    if parent is None:
        return False

    if node.type in SHORTHAND_KEYS:
        return True
    if node.type in ('string', 'property_identifier') and parent.type in OBJECT_KEY_PARENTS:
        return is_field(node, 'key')
    if node.type == 'string' and parent.type in CLASS_MEMBER_PARENTS:
        return is_field(node, 'name')
    return False


class LiteralClassifier:
    """可改寫位置判定器"""

    def __init__(self, matcher: Optional[ScriptMatcher] = None):
        self.matcher = matcher or ScriptMatcher()

    @staticmethod
    def is_type_level(node: Node) -> bool:
        """字面量是否位於型別層級（檢查直接父節點）"""
        parent = node.parent
        if parent is None:
            return False
        if parent.type in TYPE_LEVEL_PARENTS:
            return True
        # abstract '中文': string; / declare '中文': string;
        return (
            parent.type in CLASS_MEMBER_PARENTS
            and is_field(node, 'name')
            and any(child.type in AMBIENT_MEMBER_MODIFIERS for child in parent.children)
        )

    @staticmethod
    def is_fixed_position(node: Node) -> bool:
        """字面量是否位於語法上不可替換為運算式的位置"""
        parent = node.parent
        if parent is None or parent.type not in FIXED_LITERAL_POSITIONS:
            return False
        field_name = FIXED_LITERAL_POSITIONS[parent.type]
        return field_name is None or is_field(node, field_name)

    def is_eligible(self, node: Node, text: str) -> bool:
        """
        判斷節點文字是否為改寫候選

        Args:
            node: tree-sitter 節點
            text: 節點的文字內容（已解碼）

        Returns:
            是否需要改寫
        """
        if self.is_type_level(node) or self.is_fixed_position(node):
            return False
        return self.matcher.matches(text)
