#!/usr/bin/env python3
"""
中文字面量收集與改寫

前序走訪整棵語法樹，依節點類型處理五種情況：
1. 一般字串字面量    '中文'            → i18n("zhongwen")
2. 物件屬性鍵        { '鍵名': 10 }    → { [i18n("jianming")]: 10 }
3. 樣板字串靜態片段  `共${n}個`        → `${i18n("gong")}${n}${i18n("ge")}`
4. JSX 屬性值        title="標題"      → title={i18n("biaoti")}
5. JSX 標籤間文字    <p>內容</p>       → <p>{i18n("neirong")}</p>

五種情況共用正規化、鍵生成與寫入 TranslationStore 的邏輯，只差在替換文字的拼接方式。
各替換區段互不重疊。
"""

import html
import logging
from typing import Callable, List, Optional, Set

from tree_sitter import Node

from .classifier import (
    SHORTHAND_KEYS,
    TEXT_RUN_TYPES,
    LiteralClassifier,
    NodeKind,
    classify_node,
    normalize_text,
)
from .key_generator import generate_key
from .store import TranslationStore
from .syntax import (
    SourceUnit,
    TextEdit,
    cook,
    lookup_call,
    string_value,
    template_segments,
)

logger = logging.getLogger(__name__)


class LiteralRewriter:
    """中文字面量改寫器"""

    def __init__(
        self,
        unit: SourceUnit,
        store: TranslationStore,
        function_identity: str = 'i18n',
        classifier: Optional[LiteralClassifier] = None,
        key_fn: Callable[[str], str] = generate_key,
    ):
        """
        初始化

        Args:
            unit: 已解析的原始碼單元
            store: 整個批次共用的翻譯鍵儲存
            function_identity: 查詢函數名稱
            classifier: 可改寫位置判定器
            key_fn: 翻譯鍵生成函數
        """
        self.unit = unit
        self.store = store
        self.function_identity = function_identity
        self.classifier = classifier or LiteralClassifier()
        self.key_fn = key_fn
        self.edits: List[TextEdit] = []
        self.replacements = 0
        self._consumed: Set[int] = set()

    def rewrite(self) -> List[TextEdit]:
        """
        走訪並收集所有替換

        Returns:
            編輯清單
        """
        pending = [self.unit.root]
        while pending:
            node = pending.pop()
            if self._visit(node):
                pending.extend(reversed(node.children))
        return self.edits

    def _visit(self, node: Node) -> bool:
        """處理單一節點，回傳是否繼續走訪子節點"""
        kind = classify_node(node)

        if kind is NodeKind.LITERAL:
            self._rewrite_literal(node)
            return False
        elif kind is NodeKind.KEYED_FIELD:
            self._rewrite_keyed_field(node)
            return False
        elif kind is NodeKind.TEMPLATE:
            self._rewrite_template(node)
            return True
        elif kind is NodeKind.ATTRIBUTE:
            self._rewrite_attribute(node)
            return False
        elif kind is NodeKind.TEXT_CONTENT:
            self._rewrite_text_run(node)
            return False
        elif kind in (NodeKind.PROGRAM, NodeKind.IMPORT_DECLARATION, NodeKind.OTHER):
            return True
        raise ValueError(f"未處理的節點類型: {kind}")

    # ==========================================
    # 共用邏輯
    # ==========================================

    def _register(self, text: str) -> str:
        """正規化文字、生成翻譯鍵並寫入儲存"""
        normalized = normalize_text(text)
        key = self.key_fn(normalized)
        self.store.record(normalized, key)
        self.replacements += 1
        logger.debug(f"{self.unit.path or '<code>'}: {normalized} → {key}")
        return key

    def _replace(self, start: int, end: int, text: str):
        self.edits.append(TextEdit(start=start, end=end, text=text))

    def _call(self, key: str) -> str:
        return lookup_call(self.function_identity, key)

    # ==========================================
    # 五種改寫情況
    # ==========================================

    def _rewrite_literal(self, node: Node):
        text = string_value(self.unit, node)
        if not self.classifier.is_eligible(node, text):
            return
        key = self._register(text)
        self._replace(node.start_byte, node.end_byte, self._call(key))

    def _rewrite_keyed_field(self, node: Node):
        if node.type == 'string':
            text = string_value(self.unit, node)
        else:
            text = cook(self.unit.text_of(node))
        if not self.classifier.is_eligible(node, text):
            return

        key = self._register(text)
        computed = f"[{self._call(key)}]"
        if node.type in SHORTHAND_KEYS:
            # { 中文 } → { [i18n("zhongwen")]: 中文 }
            computed = f"{computed}: {self.unit.text_of(node)}"
        self._replace(node.start_byte, node.end_byte, computed)

    def _rewrite_template(self, node: Node):
        if self.classifier.is_type_level(node):
            return
        for start, end in template_segments(self.unit, node):
            text = cook(self.unit.slice(start, end))
            if not self.classifier.is_eligible(node, text):
                continue
            key = self._register(text)
            self._replace(start, end, f"${{{self._call(key)}}}")

    def _rewrite_attribute(self, node: Node):
        text = string_value(self.unit, node, jsx=True)
        if not self.classifier.is_eligible(node, text):
            return
        key = self._register(text)
        self._replace(node.start_byte, node.end_byte, f"{{{self._call(key)}}}")

    def _rewrite_text_run(self, node: Node):
        """
        相鄰的 jsx_text / 字元參照視為同一段文字

        tree-sitter 會將多行文字拆成多個 jsx_text 節點，這裡合併後只生成一個翻譯鍵。
        """
        if node.start_byte in self._consumed:
            return

        run = [node]
        sibling = node.next_sibling
        while sibling is not None and sibling.type in TEXT_RUN_TYPES:
            run.append(sibling)
            sibling = sibling.next_sibling
        for member in run:
            self._consumed.add(member.start_byte)

        start, end = run[0].start_byte, run[-1].end_byte
        text = html.unescape(self.unit.slice(start, end))
        if not self.classifier.is_eligible(node, text):
            return
        key = self._register(text)
        self._replace(start, end, f"{{{self._call(key)}}}")


def rewrite_unit(unit: SourceUnit, store: TranslationStore, function_identity: str = 'i18n',
                 classifier: Optional[LiteralClassifier] = None) -> LiteralRewriter:
    """建立改寫器並執行，回傳改寫器（含編輯清單與替換數量）"""
    rewriter = LiteralRewriter(unit, store, function_identity, classifier)
    rewriter.rewrite()
    return rewriter
