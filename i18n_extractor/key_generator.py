#!/usr/bin/env python3
"""
翻譯鍵生成器

將中文文字轉為拼音音節序列，再依音節數量分級截斷：
- ≥ 16 個音節：每個音節取首字母
- ≥ 8 個音節：每個音節取前 2 個字母
- ≥ 4 個音節：每個音節取前 4 個字母
- < 4 個音節：保留完整音節

音節之間不加分隔符。不同文字可能得到相同的鍵，此處不偵測也不處理碰撞。
"""

from typing import Callable, List, Optional, Sequence, Tuple

from pypinyin import Style, lazy_pinyin

Transliterator = Callable[[str], Sequence[str]]

# (最少音節數, 每個音節保留長度)，None 表示保留完整音節
LENGTH_TIERS: Tuple[Tuple[int, Optional[int]], ...] = (
    (16, 1),
    (8, 2),
    (4, 4),
    (0, None),
)


def _split_chars(chars: str) -> List[str]:
    """非漢字片段逐字拆開，讓音節數與字元數一致"""
    return list(chars)


def transliterate(text: str) -> List[str]:
    """
    將文字轉為不帶聲調的拼音音節序列

    Args:
        text: 原始文字

    Returns:
        每個字元對應一個音節的列表
    """
    return lazy_pinyin(text, style=Style.NORMAL, errors=_split_chars)


def truncate_syllables(syllables: Sequence[str]) -> str:
    """依音節數量選擇截斷等級並串接"""
    count = len(syllables)
    for threshold, width in LENGTH_TIERS:
        if count >= threshold:
            if width is None:
                return ''.join(syllables)
            return ''.join(syllable[:width] for syllable in syllables)
    return ''.join(syllables)


def generate_key(text: str, transliterate_fn: Optional[Transliterator] = None) -> str:
    """
    由中文文字生成翻譯鍵

    Args:
        text: 已正規化的文字
        transliterate_fn: 自訂音譯函數（預設使用 pypinyin）

    Returns:
        翻譯鍵，例如 '字面量' → 'zimianliang'
    """
    fn = transliterate_fn or transliterate
    return truncate_syllables(list(fn(text)))
