"""
transformer.py / rewriter.py 測試套件

測試範圍：
1. 五種改寫情況（字面量、屬性鍵、樣板字串、JSX 屬性、JSX 文字）
2. 型別層級字面量排除
3. 自動導入與重複執行的冪等性
4. 解析與輸出失敗時略過
"""

import pytest

from i18n_extractor.config import AutoImportOptions, TransformOptions
from i18n_extractor.errors import ParseFailure, PrintFailure
from i18n_extractor.store import TranslationStore
from i18n_extractor.transformer import transform, transform_unit

IMPORT_LINE = 'import { i18n } from "i18n";\n'
NO_IMPORT = TransformOptions(auto_import=False)


# ============================================================================
# Test Class: 基本情境
# ============================================================================

@pytest.mark.unit
class TestScenarios:

    def test_plain_literal(self, options, store):
        output = transform("var a = '字面量';", options, store)
        assert output == IMPORT_LINE + 'var a = i18n("zimianliang");'
        assert store.rows() == [{'origin': '字面量', 'key': 'zimianliang', 'zh_CN': '字面量'}]

    def test_object_key_becomes_computed(self, options, store):
        """測試：屬性鍵改為計算屬性，數值不變"""
        output = transform("var o = {'键名': 10};", options, store)
        assert output == IMPORT_LINE + 'var o = {[i18n("jianming")]: 10};'

    def test_template_segments(self, options, store):
        """測試：三個靜態片段中兩個需要改寫"""
        code = 'var s = `你好${name}世界${n}!`;'
        output = transform(code, options, store)
        assert output == IMPORT_LINE + 'var s = `${i18n("nihao")}${name}${i18n("shijie")}${n}!`;'
        assert [entry.origin for entry in store] == ['你好', '世界']

    def test_existing_import_not_duplicated(self, options, store):
        code = IMPORT_LINE + "var a = '中文';"
        output = transform(code, options, store)
        assert output == IMPORT_LINE + 'var a = i18n("zhongwen");'
        assert output.count('import') == 1

    def test_second_run_is_idempotent(self, options):
        first = transform("var a = '字面量';\nvar b = `共${n}个`;", options, TranslationStore())
        second = transform(first, options, TranslationStore())
        assert second == first
        assert second.count('import {') == 1

    def test_whitespace_variants_share_entry(self, options, store):
        output = transform("var a = '测 试';\nvar b = '测试';", options, store)
        assert output == IMPORT_LINE + 'var a = i18n("ceshi");\nvar b = i18n("ceshi");'
        assert len(store) == 1

    def test_type_level_literal_untouched(self, options, store):
        code = "type Label = '标签';\nconst label: Label = '标签';"
        output = transform(code, options, store, path='label.ts')
        assert output == IMPORT_LINE + "type Label = '标签';\nconst label: Label = i18n(\"biaoqian\");"


# ============================================================================
# Test Class: 各改寫情況
# ============================================================================

@pytest.mark.unit
class TestRewriteCases:

    def test_key_and_value_both_rewritten(self, store):
        output = transform("var o = { '中文': '测试' };", NO_IMPORT, store)
        assert output == 'var o = { [i18n("zhongwen")]: i18n("ceshi") };'

    def test_bare_identifier_key(self, store):
        output = transform("var o = { 中文: 1 };", NO_IMPORT, store)
        assert output == 'var o = { [i18n("zhongwen")]: 1 };'

    def test_shorthand_property(self, store):
        output = transform("var o = { 中文 };", NO_IMPORT, store)
        assert output == 'var o = { [i18n("zhongwen")]: 中文 };'

    def test_member_access_untouched(self, store):
        code = "obj.中文 = 1;"
        assert transform(code, NO_IMPORT, store) == code
        assert len(store) == 0

    def test_class_field_name(self, store):
        output = transform("class A { '中文' = 1; }", NO_IMPORT, store)
        assert output == 'class A { [i18n("zhongwen")] = 1; }'

    def test_jsx_attribute_and_text(self, store):
        code = 'const e = <p title="标题">内容</p>;'
        output = transform(code, NO_IMPORT, store, path='App.jsx')
        assert output == 'const e = <p title={i18n("biaoti")}>{i18n("neirong")}</p>;'

    def test_jsx_multiline_text_single_key(self, store):
        """測試：跨行的標籤文字只生成一個翻譯鍵"""
        code = 'const e = (\n  <p>\n    中文\n    测试\n  </p>\n);'
        output = transform(code, NO_IMPORT, store, path='App.tsx')
        assert output.count('{i18n("zhonwenceshi")}') == 1
        assert '中文' not in output
        assert [entry.origin for entry in store] == ['中文测试']

    def test_non_cjk_untouched(self, store):
        code = "var a = 'hello';\nvar b = `x${y}`;"
        assert transform(code, NO_IMPORT, store) == code
        assert len(store) == 0

    def test_escaped_literal(self, store):
        output = transform("var a = '\\u4e2d\\u6587';", NO_IMPORT, store)
        assert output == 'var a = i18n("zhongwen");'

    def test_as_const_rewritten(self, store):
        output = transform("const a = '中文' as const;", NO_IMPORT, store, path='a.ts')
        assert output == 'const a = i18n("zhongwen") as const;'

    def test_import_source_untouched(self, options, store):
        output = transform("import x from './中文';", options, store)
        assert output == IMPORT_LINE + "import x from './中文';"
        assert len(store) == 0

    def test_string_export_name_untouched(self, store):
        code = "const x = 1;\nexport { x as '中文' };\nvar a = '测试';"
        output = transform(code, NO_IMPORT, store)
        assert output == 'const x = 1;\nexport { x as \'中文\' };\nvar a = i18n("ceshi");'
        assert [entry.origin for entry in store] == ['测试']

    def test_string_import_name_untouched(self, store):
        code = "import { '中文' as y } from 'm';"
        assert transform(code, NO_IMPORT, store) == code
        assert len(store) == 0

    @pytest.mark.parametrize("code", [
        "abstract class A { abstract '中文': string; }",
        "class A { declare '中文': string; }",
    ])
    def test_ambient_class_member_untouched(self, store, code):
        """測試：abstract / declare 成員只存在於型別宣告，不改寫"""
        assert transform(code, NO_IMPORT, store, path='a.ts') == code
        assert len(store) == 0

    def test_nested_template(self, store):
        code = 'var s = `外层${`内层`}`;'
        output = transform(code, NO_IMPORT, store)
        assert output == 'var s = `${i18n("waiceng")}${`${i18n("neiceng")}`}`;'


# ============================================================================
# Test Class: 自動導入
# ============================================================================

@pytest.mark.unit
class TestAutoImport:

    def test_custom_identity_and_source(self, store):
        options = TransformOptions(
            function_identity='t',
            auto_import=AutoImportOptions(identity='translate', source='@/i18n'),
        )
        output = transform("var a = '中文';", options, store)
        assert output == 'import { translate as t } from "@/i18n";\nvar a = t("zhongwen");'

    def test_disabled(self, store):
        assert transform("var a = '中文';", NO_IMPORT, store) == 'var a = i18n("zhongwen");'

    def test_injected_without_replacements(self, options, store):
        output = transform("var a = 1;", options, store)
        assert output == IMPORT_LINE + 'var a = 1;'

    def test_after_directive(self, options, store):
        output = transform("'use client';\nconst a = '中文';", options, store)
        assert output == "'use client';\n" + IMPORT_LINE + 'const a = i18n("zhongwen");'

    def test_after_hashbang(self, options, store):
        output = transform("#!/usr/bin/env node\nconst a = '中文';", options, store)
        assert output == '#!/usr/bin/env node\n' + IMPORT_LINE + 'const a = i18n("zhongwen");'

    def test_import_from_other_source_still_injects(self, options, store):
        code = 'import { i18n } from "./other";\nvar a = 1;'
        output = transform(code, options, store)
        assert output == IMPORT_LINE + code

    def test_transform_unit_reports_details(self, options, store):
        result = transform_unit("var a = '中文';\nvar b = '中文';", options, store)
        assert result.import_injected
        assert result.replacements == 2
        assert result.changed
        assert len(store) == 1


# ============================================================================
# Test Class: 失敗處理
# ============================================================================

@pytest.mark.unit
class TestFailures:

    def test_parse_failure_returns_none(self, options, store):
        assert transform("var x = ;", options, store) is None
        assert len(store) == 0

    def test_parse_failure_raised_by_transform_unit(self, options, store):
        with pytest.raises(ParseFailure) as exc_info:
            transform_unit("var x = ;", options, store, path='broken.js')
        assert exc_info.value.path == 'broken.js'
        assert exc_info.value.line == 1

    def test_print_failure_leaves_store_untouched(self, options, store, monkeypatch):
        """測試：輸出失敗的檔案不會留下翻譯資料"""
        def failing_print(unit, edits):
            raise PrintFailure("改寫後的程式碼無法重新解析", path=unit.path)

        monkeypatch.setattr('i18n_extractor.transformer.print_code', failing_print)
        assert transform("var a = '中文';", options, store) is None
        assert len(store) == 0

    def test_invalid_escape_returns_none(self, store):
        assert transform("var s = '中文\\u{110000}';", NO_IMPORT, store) is None
        assert len(store) == 0

    def test_invalid_escape_raised_with_path(self, store):
        with pytest.raises(ParseFailure) as exc_info:
            transform_unit("var s = '中文\\u{110000}';", NO_IMPORT, store, path='bad.js')
        assert exc_info.value.path == 'bad.js'
