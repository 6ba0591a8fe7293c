"""
batch.py 測試套件

測試範圍：
1. 檔案收集（副檔名、include / exclude）
2. 批次轉換與輸出位置
3. 單一檔案失敗時略過並繼續
4. 試執行與翻譯表匯出
"""

import csv
from pathlib import Path

import pytest
from rich.console import Console

from i18n_extractor.batch import UnitStatus, collect_files, output_path_for, run
from i18n_extractor.config import resolve_options
from i18n_extractor.store import TranslationStore
from i18n_extractor.transformer import transform_unit


def resolve(project: Path, **settings):
    settings.setdefault('root', str(project))
    return resolve_options(settings, environ={})


def relative_names(files, base):
    return [path.relative_to(base).as_posix() for path in files]


# ============================================================================
# Test Class: 檔案收集
# ============================================================================

@pytest.mark.unit
class TestCollectFiles:

    def test_directory_input(self, sample_project):
        options = resolve(sample_project, input='src', output='dist')
        files = collect_files(options)
        assert relative_names(files, sample_project / 'src') == [
            'App.jsx', 'broken.js', 'index.js', 'plain.js', 'types.ts',
        ]

    def test_node_modules_excluded(self, sample_project):
        options = resolve(sample_project, input='.', output='.')
        names = relative_names(collect_files(options), sample_project)
        assert 'node_modules/lib/index.js' not in names
        assert 'src/index.js' in names

    def test_custom_include_and_exclude(self, sample_project):
        options = resolve(
            sample_project, input='src', output='dist',
            include=['**/*.js'], exclude=['broken.js'],
        )
        assert relative_names(collect_files(options), sample_project / 'src') == ['index.js', 'plain.js']

    def test_single_file(self, sample_project):
        options = resolve(sample_project, input='src/index.js')
        assert collect_files(options) == [sample_project / 'src' / 'index.js']

    def test_single_file_with_unknown_extension(self, sample_project):
        options = resolve(sample_project, input='src/readme.md')
        assert collect_files(options) == []

    def test_output_mirrors_relative_path(self, sample_project):
        options = resolve(sample_project, input='src', output='dist')
        source = sample_project / 'src' / 'index.js'
        assert output_path_for(source, options) == sample_project / 'dist' / 'index.js'


# ============================================================================
# Test Class: 批次執行
# ============================================================================

@pytest.mark.integration
class TestRun:

    def test_run_directory(self, sample_project):
        options = resolve(sample_project, input='src', output='dist')
        store = TranslationStore()
        report = run(options, store)

        statuses = {Path(result.path).name: result.status for result in report.results}
        assert statuses == {
            'App.jsx': UnitStatus.REWRITTEN,
            'broken.js': UnitStatus.SKIPPED,
            'index.js': UnitStatus.REWRITTEN,
            'plain.js': UnitStatus.UNCHANGED,
            'types.ts': UnitStatus.REWRITTEN,
        }
        assert not report.has_failures

        dist = sample_project / 'dist'
        assert (dist / 'index.js').read_text(encoding='utf-8') == \
            'import { i18n } from "i18n";\nvar a = i18n("zimianliang");\n'
        assert (dist / 'plain.js').read_text(encoding='utf-8').startswith('import { i18n } from "i18n";\n')
        assert not (dist / 'broken.js').exists()

        assert [entry.origin for entry in store] == ['标题', '内容', '字面量', '标签']

    def test_export_written(self, sample_project):
        options = resolve(sample_project, input='src', output='dist')
        report = run(options)
        sheet = sample_project / 'dist' / 'data.csv'
        assert report.export_path == str(sheet)
        with open(sheet, encoding='utf-8-sig', newline='') as f:
            rows = list(csv.DictReader(f))
        assert rows[0] == {'origin': '标题', 'key': 'biaoti', 'zh_CN': '标题'}

    def test_in_place_rewrite(self, sample_project):
        options = resolve(sample_project, input='src/index.js', export_sheet=False)
        report = run(options)
        assert report.count(UnitStatus.REWRITTEN) == 1
        assert (sample_project / 'src' / 'index.js').read_text(encoding='utf-8').endswith(
            'var a = i18n("zimianliang");\n'
        )
        assert report.export_path is None

    def test_dry_run_writes_nothing(self, sample_project):
        options = resolve(sample_project, input='src', output='dist', dry_run=True)
        store = TranslationStore()
        report = run(options, store)
        assert report.count(UnitStatus.REWRITTEN) == 3
        assert len(store) == 4
        assert not (sample_project / 'dist').exists()

    def test_undecodable_file_fails_and_batch_continues(self, sample_project):
        (sample_project / 'src' / 'binary.js').write_bytes(b'\xff\xfe\x00var')
        options = resolve(sample_project, input='src', output='dist')
        report = run(options)
        failed = [result for result in report.results if result.status is UnitStatus.FAILED]
        assert [Path(result.path).name for result in failed] == ['binary.js']
        assert report.has_failures
        assert (sample_project / 'dist' / 'index.js').exists()

    def test_invalid_escape_skipped_and_batch_continues(self, temp_dir):
        """測試：跳脫序列無效的檔案略過，其他檔案照常寫入"""
        src = temp_dir / 'src'
        src.mkdir()
        (src / 'a.js').write_text("var s = '中文\\u{110000}';\n", encoding='utf-8')
        (src / 'b.js').write_text("var b = '测试';\n", encoding='utf-8')
        options = resolve(temp_dir, input='src', output='dist')
        store = TranslationStore()
        report = run(options, store)
        statuses = {Path(result.path).name: result.status for result in report.results}
        assert statuses == {'a.js': UnitStatus.SKIPPED, 'b.js': UnitStatus.REWRITTEN}
        assert not (temp_dir / 'dist' / 'a.js').exists()
        assert 'i18n("ceshi")' in (temp_dir / 'dist' / 'b.js').read_text(encoding='utf-8')
        assert [entry.origin for entry in store] == ['测试']
        assert report.export_path is not None

    def test_unexpected_error_fails_only_that_file(self, sample_project, monkeypatch):
        def flaky_transform(code, options, store, path=None):
            if path.endswith('plain.js'):
                raise RuntimeError('boom')
            return transform_unit(code, options, store, path=path)

        monkeypatch.setattr('i18n_extractor.batch.transform_unit', flaky_transform)
        options = resolve(sample_project, input='src', output='dist')
        report = run(options)
        failed = [result for result in report.results if result.status is UnitStatus.FAILED]
        assert [Path(result.path).name for result in failed] == ['plain.js']
        assert 'RuntimeError' in failed[0].error
        assert (sample_project / 'dist' / 'index.js').exists()

    def test_summary_printed(self, sample_project):
        options = resolve(sample_project, input='src', output='dist')
        console = Console(record=True, width=120)
        run(options, console=console)
        text = console.export_text()
        assert 'index.js' in text
        assert '共 5 個檔案' in text
