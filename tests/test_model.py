"""Tests for model training, persistence and lookup."""

import json
import os

import pytest
from fakes import KeywordIndex, list_content, list_source

from logsift.content import Content
from logsift.errors import AmbiguousModelError, DiscoveryError, ModelExistsError, ModelLoadError
from logsift.index import HashingIndex, IndexConfig
from logsift.index_name import IndexName
from logsift.model import MODEL_FORMAT_VERSION, BaselineLines, Model, ModelAction, resolve_model_action


class TestResolveModelAction:
    def test_no_model(self):
        assert resolve_model_action(None, False) == ModelAction.TRAIN
        assert resolve_model_action(None, True) == ModelAction.TRAIN

    def test_new_model_path(self, tmp_path):
        assert resolve_model_action(str(tmp_path / 'model.json'), True) == ModelAction.TRAIN

    def test_existing_model(self, tmp_path):
        path = tmp_path / 'model.json'
        path.write_text('{}')
        assert resolve_model_action(str(path), False) == ModelAction.LOAD

    def test_existing_model_with_baselines(self, tmp_path):
        path = tmp_path / 'model.json'
        path.write_text('{}')
        with pytest.raises(AmbiguousModelError):
            resolve_model_action(str(path), True)


class TestTrain:
    def test_one_index_per_group(self, write_log, tmp_path, baseline_lines):
        write_log('builds/1/job-output.txt', baseline_lines)
        write_log('builds/1/zuul/merger.log', ['merger started'])
        write_log('builds/2/job-output.txt', baseline_lines)

        model = Model.train([Content.from_path(str(tmp_path / 'builds'))])

        assert set(model.indexes) == {IndexName('job-output.txt'), IndexName('zuul/merger.log')}
        assert model.indexes[IndexName('job-output.txt')].line_count == 2 * len(baseline_lines)
        assert model.errors == []

    def test_several_contents_share_groups(self, write_log, baseline_lines):
        first = write_log('a/logs/app.log', baseline_lines[:2])
        second = write_log('b/logs/app.log', baseline_lines[2:])

        model = Model.train([Content.from_path(first), Content.from_path(second)])

        assert len(model) == 1
        assert model.indexes[IndexName('logs/app.log')].line_count == len(baseline_lines)

    def test_config_is_stored_in_indexes(self, write_log, baseline_lines):
        config = IndexConfig(threshold=0.6, context_before=1, context_after=0)
        model = Model.train([Content.from_path(write_log('app.log', baseline_lines))], config=config)
        assert model.indexes[IndexName('app.log')].config == config

    def test_custom_builder(self):
        model = Model.train([list_content(list_source('app.log', ['a', 'b']))], build=KeywordIndex.build)
        index = model.get_index(list_source('app.log', []))
        assert isinstance(index, KeywordIndex)
        assert index.line_count == 2

    def test_unreadable_source_is_skipped(self):
        content = list_content(
            list_source('app.log', ['a', 'b', 'c'], fail_after=1),
            list_source('app.log', ['d']),
        )

        model = Model.train([content], build=KeywordIndex.build)

        # Lines read before the failure are not used
        assert model.indexes[IndexName('app.log')].line_count == 1
        assert model.errors == [('app.log', 'unexpected end of data')]

    def test_group_without_readable_source(self):
        content = list_content(
            list_source('broken.log', ['a'], fail_after=0),
            list_source('app.log', ['a']),
        )

        model = Model.train([content], build=KeywordIndex.build)

        assert list(model.indexes) == [IndexName('app.log')]
        assert model.errors == [('broken.log', 'unexpected end of data')]

    def test_discovery_errors_are_recorded(self):
        content = list_content(DiscoveryError('/logs/locked', 'Permission denied'), list_source('app.log', ['a']))
        model = Model.train([content], build=KeywordIndex.build)
        assert model.errors == [('/logs/locked', 'Permission denied')]
        assert len(model) == 1

    def test_order_does_not_depend_on_workers(self):
        names = [f'{letter}.log' for letter in 'edcba']
        content = list_content(*[list_source(name, ['a']) for name in names])

        model = Model.train([content], build=KeywordIndex.build, max_workers=4)

        assert list(model.indexes) == [IndexName(name) for name in names]

    def test_no_baselines(self):
        model = Model.train([])
        assert len(model) == 0
        assert model.get_index(list_source('app.log', [])) is None


class TestPersistence:
    def test_round_trip(self, write_log, tmp_path, baseline_lines):
        model = Model.train([Content.from_path(write_log('app.log', baseline_lines))])
        path = str(tmp_path / 'model.json')

        model.save(path)
        loaded = Model.load(path)

        assert list(loaded.indexes) == list(model.indexes)
        assert loaded.created_at == model.created_at
        index = loaded.indexes[IndexName('app.log')]
        assert isinstance(index, HashingIndex)
        assert index.score(baseline_lines[0]) is None
        assert index.score('Traceback segfault') == 1.0

    def test_file_format(self, tmp_path):
        model = Model({IndexName('app.log'): KeywordIndex(IndexConfig(), 3)}, errors=[('bad.log', 'oops')])
        path = tmp_path / 'model.json'

        model.save(str(path))

        data = json.loads(path.read_text())
        assert data['version'] == MODEL_FORMAT_VERSION
        assert data['indexes']['app.log']['strategy'] == 'keyword'
        assert data['indexes']['app.log']['line_count'] == 3
        assert data['errors'] == [{'source': 'bad.log', 'error': 'oops'}]
        assert Model.load(str(path)).errors == [('bad.log', 'oops')]

    def test_never_overwrites(self, tmp_path):
        path = tmp_path / 'model.json'
        path.write_text('existing')

        with pytest.raises(ModelExistsError):
            Model({}).save(str(path))

        assert path.read_text() == 'existing'

    @pytest.mark.parametrize(
        'content',
        [
            'not json',
            '[]',
            '{"version": 999, "created_at": "now", "indexes": {}}',
            '{"version": 1}',
            '{"version": 1, "created_at": "now", '
            '"indexes": {"app.log": {"strategy": "missing", "config": {}, "state": {}}}}',
        ],
    )
    def test_load_invalid(self, tmp_path, content):
        path = tmp_path / 'model.json'
        path.write_text(content)
        with pytest.raises(ModelLoadError):
            Model.load(str(path))

    def test_load_missing(self, tmp_path):
        with pytest.raises(ModelLoadError):
            Model.load(str(tmp_path / 'missing.json'))
        assert not os.path.exists(tmp_path / 'missing.json')


class TestBaselineLines:
    def test_lines_are_streamed_to_the_builder(self):
        received = []

        def build(lines, config):
            assert not isinstance(lines, list)
            received.extend(lines)
            return KeywordIndex(config, len(received))

        content = list_content(list_source('app.log', ['a', 'b']), list_source('app.log', ['c']))
        model = Model.train([content], build=build)

        assert received == ['a', 'b', 'c']
        assert model.indexes[IndexName('app.log')].line_count == 3

    def test_readable_and_errors(self):
        lines = BaselineLines(
            IndexName('app.log'),
            [list_source('app.log', ['a', 'b'], fail_after=1), list_source('app.log.1', ['c'])],
        )

        assert list(lines) == ['c']
        assert lines.readable == 1
        assert [(e.source, e.reason) for e in lines.errors] == [('app.log', 'unexpected end of data')]
