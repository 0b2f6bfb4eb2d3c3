"""Tests for content resolution and source discovery."""

import os

import pytest

from logsift.content import (
    Content,
    DirectoryContent,
    FileContent,
    Input,
    InputKind,
    LocalSource,
    UrlContent,
    UrlSource,
    dir_iter,
)
from logsift.errors import ConfigurationError, ContentNotFoundError, DiscoveryError
from logsift.index_name import IndexName


class TestInput:
    def test_path(self):
        assert Input.from_string('logs/app.log') == Input(InputKind.PATH, 'logs/app.log')

    def test_url(self):
        assert Input.from_string('https://example.com/log').kind == InputKind.URL
        assert Input.from_string('http://example.com/log').kind == InputKind.URL


class TestFromPath:
    def test_file(self, write_log):
        path = write_log('app.log', ['hello'])
        content = Content.from_path(path)
        assert isinstance(content, FileContent)
        assert content.source == LocalSource(0, path)

    def test_directory(self, tmp_path):
        content = Content.from_path(str(tmp_path))
        assert isinstance(content, DirectoryContent)

    def test_missing(self, tmp_path):
        with pytest.raises(ContentNotFoundError):
            Content.from_path(str(tmp_path / 'missing.log'))

    def test_missing_is_a_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Content.from_input(Input.path(str(tmp_path / 'missing.log')))


class TestFromUrl:
    def test_url(self):
        content = Content.from_input(Input.url('https://logs.example.com/builds/12/job-output.txt'))
        assert isinstance(content, UrlContent)
        assert list(content.get_sources()) == [UrlSource('https://logs.example.com/builds/12/job-output.txt')]

    def test_unsupported_scheme(self):
        with pytest.raises(ContentNotFoundError):
            Content.from_url('ftp://logs.example.com/job-output.txt')

    def test_url_index_name_uses_path(self):
        source = UrlSource('https://logs.example.com/builds/12/job-output.txt')
        assert source.index_name == IndexName('job-output.txt')

    def test_no_baseline_discovery(self):
        content = Content.from_url('https://logs.example.com/job-output.txt')
        assert content.discover_baselines() == []


class TestDiscoverBaselines:
    def test_rotated_file(self, write_log):
        path = write_log('app.log', ['hello'])
        baseline = write_log('app.log.0', ['hello'])
        assert Content.discover_baselines_from_path(path) == [FileContent(LocalSource(0, baseline))]

    def test_content_discovery(self, write_log):
        path = write_log('app.log', ['hello'])
        write_log('app.log.0', ['hello'])
        assert len(Content.from_path(path).discover_baselines()) == 1

    def test_rotated_directory(self, tmp_path):
        (tmp_path / 'logs').mkdir()
        (tmp_path / 'logs.0').mkdir()
        baselines = Content.from_path(str(tmp_path / 'logs')).discover_baselines()
        assert baselines == [DirectoryContent(LocalSource(0, str(tmp_path / 'logs.0')))]

    def test_missing_candidate_is_not_an_error(self, write_log):
        path = write_log('app.log', ['hello'])
        assert Content.discover_baselines_from_path(path) == []


class TestDirIter:
    def _touch(self, root, name):
        path = os.path.join(root, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w') as f:
            f.write('line\n')
        return path

    def test_regular_files_only(self, tmp_path):
        root = str(tmp_path)
        a = self._touch(root, 'a.log')
        nested = self._touch(root, 'sub/nested.log')
        os.symlink(a, os.path.join(root, 'link.log'))
        os.symlink(os.path.join(root, 'sub'), os.path.join(root, 'linkdir'))

        sources = list(dir_iter(root))

        assert sources == [LocalSource(len(root), a), LocalSource(len(root), nested)]

    def test_order_is_stable(self, tmp_path):
        root = str(tmp_path)
        for name in ['c.log', 'a.log', 'b/z.log', 'b/a.log']:
            self._touch(root, name)
        first = [str(s) for s in dir_iter(root)]
        assert first == ['a.log', 'b/a.log', 'b/z.log', 'c.log']
        assert [str(s) for s in dir_iter(root)] == first

    def test_unreadable_directory_is_yielded_as_error(self, tmp_path, monkeypatch):
        root = str(tmp_path)
        a = self._touch(root, 'a.log')
        self._touch(root, 'locked/secret.log')
        c = self._touch(root, 'z.log')
        locked = os.path.join(root, 'locked')

        real_scandir = os.scandir

        def fake_scandir(path):
            if path == locked:
                raise PermissionError(13, 'Permission denied', path)
            return real_scandir(path)

        monkeypatch.setattr(os, 'scandir', fake_scandir)

        results = list(dir_iter(root))

        assert results[0] == LocalSource(len(root), a)
        assert isinstance(results[1], DiscoveryError)
        assert results[1].path == locked
        assert results[1].reason == 'Permission denied'
        assert results[2] == LocalSource(len(root), c)

    def test_directory_content_sources(self, tmp_path):
        root = str(tmp_path)
        path = self._touch(root, 'builds/2/log')
        sources = list(Content.from_path(root).get_sources())
        assert sources == [LocalSource(len(root), path)]
        assert sources[0].index_name == IndexName('log')


class TestLocalSource:
    def test_display_name(self):
        assert str(LocalSource(0, '/var/log/app.log')) == '/var/log/app.log'
        assert str(LocalSource(len('/var/log'), '/var/log/zuul/merger.log')) == 'zuul/merger.log'

    def test_index_path(self):
        assert LocalSource(len('/var/log'), '/var/log/zuul/merger.log').index_path == '/zuul/merger.log'
        assert LocalSource(0, '/var/log/zuul/merger.log').index_path == '/var/log/zuul/merger.log'

    def test_lines_are_restartable(self, write_log):
        source = LocalSource(0, write_log('app.log', ['one', 'two']))
        assert list(source.lines()) == ['one', 'two']
        assert list(source.lines()) == ['one', 'two']

    def test_immutable(self):
        source = LocalSource(0, '/var/log/app.log')
        with pytest.raises(AttributeError):
            source.path = '/tmp'
