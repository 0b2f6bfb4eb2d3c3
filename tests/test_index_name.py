"""Tests for index name derivation."""

import pytest

from logsift.index_name import IndexName, derive, k8s_service


class TestDerive:
    @pytest.mark.parametrize(
        'expected,paths',
        [
            (
                'qemu/instance',
                ['containers/libvirt/qemu/instance-0000001d.log.txt.gz', 'libvirt/qemu/instance-000000ec.log.txt.gz'],
            ),
            ('log', ['builds/2/log', '42/log']),
            ('audit/audit.log', ['audit/audit.log', 'audit/audit.log.1']),
            ('zuul/merger.log', ['zuul/merger.log', 'zuul/merger.log.2017-11-12']),
        ],
    )
    def test_groups_similar_paths(self, expected, paths):
        for path in paths:
            assert derive(path) == IndexName(expected), f'for {path}'

    def test_k8s_container_log(self):
        assert derive('k8s_zuul-3f1c2a7e-44b1-4c1e-9a3f-8e2d8c0d1b2a') == IndexName('k8s_zuul')

    def test_k8s_prefix_must_match_exactly(self):
        assert derive('k3s_zuul-3f1c2a7e') != IndexName('k3s_zuul')

    def test_k8s_prefix_without_separator_falls_through(self):
        assert derive('pods/k8s_zuul') == IndexName('pods/ks_zuul')

    def test_rotated_baseline_shares_target_name(self):
        assert derive('/var/log/app.log.0') == derive('/var/log/app.log')

    def test_leading_slash_relative_path(self):
        # Paths discovered under a directory keep the separator after the root
        assert derive('/job-output.txt') == IndexName('job-output.txt')

    @pytest.mark.parametrize('path', ['', '.', '..', '/', '//', '123', 'a/..', '\x00', '日本/ログ.txt'])
    def test_total(self, path):
        assert isinstance(derive(path), IndexName)

    def test_empty_path_is_not_available(self):
        assert derive('') == IndexName('N/A')

    def test_from_path_is_derive(self):
        assert IndexName.from_path('builds/2/log') == derive('builds/2/log')

    def test_index_name_is_a_string(self):
        name = derive('audit/audit.log')
        assert name == 'audit/audit.log'
        assert repr(name) == "IndexName('audit/audit.log')"


class TestK8sService:
    def test_service(self):
        assert k8s_service('k8s_zuul-uuid') == 'k8s_zuul'

    def test_other_prefix(self):
        assert k8s_service('k3s_zuul-uuid') is None

    def test_no_separator(self):
        assert k8s_service('k8s_zuul') is None
