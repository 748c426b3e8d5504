# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for Lua configuration scripts."""

import pytest

pytest.importorskip('lupa')

from flexiconfig import ScriptError, Settings  # noqa: E402
from flexiconfig.loaders.lua import evaluate  # noqa: E402


class TestEvaluate:
    """Tests for the Lua evaluator."""

    def test_returns_mapping(self):
        """Test a returned table becomes a dict."""
        tree = evaluate("""
            local port = 5000 + 432
            return {
                name = 'app',
                debug = false,
                ratio = 1.5,
                database = { port = port },
            }
        """)
        assert tree == {
            'name': 'app',
            'debug': False,
            'ratio': 1.5,
            'database': {'port': 5432},
        }

    def test_sequences_become_lists(self):
        """Test array tables become lists, in order."""
        tree = evaluate("return { hosts = { 'a', 'b', 'c' }, nested = { { x = 1 } } }")
        assert tree == {'hosts': ['a', 'b', 'c'], 'nested': [{'x': 1}]}

    def test_empty_table_is_mapping(self):
        """Test an empty table converts to an empty dict."""
        assert evaluate("return { empty = {} }") == {'empty': {}}
        assert evaluate("return {}") == {}

    def test_integral_numbers_are_ints(self):
        """Test 2.0 comes back as an int."""
        tree = evaluate("return { n = 4 / 2 }")
        assert tree == {'n': 2}
        assert isinstance(tree['n'], int)

    def test_last_return_value_wins(self):
        """Test the last of several returned values is used."""
        assert evaluate("return { a = 1 }, { b = 2 }") == {'b': 2}

    def test_non_table_result(self):
        """Test returning a scalar raises."""
        with pytest.raises(ScriptError, match="must return a table"):
            evaluate("return 5")

    def test_no_result(self):
        """Test a chunk without return raises."""
        with pytest.raises(ScriptError, match="must return a table"):
            evaluate("local x = 1")

    def test_array_root_rejected(self):
        """Test the root table must have string keys."""
        with pytest.raises(ScriptError, match="string keys"):
            evaluate("return { 1, 2 }")

    def test_syntax_error(self):
        """Test a syntax error raises ScriptError."""
        with pytest.raises(ScriptError, match="syntax error"):
            evaluate("return {", chunk_name='=broken')

    def test_runtime_error(self):
        """Test error() inside the script raises ScriptError."""
        with pytest.raises(ScriptError, match="boom"):
            evaluate("error('boom')")

    def test_function_value_rejected(self):
        """Test functions cannot be configuration values."""
        with pytest.raises(ScriptError, match="function"):
            evaluate("return { f = function() end }")

    def test_mixed_keys_rejected(self):
        """Test tables mixing array and hash parts are rejected."""
        with pytest.raises(ScriptError, match="mixed"):
            evaluate("return { t = { 1, x = 2 } }")

    def test_sparse_array_rejected(self):
        """Test arrays with holes are rejected."""
        with pytest.raises(ScriptError, match="sparse"):
            evaluate("return { t = { [1] = 'a', [3] = 'c' } }")

    def test_recursive_table_rejected(self):
        """Test self-referencing tables are rejected."""
        with pytest.raises(ScriptError, match="too deep"):
            evaluate("local t = {} t.self = t return t")

    def test_json_module(self):
        """Test the preloaded json module."""
        tree = evaluate("""
            local json = require('json')
            local decoded = json.decode('{"a": {"b": [1, 2]}}')
            return { decoded = decoded, encoded = json.encode({ x = 1 }) }
        """)
        assert tree == {'decoded': {'a': {'b': [1, 2]}}, 'encoded': '{"x": 1}'}

    def test_python_bridge_disabled(self):
        """Test scripts cannot evaluate Python code."""
        with pytest.raises(ScriptError):
            evaluate("return { v = python.eval('1 + 1') }")

    def test_fresh_runtime_per_call(self):
        """Test globals do not leak between evaluations."""
        evaluate("leaked = 1 return {}")
        assert evaluate("return { leaked = leaked }") == {}


class TestSettingsLua:
    """Tests for Lua loading through Settings."""

    def test_load_lua_string_merges(self):
        """Test Lua results merge like any other source."""
        settings = Settings({'db': {'host': 'localhost', 'port': 1}})
        settings.load_lua_string("return { db = { port = 5432 }, debug = true }")
        assert settings.as_dict() == {
            'db': {'host': 'localhost', 'port': 5432},
            'debug': True,
        }

    def test_load_lua_file(self, tmp_path):
        """Test load_file runs .lua files."""
        path = tmp_path / 'site.lua'
        path.write_text("return { api = { baseurl = 'https://example.org', timeout = 10 } }")
        settings = Settings()
        settings.load_file(path)
        assert settings.get_string('api:baseurl') == 'https://example.org'
        assert settings.get_int('api:timeout') == 10

    def test_lua_file_error_names_file(self, tmp_path):
        """Test script errors mention the file."""
        path = tmp_path / 'broken.lua'
        path.write_text("error('nope')")
        with pytest.raises(ScriptError, match='broken.lua'):
            Settings().load_lua_file(path)

    def test_custom_module(self):
        """Test registered modules are available through require."""
        settings = Settings()
        settings.add_lua_loader('paths', lambda lua: {
            'home': '/srv',
            'join': lambda a, b: a + '/' + b,
        })
        settings.load_lua_string("""
            local paths = require('paths')
            return { root = paths.join(paths.home, 'app') }
        """)
        assert settings['root'] == '/srv/app'

    def test_custom_module_returning_lua_table(self):
        """Test a loader may build the table with the runtime."""
        settings = Settings()
        settings.add_lua_loader('consts', lambda lua: lua.eval('{ answer = 42 }'))
        settings.load_lua_string("return { v = require('consts').answer }")
        assert settings.get_int('v') == 42

    def test_unknown_module(self):
        """Test requiring an unregistered module fails."""
        with pytest.raises(ScriptError, match="missing"):
            Settings().load_lua_string("return { m = require('missing') }")

    def test_failed_lua_load_leaves_settings_unchanged(self):
        """Test a failing script does not modify the settings."""
        settings = Settings({'a': 1})
        before = settings.get_json()
        with pytest.raises(ScriptError):
            settings.load_lua_string("return { a = 2, f = print }")
        assert settings.get_json() == before

    def test_invalid_utf8_value(self):
        """Test a string value that is not UTF-8 raises ScriptError."""
        settings = Settings({'a': 1})
        with pytest.raises(ScriptError, match="not valid UTF-8"):
            settings.load_lua_string("return { s = '\\255\\254' }")
        assert settings.as_dict() == {'a': 1}

    def test_invalid_utf8_key(self):
        """Test a table key that is not UTF-8 raises ScriptError."""
        with pytest.raises(ScriptError, match="not valid UTF-8"):
            Settings().load_lua_string("return { ['\\255'] = 1 }")
