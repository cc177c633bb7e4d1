"""Tests for the semantic checks on generated code."""

import pytest

from tests.conftest import SAMPLE_APP
from zerobuild.generation.validator import ALLOWED_MODULES, check_code

HEADER = "import React from 'react';\nimport { View, Text } from 'react-native';\n"


def app_with(body: str) -> str:
    return f"{HEADER}\nexport default function App() {{\n{body}\n}}\n"


class TestCheckCode:
    def test_sample_app_is_valid(self):
        result = check_code(SAMPLE_APP)
        assert result.valid
        assert result.error is None

    def test_empty_code(self):
        result = check_code("   ")
        assert not result.valid
        assert result.error == "No code provided"

    def test_disallowed_import(self):
        code = "import axios from 'axios';\n" + app_with("  return null;")
        result = check_code(code)
        assert not result.valid
        assert "Import from 'axios' is not allowed" in result.error

    @pytest.mark.parametrize("module", ALLOWED_MODULES)
    def test_allowed_imports(self, module):
        code = f"import Thing from '{module}';\n" + app_with("  return null;")
        assert check_code(code).valid

    def test_relative_imports_allowed(self):
        code = "import helper from './helper';\n" + app_with("  return null;")
        assert check_code(code).valid

    def test_missing_export_default(self):
        result = check_code(HEADER + "function App() { return null; }\n")
        assert not result.valid
        assert 'Missing "export default"' in result.error

    def test_missing_import_react(self):
        result = check_code("import { View } from 'react-native';\nexport default function App() { return null; }")
        assert not result.valid
        assert 'Missing "import React"' in result.error

    @pytest.mark.parametrize("body,fragment", [
        ("  const name: string = 'a';", "type annotations"),
        ("  interface Props { title }", "interfaces"),
        ("  const x = value as any;", '"as" keyword'),
        ("  enum Color { Red }", "enums"),
    ])
    def test_typescript_rejected(self, body, fragment):
        result = check_code(app_with(body))
        assert not result.valid
        assert fragment in result.error

    def test_html_element_rejected(self):
        result = check_code(app_with("  return <div>Hello</div>;"))
        assert not result.valid
        assert "HTML element <div>" in result.error

    def test_html_in_string_or_comment_allowed(self):
        body = "  // render a <div> here\n  const label = '<span>';\n  return <View><Text>{label}</Text></View>;"
        assert check_code(app_with(body)).valid

    def test_class_name_rejected(self):
        result = check_code(app_with("  return <View className=\"box\" />;"))
        assert not result.valid
        assert "className" in result.error

    def test_css_units_reported_with_line(self):
        code = app_with("  const styles = {\n    box: { fontSize: '16px' },\n  };\n  return null;")
        result = check_code(code)
        assert not result.valid
        assert result.line == 6
        assert result.error.startswith("Line 6:")

    def test_css_units_in_comment_line_allowed(self):
        code = app_with("  // fontSize: 16px looks too big\n  return null;")
        assert check_code(code).valid
