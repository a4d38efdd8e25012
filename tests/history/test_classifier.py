"""Tests for history/classifier.py - path categories."""

import pytest

from gitsol.history.classifier import (
    classify,
    is_build_file,
    is_documentation_file,
    is_dot_file,
    is_test_file,
)


class TestTestFiles:
    @pytest.mark.parametrize(
        "path",
        [
            "src/MainTest.java",
            "pkg/service_test.go",
            "web/app.spec.ts",
            "web/Button.test.tsx",
            "features/login.feature",
            "project/test/unit/helpers.py",
        ],
    )
    def test_recognised(self, path):
        """Common test naming and directory conventions are test files."""
        assert is_test_file(path)

    @pytest.mark.parametrize("path", ["src/Main.java", "README.md", "src/testing.py"])
    def test_not_tests(self, path):
        """Ordinary sources are not test files."""
        assert not is_test_file(path)

    def test_case_sensitive(self):
        """Matching is exact: a lowercase suffix is not the Test convention."""
        assert not is_test_file("src/Maintest.java")


class TestBuildFiles:
    @pytest.mark.parametrize(
        "path",
        ["pom.xml", "sub/build.gradle", "Makefile", "requirements.txt", "infra/main.tf", "Dockerfile"],
    )
    def test_recognised(self, path):
        """Build manifests, IaC and version files are build files."""
        assert is_build_file(path)

    def test_ci_workflow_is_build_and_dot(self):
        """Categories are independent: a workflow file is both build and dot."""
        flags = classify(".github/workflows/ci.yml")
        assert flags.is_build
        assert flags.is_dot


class TestDotAndDocs:
    def test_dot_file_at_root(self):
        """A leading-dot name is a dot file."""
        assert is_dot_file(".gitignore")

    def test_dot_directory(self):
        """Any path segment starting with a dot makes it a dot file."""
        assert is_dot_file("config/.hidden/settings.json")

    def test_regular_path_not_dot(self):
        """An extension dot is not a dot file."""
        assert not is_dot_file("src/main.py")

    @pytest.mark.parametrize("path", ["README.md", "CHANGELOG", "docs/guide.md", "manual.rst"])
    def test_documentation(self, path):
        """Conventional documentation files are recognised."""
        assert is_documentation_file(path)

    def test_classify_plain_source(self):
        """A plain source file carries no category."""
        flags = classify("src/Main.java")
        assert not (flags.is_test or flags.is_build or flags.is_dot or flags.is_documentation)
