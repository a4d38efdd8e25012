"""Classify changed file paths into test / build / dot / documentation categories.

Each category is an ordered list of full-path regular expressions; a path
belongs to the category if any rule matches. Categories are independent, so
``.github/workflows/ci.yml`` is both a build file and a dot file. Matching is
case-sensitive: paths are compared exactly as git reports them.
"""

import re
from dataclasses import dataclass

_SOURCE_EXT = r"(java|kt|py|js|ts|cpp|c|rb|php|go|rs|cs)"

TEST_FILES = [
    rf".*Test\.{_SOURCE_EXT}",
    r".*_test\.(py|go|js|ts|c|cpp|rs|cs)",
    r".*\.spec\.(js|ts|py)",
    r".*\.(test|spec)\.(js|ts|jsx|tsx)",
    r".*\.feature",
    r".*\.t\.(pl|rb)",
    r".*\.ut\.(cpp|c)",
    r".*_tests\.rs",
    r".*\.test\.(rs|go)",
    # directory conventions
    rf".*/src/.*/test/.*/.*\.{_SOURCE_EXT}",
    rf".*test/.*/.*\.{_SOURCE_EXT}",
    r".*/test/.*/.*_test\.(py|go|cpp|rs)",
    r".*/src/.*/test/.*/.*\.spec\.(js|ts)",
    r".*/src/.*/test/.*/.*\.(test|spec)\.(js|ts|jsx|tsx)",
    r".*/src/.*/test/.*/.*\.feature",
    r".*/src/.*/test/.*/.*\.t\.(pl|rb)",
]

BUILD_FILES = [
    # build manifests
    r".*pom\.xml",
    r".*build\.gradle",
    r".*build\.gradle\.kts",
    r".*Makefile",
    r".*CMakeLists\.txt",
    r".*package\.json",
    r".*yarn\.lock",
    r".*setup\.py",
    r".*lock\.json",
    r".*lock\.yml",
    r".*lock\.yaml",
    r".*requirements\.txt",
    r".*composer\.json",
    r".*build\.sbt",
    r".*Rakefile",
    r".*Dockerfile",
    r".*docker-compose\.yml",
    r".*Gemfile",
    r".*\.csproj",
    r".*Cargo\.toml",
    r".*go\.mod",
    # CI/CD
    r".*Jenkinsfile",
    r".*\.github/workflows/.*\.yml",
    r".*\.gitlab-ci\.yml",
    r".*\.travis\.yml",
    r".*\.circleci/config\.yml",
    r".*azure-pipelines\.yml",
    r".*bitbucket-pipelines\.yml",
    r".*bamboo-specs\.yml",
    r".*\.teamcity\.settings\.xml",
    r".*\.drone\.yml",
    r".*codebuild\.spec\.yml",
    r".*buildkite\.yml",
    # infrastructure as code
    r".*\.tf",
    r".*cloudbuild\.yaml",
    r".*skaffold\.yaml",
    r".*pipeline\.yaml",
    # version files
    r".*version\.json",
    r".*version\.properties",
    r".*version\.txt",
    r".*version\.yml",
    r".*version\.yaml",
    r".*version\.js",
]

DOCUMENTATION_FILES = [
    r".*README(\.md|\.txt|\.rst|\.adoc)?",
    r".*CHANGELOG(\.md|\.txt|\.rst)?",
    r".*LICENSE(\.md|\.txt)?",
    r".*COPYING(\.md|\.txt)?",
    r".*CONTRIBUTING(\.md|\.txt|\.rst)?",
    r".*CODE_OF_CONDUCT(\.md|\.txt|\.rst)?",
    r".*INSTALL(\.md|\.txt|\.rst)?",
    r".*UPGRADE(\.md|\.txt|\.rst)?",
    r".*SECURITY(\.md|\.txt)?",
    r".*AUTHORS(\.md|\.txt)?",
    r".*FAQ(\.md|\.txt|\.rst)?",
    r".*ARCHITECTURE(\.md|\.txt|\.rst)?",
    r".*docs/.*\.(md|txt|rst|html|pdf)",
    r".*\.rst",
    r".*\.adoc",
    r".*\.pdf",
]

# Any path segment (or the path itself) starting with "."
DOT_FILES = r"(.*/)?\.[^/]+.*"

_TEST_RES = [re.compile(p) for p in TEST_FILES]
_BUILD_RES = [re.compile(p) for p in BUILD_FILES]
_DOC_RES = [re.compile(p) for p in DOCUMENTATION_FILES]
_DOT_RE = re.compile(DOT_FILES)


@dataclass(frozen=True)
class FileClassification:
    is_test: bool = False
    is_build: bool = False
    is_dot: bool = False
    is_documentation: bool = False


def _any_match(patterns: list[re.Pattern], path: str) -> bool:
    return any(p.fullmatch(path) for p in patterns)


def is_test_file(path: str) -> bool:
    return _any_match(_TEST_RES, path)


def is_build_file(path: str) -> bool:
    return _any_match(_BUILD_RES, path)


def is_documentation_file(path: str) -> bool:
    return _any_match(_DOC_RES, path)


def is_dot_file(path: str) -> bool:
    return _DOT_RE.fullmatch(path) is not None


def classify(path: str) -> FileClassification:
    """Return all category flags for ``path``. Never raises."""
    return FileClassification(
        is_test=is_test_file(path),
        is_build=is_build_file(path),
        is_dot=is_dot_file(path),
        is_documentation=is_documentation_file(path),
    )
