from legitify import version


def test_readable_version_defaults():
    assert version.readable_version() == "legitify version na commit na"


def test_readable_version_lean_defaults():
    assert version.readable_version_lean() == "Version: na Commit na"


def test_readable_version_contains_parts():
    text = version.readable_version()
    assert text.startswith(version.NAME)
    assert version.VERSION in text
    assert text.endswith(version.COMMIT)