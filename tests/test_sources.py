import pathlib

import pytest

PACKAGE_DIR = pathlib.Path(__file__).resolve().parent.parent / 'officina'


@pytest.mark.parametrize('path', sorted(PACKAGE_DIR.rglob('*.py')), ids=lambda p: p.name)
def test_sources_use_plain_hyphens(path):
    text = path.read_text(encoding='utf-8')
    assert '–' not in text
    assert '—' not in text
