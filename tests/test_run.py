'''
Unit tests for the command-line entry point.
'''

from types import SimpleNamespace

import run

#region: test_check_units_builtin_catalog
def test_check_units_builtin_catalog():
    config = SimpleNamespace(path={'catalog_extension_file': None})

    consistency = run.check_units(config)

    assert len(consistency) > 0
    assert consistency['is_consistent'].all()
#endregion

#region: test_check_units_with_extension
def test_check_units_with_extension(tmp_path, capsys):
    extension_file = tmp_path / 'unit_extension.csv'
    extension_file.write_text(
        'unit;category;factor;divisor\n'
        'AI mg/L;mass;1;1\n'
        'AI g/250 L;volume;1000000;250\n'
    )
    config = SimpleNamespace(
        path={'catalog_extension_file': str(extension_file)}
        )

    consistency = run.check_units(config).set_index('unit')

    assert not consistency.loc['AI mg/L', 'is_consistent']
    assert consistency.loc['AI g/250 L', 'is_consistent']
    assert '1 inconsistent' in capsys.readouterr().out
#endregion
